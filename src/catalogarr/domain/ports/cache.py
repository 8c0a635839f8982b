"""Persistent key-value store behind ResultCache and the TMDB id lookups."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Async key-value cache with optional per-entry TTL.

    Key namespaces in use:
      - ``rows:home:`` / ``rows:search:<query>``: signed aggregated rows
      - ``tmdb:external_ids:<kind>:<id>``: TMDB -> IMDb translations

    Adapters: DiskcacheAdapter (SQLite, survives restarts) and
    MemoryCacheAdapter (per process). Both work as async context managers.
    """

    async def get(self, key: str) -> Any:
        """Stored value, or None when absent or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store *value*; ``ttl=None`` falls back to the adapter default."""
        ...

    async def delete(self, key: str) -> bool:
        """True if something was removed."""
        ...

    async def exists(self, key: str) -> bool: ...

    async def clear(self) -> None: ...

    async def aclose(self) -> None:
        """Release the backend (closes the SQLite handle for diskcache)."""
        ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
