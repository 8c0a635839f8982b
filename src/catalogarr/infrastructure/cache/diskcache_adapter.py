"""Diskcache adapter - SQLite-backed persistent cache without a daemon."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)


class DiskcacheAdapter:
    """Async wrapper for diskcache.Cache (sync-only library).

    - Disk I/O runs in ``asyncio.to_thread`` so the event loop never blocks.
    - A semaphore caps parallel SQLite operations (lock contention).
    - Opened lazily on first use or explicitly via ``async with``.

    Args:
        directory: SQLite directory (default: ``./.cache/catalogarr``).
        ttl_seconds: Default TTL for ``set()`` without explicit value.
            ``0`` stores entries without expiry.
        max_concurrent: Max parallel disk ops.
    """

    def __init__(
        self,
        directory: str | Path = "./.cache/catalogarr",
        ttl_seconds: int = 0,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._cache: DiskCache | None = None
        self._open_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def _ensure_open(self) -> DiskCache:
        if self._cache is None:
            async with self._open_lock:
                if self._cache is None:
                    self._cache = await asyncio.to_thread(
                        DiskCache, str(self.directory)
                    )
                    log.info("diskcache_opened", directory=str(self.directory))
        return self._cache

    # --- Context Manager ---
    async def __aenter__(self) -> DiskcacheAdapter:
        await self._ensure_open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("diskcache_closed", directory=str(self.directory))

    # --- CachePort implementation ---
    async def get(self, key: str) -> Any | None:
        cache = await self._ensure_open()
        async with self._semaphore:
            value = await asyncio.to_thread(cache.get, key, None)
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        cache = await self._ensure_open()
        expire_time = ttl if ttl is not None else self.default_ttl
        async with self._semaphore:
            await asyncio.to_thread(
                cache.set, key, value, expire_time or None
            )
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        cache = await self._ensure_open()
        async with self._semaphore:
            deleted = await asyncio.to_thread(cache.delete, key)
        log.debug("cache_delete", key=key, deleted=deleted)
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        cache = await self._ensure_open()
        async with self._semaphore:
            # __contains__ honours expiry
            return await asyncio.to_thread(cache.__contains__, key)

    async def clear(self) -> None:
        cache = await self._ensure_open()
        async with self._semaphore:
            await asyncio.to_thread(cache.clear)
        log.warning("cache_cleared", directory=str(self.directory))
