"""Port for TMDB API operations."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from catalogarr.domain.entities.media import TmdbTitle


@runtime_checkable
class TmdbClientPort(Protocol):
    """Async interface for TMDB lookups.

    Methods raise ``TransientProviderError`` when a request fails.
    """

    async def list_category(self, path: str, content_type: str) -> list[TmdbTitle]:
        """First page of a listing endpoint such as ``/movie/popular``."""
        ...

    async def search(self, query: str, content_type: str) -> list[TmdbTitle]:
        """Search movies (``movie``) or TV shows (``series``)."""
        ...

    async def best_backdrop(self, tmdb_id: int, content_type: str) -> str | None:
        """Highest-voted backdrop URL, English preferred."""
        ...

    async def imdb_id(self, tmdb_id: int, content_type: str) -> str | None:
        """IMDb id from ``external_ids``, or None if TMDB has none."""
        ...


# Builds a client bound to an API key. The key lives in the config store
# and can change at runtime, so clients are created on demand.
TmdbClientFactory = Callable[[str], TmdbClientPort]
