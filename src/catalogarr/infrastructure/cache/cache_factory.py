"""Cache factory - builds the CachePort adapter selected in the config."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import structlog

from catalogarr.domain.ports.cache import CachePort
from catalogarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from catalogarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "memory"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str | Path = "./.cache/catalogarr",
    ttl_seconds: int = 0,
    max_concurrent: int = 10,
) -> CachePort:
    """Create the cache adapter for *backend*.

    Args:
        backend: "diskcache" (SQLite, persistent) or "memory".
        directory: Diskcache path.
        ttl_seconds: Default TTL for both backends (0 = no expiry).
        max_concurrent: Semaphore limit for diskcache.

    Raises:
        ValueError: If ``backend`` is unknown.
    """
    if backend == "diskcache":
        log.info(
            "cache_factory_create",
            backend=backend,
            directory=str(directory),
            ttl=ttl_seconds,
            max_concurrent=max_concurrent,
        )
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    elif backend == "memory":
        log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
        return MemoryCacheAdapter(ttl_seconds=ttl_seconds)
    else:
        raise ValueError(
            f"Unknown cache backend: {backend!r}. Must be 'diskcache' or 'memory'."
        )
