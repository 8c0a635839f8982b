"""Tests for ResultCache (signature-tagged row cache)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from catalogarr.domain.entities import AggregatedRow, MediaItem, QueryKey
from catalogarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from catalogarr.infrastructure.persistence.result_cache import ResultCache

_ROWS = [
    AggregatedRow(
        row_id="a-movie/top",
        title="Top • A",
        items=(
            MediaItem("tt0111161", "https://img/1.jpg", "Shawshank", "movie"),
            MediaItem("tt0068646", "https://img/2.jpg", "Godfather", "movie", True),
        ),
        origin="addon",
        addon_id="a",
    )
]


@pytest.fixture()
def backend() -> MemoryCacheAdapter:
    return MemoryCacheAdapter()


@pytest.fixture()
def cache(backend: MemoryCacheAdapter) -> ResultCache:
    return ResultCache(backend)


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    async def test_put_then_get(self, cache: ResultCache) -> None:
        await cache.put(QueryKey.home(), _ROWS, "sig-1")
        assert await cache.get(QueryKey.home(), "sig-1") == _ROWS

    async def test_miss(self, cache: ResultCache) -> None:
        assert await cache.get(QueryKey.home(), "sig-1") is None

    async def test_backend_receives_json(
        self, cache: ResultCache, backend: MemoryCacheAdapter
    ) -> None:
        await cache.put(QueryKey.search("Matrix"), _ROWS, "sig-1")
        raw = await backend.get("rows:search:matrix")
        data = json.loads(raw)
        assert data["signature"] == "sig-1"
        assert data["rows"][0]["items"][1]["loading"] is True

    async def test_backend_tier_survives_new_instance(
        self, backend: MemoryCacheAdapter
    ) -> None:
        await ResultCache(backend).put(QueryKey.home(), _ROWS, "sig-1")
        fresh = ResultCache(backend)
        assert await fresh.get(QueryKey.home(), "sig-1") == _ROWS

    async def test_returned_list_is_a_copy(self, cache: ResultCache) -> None:
        await cache.put(QueryKey.home(), _ROWS, "sig-1")
        rows = await cache.get(QueryKey.home(), "sig-1")
        assert rows is not None
        rows.clear()
        assert await cache.get(QueryKey.home(), "sig-1") == _ROWS


# ---------------------------------------------------------------------------
# Signature eviction
# ---------------------------------------------------------------------------


class TestSignatureEviction:
    async def test_mismatch_is_miss_and_evicts(
        self, cache: ResultCache, backend: MemoryCacheAdapter
    ) -> None:
        await cache.put(QueryKey.home(), _ROWS, "sig-1")

        assert await cache.get(QueryKey.home(), "sig-2") is None
        assert await backend.get("rows:home:") is None
        # evicted for the old signature too
        assert await cache.get(QueryKey.home(), "sig-1") is None

    async def test_backend_mismatch_evicts(self, backend: MemoryCacheAdapter) -> None:
        await ResultCache(backend).put(QueryKey.home(), _ROWS, "sig-1")
        fresh = ResultCache(backend)
        assert await fresh.get(QueryKey.home(), "sig-2") is None
        assert await backend.get("rows:home:") is None

    async def test_corrupt_backend_entry(self, backend: MemoryCacheAdapter) -> None:
        await backend.set("rows:home:", "{not json")
        cache = ResultCache(backend)
        assert await cache.get(QueryKey.home(), "sig-1") is None
        assert await backend.get("rows:home:") is None


# ---------------------------------------------------------------------------
# Degradation
# ---------------------------------------------------------------------------


class TestDegradation:
    async def test_backend_failure_switches_to_memory(self) -> None:
        backend = AsyncMock()
        backend.set = AsyncMock(side_effect=OSError("disk full"))
        cache = ResultCache(backend)

        await cache.put(QueryKey.home(), _ROWS, "sig-1")

        assert not cache.persistent
        assert await cache.get(QueryKey.home(), "sig-1") == _ROWS
        backend.get.assert_not_awaited()

    async def test_backend_read_failure_is_a_miss(self) -> None:
        backend = AsyncMock()
        backend.get = AsyncMock(side_effect=OSError("locked"))
        cache = ResultCache(backend)

        assert await cache.get(QueryKey.home(), "sig-1") is None
        assert not cache.persistent

    async def test_memory_only(self) -> None:
        cache = ResultCache()
        await cache.put(QueryKey.home(), _ROWS, "sig-1")
        assert await cache.get(QueryKey.home(), "sig-1") == _ROWS


class TestInvalidate:
    async def test_invalidate_and_clear(
        self, cache: ResultCache, backend: MemoryCacheAdapter
    ) -> None:
        await cache.put(QueryKey.home(), _ROWS, "s")
        await cache.put(QueryKey.search("x"), _ROWS, "s")

        await cache.invalidate(QueryKey.home())
        assert await cache.get(QueryKey.home(), "s") is None
        assert await cache.get(QueryKey.search("x"), "s") == _ROWS

        await cache.clear()
        assert await cache.get(QueryKey.search("x"), "s") is None
