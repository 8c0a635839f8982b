"""Signature-tagged cache of aggregated rows.

Two tiers: an in-memory map consulted first, and a persistent CachePort
backend written through on every ``put``.  An entry is only served while its
stored configuration signature equals the caller's current one; a mismatch
evicts it from both tiers.

The backend is best-effort: the first failure is logged and the instance
continues memory-only for the rest of the session.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from catalogarr.domain.entities.media import AggregatedRow, MediaItem
from catalogarr.domain.entities.query import QueryKey
from catalogarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


def _serialize_rows(signature: str, rows: list[AggregatedRow]) -> str:
    return json.dumps(
        {
            "signature": signature,
            "rows": [
                {
                    "row_id": row.row_id,
                    "title": row.title,
                    "origin": row.origin,
                    "addon_id": row.addon_id,
                    "items": [
                        {
                            "id": item.id,
                            "image_url": item.image_url,
                            "title": item.title,
                            "content_type": item.content_type,
                            "loading": item.loading,
                        }
                        for item in row.items
                    ],
                }
                for row in rows
            ],
        }
    )


def _deserialize_rows(data: str) -> tuple[str, list[AggregatedRow]]:
    d: dict[str, Any] = json.loads(data)
    rows = [
        AggregatedRow(
            row_id=r["row_id"],
            title=r["title"],
            origin=r["origin"],
            addon_id=r.get("addon_id"),
            items=tuple(
                MediaItem(
                    id=i["id"],
                    image_url=i["image_url"],
                    title=i.get("title", ""),
                    content_type=i.get("content_type", ""),
                    loading=i.get("loading", False),
                )
                for i in r["items"]
            ),
        )
        for r in d["rows"]
    ]
    return d["signature"], rows


class ResultCache:
    """(QueryKey, signature) -> rows, memory first, backend write-through."""

    def __init__(self, backend: CachePort | None = None, ttl_seconds: int = 0) -> None:
        self._backend = backend
        self._ttl = ttl_seconds or None
        self._memory: dict[QueryKey, tuple[str, list[AggregatedRow]]] = {}

    @property
    def persistent(self) -> bool:
        return self._backend is not None

    def _degrade(self, operation: str) -> None:
        log.warning("result_cache_backend_failed", operation=operation, exc_info=True)
        log.warning("result_cache_memory_only")
        self._backend = None

    async def get(self, key: QueryKey, signature: str) -> list[AggregatedRow] | None:
        entry = self._memory.get(key)
        if entry is not None:
            stored_signature, rows = entry
            if stored_signature == signature:
                log.debug("result_cache_hit", key=key.storage_key, tier="memory")
                return list(rows)
            log.debug("result_cache_stale", key=key.storage_key)
            await self.invalidate(key)
            return None

        if self._backend is None:
            return None

        try:
            raw = await self._backend.get(key.storage_key)
        except Exception:
            self._degrade("get")
            return None
        if raw is None:
            return None

        try:
            stored_signature, rows = _deserialize_rows(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error(
                "result_cache_deserialize_error", key=key.storage_key, error=str(e)
            )
            await self.invalidate(key)
            return None

        if stored_signature != signature:
            log.debug("result_cache_stale", key=key.storage_key)
            await self.invalidate(key)
            return None

        self._memory[key] = (stored_signature, rows)
        log.debug("result_cache_hit", key=key.storage_key, tier="backend")
        return list(rows)

    async def put(
        self, key: QueryKey, rows: list[AggregatedRow], signature: str
    ) -> None:
        self._memory[key] = (signature, list(rows))
        if self._backend is None:
            return
        try:
            await self._backend.set(
                key.storage_key, _serialize_rows(signature, rows), ttl=self._ttl
            )
        except Exception:
            self._degrade("set")

    async def invalidate(self, key: QueryKey) -> None:
        self._memory.pop(key, None)
        if self._backend is None:
            return
        try:
            await self._backend.delete(key.storage_key)
        except Exception:
            self._degrade("delete")

    async def clear(self) -> None:
        self._memory.clear()
        if self._backend is None:
            return
        try:
            await self._backend.clear()
        except Exception:
            self._degrade("clear")
