"""Catalog aggregation use case: home rows and search.

Two modes, selected from the stored configuration on every call:

- TMDB mode (metadata provider enabled and keyed): six fixed categories,
  followed by a detached backdrop-enhancement pass.
- Addon mode: one row per enabled catalog of every installed addon.

Results are cached under the configuration signature they were computed
with; a completion whose signature is no longer current is returned to its
caller but never written to the cache.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from functools import partial
from typing import Protocol

import structlog

from catalogarr.application.config_signature import compute_signature
from catalogarr.domain.entities.addon import Addon, AddonConfig, Catalog
from catalogarr.domain.entities.errors import EmptyResultError
from catalogarr.domain.entities.media import AggregatedRow, MediaItem, TmdbTitle
from catalogarr.domain.entities.query import QueryKey
from catalogarr.domain.ports.addon_client import AddonClientPort
from catalogarr.domain.ports.concurrency import TaskGroupPort
from catalogarr.domain.ports.config_store import ConfigStorePort
from catalogarr.domain.ports.tmdb import TmdbClientFactory, TmdbClientPort

log = structlog.get_logger(__name__)


class _RowCache(Protocol):
    """Signature-tagged row cache (see infrastructure.persistence.result_cache)."""

    async def get(
        self, key: QueryKey, signature: str
    ) -> list[AggregatedRow] | None: ...

    async def put(
        self, key: QueryKey, rows: list[AggregatedRow], signature: str
    ) -> None: ...


RowsListener = Callable[[list[AggregatedRow]], None]


@dataclass(frozen=True)
class TmdbCategory:
    id: str
    title: str
    path: str
    content_type: str


TMDB_CATEGORIES: tuple[TmdbCategory, ...] = (
    TmdbCategory(
        "trending_movies_week", "Trending Movies", "/trending/movie/week", "movie"
    ),
    TmdbCategory("popular_movies", "Popular Movies", "/movie/popular", "movie"),
    TmdbCategory("top_rated_movies", "Top Rated Movies", "/movie/top_rated", "movie"),
    TmdbCategory(
        "trending_tv_week", "Trending TV Shows", "/trending/tv/week", "series"
    ),
    TmdbCategory("popular_tv", "Popular TV Shows", "/tv/popular", "series"),
    TmdbCategory("top_rated_tv", "Top Rated TV Shows", "/tv/top_rated", "series"),
)  # fmt: skip

CINEMETA_ID = "community.cinemeta"

_TYPE_LABELS = {"movie": "Movies", "series": "TV Shows"}

_TYPE_HINTS = {
    "movie": re.compile(r"movie|film|cinema", re.IGNORECASE),
    "series": re.compile(r"\btv\b|series|show", re.IGNORECASE),
}

_NO_ADDONS = "No addons installed. Install an addon to browse content."
_NO_CATALOGS = "No catalogs selected. Enable at least one catalog in your addons."


# ---------------------------------------------------------------------------
# Row helpers
# ---------------------------------------------------------------------------


def type_label(content_type: str) -> str:
    return _TYPE_LABELS.get(content_type, content_type.replace("_", " ").title())


def _titleize(catalog_id: str) -> str:
    return re.sub(r"[-_.]+", " ", catalog_id).strip().title()


def _suggests_type(name: str, content_type: str) -> bool:
    hint = _TYPE_HINTS.get(content_type)
    if hint is None:
        return content_type.lower() in name.lower()
    return hint.search(name) is not None


def row_title(addon: Addon, catalog: Catalog) -> str:
    """``"{display name} • {addon name}"``.

    A type suffix is only added when the addon's enabled catalogs span
    several content types and the name does not already suggest the type.
    """
    display = catalog.name or _titleize(catalog.catalog_id)
    enabled_types = {c.content_type for c in addon.enabled_catalogs()}
    if len(enabled_types) > 1 and not _suggests_type(display, catalog.content_type):
        display = f"{display} {type_label(catalog.content_type)}"
    return f"{display} • {addon.name}"


def is_cinemeta(addon: Addon) -> bool:
    return addon.id == CINEMETA_ID or "cinemeta" in addon.name.lower()


def finalize_rows(rows: list[AggregatedRow]) -> list[AggregatedRow]:
    """Drop imageless items, dedupe by id per row, drop empty rows, sort."""
    result: list[AggregatedRow] = []
    for row in rows:
        seen: set[str] = set()
        items: list[MediaItem] = []
        for item in row.items:
            if not item.image_url or item.id in seen:
                continue
            seen.add(item.id)
            items.append(item)
        if items:
            result.append(replace(row, items=tuple(items)))
    result.sort(key=lambda r: r.title.casefold())
    return result


def _tmdb_item(title: TmdbTitle, *, prefer_poster: bool = False) -> MediaItem | None:
    if prefer_poster:
        image = title.poster_url or title.backdrop_url
    else:
        image = title.backdrop_url or title.poster_url
    if not image:
        return None
    return MediaItem(
        id=f"tmdb:{title.tmdb_id}",
        image_url=image,
        title=title.title,
        content_type=title.content_type,
        loading=not prefer_poster,
    )


# ---------------------------------------------------------------------------
# Use case
# ---------------------------------------------------------------------------


class CatalogAggregatorUseCase:
    """Builds home rows and search rows across all configured providers.

    Flow (home):
        1. load config, compute signature, serve cache hit if current
        2. fan out to TMDB categories or enabled addon catalogs
        3. filter, dedupe, sort; raise EmptyResultError on nothing
        4. commit to cache if the signature is still current
        5. (TMDB mode) start the detached backdrop enhancement pass
    """

    def __init__(
        self,
        *,
        store: ConfigStorePort,
        addons: AddonClientPort,
        cache: _RowCache,
        tasks: TaskGroupPort,
        tmdb_factory: TmdbClientFactory | None = None,
        enhance_batch_size: int = 3,
        enhance_batch_delay: float = 0.2,
        on_rows_updated: RowsListener | None = None,
    ) -> None:
        self._store = store
        self._addons = addons
        self._cache = cache
        self._tasks = tasks
        self._tmdb_factory = tmdb_factory
        self._batch_size = max(1, enhance_batch_size)
        self._batch_delay = enhance_batch_delay
        self._on_rows_updated = on_rows_updated
        self._background: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def home_rows(self) -> list[AggregatedRow]:
        config = self._store.load()
        signature = compute_signature(config)
        key = QueryKey.home()

        cached = await self._cache.get(key, signature)
        if cached is not None:
            self._resume_enhancement(config, cached, signature)
            return cached

        client: TmdbClientPort | None = None
        provider = config.metadata_provider
        if provider.active and self._tmdb_factory is not None:
            client = self._tmdb_factory(provider.api_key or "")
            rows = finalize_rows(await self._tmdb_home(client))
            if not rows:
                raise EmptyResultError("Could not load content from TMDB.")
        else:
            rows = finalize_rows(await self._addon_home(config))
            if not rows:
                raise EmptyResultError(
                    "No content could be loaded from your addons. "
                    "Check that they are reachable."
                )

        log.info(
            "home_rows_built",
            rows=len(rows),
            items=sum(len(r.items) for r in rows),
            mode="addon" if client is None else "tmdb",
        )
        await self._commit(key, rows, signature)

        if client is not None:
            self._start_enhancement(client, rows, signature)
        return rows

    async def search(self, query: str) -> list[AggregatedRow]:
        query = query.strip()
        if not query:
            return []

        config = self._store.load()
        signature = compute_signature(config)
        key = QueryKey.search(query)

        cached = await self._cache.get(key, signature)
        if cached is not None:
            return cached

        provider = config.metadata_provider
        if provider.active and self._tmdb_factory is not None:
            rows = await self._tmdb_search(
                self._tmdb_factory(provider.api_key or ""), query
            )
        else:
            rows = await self._addon_search(config, query)

        rows = finalize_rows(rows)
        if not rows:
            raise EmptyResultError(f'No results found for "{query}".')

        log.info("search_rows_built", query=query, rows=len(rows))
        await self._commit(key, rows, signature)
        return rows

    async def wait_background(self) -> None:
        """Wait for running enhancement passes (tests, CLI shutdown)."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def aclose(self) -> None:
        for task in self._background:
            task.cancel()
        await self.wait_background()

    # ------------------------------------------------------------------
    # Addon mode
    # ------------------------------------------------------------------

    async def _addon_home(self, config: AddonConfig) -> list[AggregatedRow]:
        if not config.addons:
            raise EmptyResultError(_NO_ADDONS, reason="nothing_configured")

        jobs = [
            (addon, catalog)
            for addon in config.addons
            for catalog in addon.enabled_catalogs()
        ]
        if not jobs:
            raise EmptyResultError(_NO_CATALOGS, reason="nothing_configured")

        outcomes = await self._tasks.fan_out_collect_all(
            [
                partial(
                    self._addons.fetch_catalog,
                    addon.base_url,
                    catalog.content_type,
                    catalog.catalog_id,
                )
                for addon, catalog in jobs
            ]
        )

        rows: list[AggregatedRow] = []
        for (addon, catalog), outcome in zip(jobs, outcomes):
            if not outcome.ok:
                log.warning(
                    "addon_catalog_failed",
                    addon_id=addon.id,
                    catalog=catalog.key,
                    error=str(outcome.error),
                )
                continue
            items = [i for i in outcome.value or [] if i.image_url and i.content_type]
            rows.append(
                AggregatedRow(
                    row_id=f"{addon.id}-{catalog.key}",
                    title=row_title(addon, catalog),
                    items=tuple(items),
                    origin="addon",
                    addon_id=addon.id,
                )
            )
        return rows

    async def _addon_search(
        self, config: AddonConfig, query: str
    ) -> list[AggregatedRow]:
        if not config.addons:
            raise EmptyResultError(_NO_ADDONS, reason="nothing_configured")

        cinemeta = next((a for a in config.addons if is_cinemeta(a)), None)
        if cinemeta is not None:
            jobs = [
                (cinemeta, Catalog("movie", "top")),
                (cinemeta, Catalog("series", "top")),
            ]
        else:
            jobs = [
                (addon, catalog)
                for addon in config.addons
                for catalog in addon.enabled_catalogs()
            ]
        if not jobs:
            raise EmptyResultError(_NO_CATALOGS, reason="nothing_configured")

        outcomes = await self._tasks.fan_out_collect_all(
            [
                partial(
                    self._addons.fetch_catalog,
                    addon.base_url,
                    catalog.content_type,
                    catalog.catalog_id,
                    search=query,
                )
                for addon, catalog in jobs
            ]
        )

        seen: set[str] = set()
        by_type: dict[str, list[MediaItem]] = {}
        for (addon, catalog), outcome in zip(jobs, outcomes):
            if not outcome.ok:
                log.warning(
                    "addon_search_failed",
                    addon_id=addon.id,
                    catalog=catalog.key,
                    error=str(outcome.error),
                )
                continue
            for item in outcome.value or []:
                if not item.image_url or item.id in seen:
                    continue
                seen.add(item.id)
                content_type = item.content_type or catalog.content_type
                by_type.setdefault(content_type, []).append(
                    replace(item, content_type=content_type)
                )

        return [
            AggregatedRow(
                row_id=f"search-{content_type}",
                title=type_label(content_type),
                items=tuple(items),
                origin="addon",
            )
            for content_type, items in by_type.items()
        ]

    # ------------------------------------------------------------------
    # TMDB mode
    # ------------------------------------------------------------------

    async def _tmdb_home(self, client: TmdbClientPort) -> list[AggregatedRow]:
        outcomes = await self._tasks.fan_out_collect_all(
            [
                partial(client.list_category, category.path, category.content_type)
                for category in TMDB_CATEGORIES
            ]
        )

        rows: list[AggregatedRow] = []
        for category, outcome in zip(TMDB_CATEGORIES, outcomes):
            if not outcome.ok:
                log.warning(
                    "tmdb_category_failed",
                    category=category.id,
                    error=str(outcome.error),
                )
                continue
            items = [_tmdb_item(t) for t in outcome.value or []]
            rows.append(
                AggregatedRow(
                    row_id=f"tmdb-{category.id}",
                    title=f"{category.title} • TMDB",
                    items=tuple(i for i in items if i is not None),
                    origin="tmdb",
                )
            )
        return rows

    async def _tmdb_search(
        self, client: TmdbClientPort, query: str
    ) -> list[AggregatedRow]:
        content_types = ("movie", "series")
        outcomes = await self._tasks.fan_out_collect_all(
            [partial(client.search, query, ct) for ct in content_types]
        )

        seen: set[str] = set()
        rows: list[AggregatedRow] = []
        for content_type, outcome in zip(content_types, outcomes):
            if not outcome.ok:
                log.warning(
                    "tmdb_search_failed",
                    content_type=content_type,
                    error=str(outcome.error),
                )
                continue
            items: list[MediaItem] = []
            for title in outcome.value or []:
                item = _tmdb_item(title, prefer_poster=True)
                if item is not None and item.id not in seen:
                    seen.add(item.id)
                    items.append(item)
            rows.append(
                AggregatedRow(
                    row_id=f"search-{content_type}",
                    title=type_label(content_type),
                    items=tuple(items),
                    origin="tmdb",
                )
            )
        return rows

    # ------------------------------------------------------------------
    # Cache commit + background enhancement
    # ------------------------------------------------------------------

    def _is_current(self, signature: str) -> bool:
        return compute_signature(self._store.load()) == signature

    async def _commit(
        self, key: QueryKey, rows: list[AggregatedRow], signature: str
    ) -> bool:
        if not self._is_current(signature):
            log.info("result_cache_write_discarded", key=key.storage_key)
            return False
        await self._cache.put(key, rows, signature)
        return True

    def _start_enhancement(
        self, client: TmdbClientPort, rows: list[AggregatedRow], signature: str
    ) -> None:
        task = asyncio.create_task(self._enhance(client, rows, signature))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _resume_enhancement(
        self, config: AddonConfig, rows: list[AggregatedRow], signature: str
    ) -> None:
        """Restart an interrupted pass for cached rows that are still loading."""
        provider = config.metadata_provider
        if self._background or self._tmdb_factory is None or not provider.active:
            return
        if not any(item.loading for row in rows for item in row.items):
            return
        log.info("enhancement_resumed", rows=len(rows))
        self._start_enhancement(
            self._tmdb_factory(provider.api_key or ""), rows, signature
        )

    async def _enhance(
        self, client: TmdbClientPort, rows: list[AggregatedRow], signature: str
    ) -> None:
        """Replace loading item images with the best backdrop, batch by batch.

        After each batch the updated rows are committed and published; the
        pass stops as soon as the configuration changes.
        """
        current = list(rows)
        try:
            for row_index, row in enumerate(rows):
                items = list(row.items)
                pending = [i for i, item in enumerate(items) if item.loading]
                for start in range(0, len(pending), self._batch_size):
                    if not self._is_current(signature):
                        log.info("enhancement_abandoned", row_id=row.row_id)
                        return

                    batch = pending[start : start + self._batch_size]
                    outcomes = await self._tasks.fan_out_collect_all(
                        [
                            partial(
                                client.best_backdrop,
                                int(items[i].id.split(":", 1)[1]),
                                items[i].content_type,
                            )
                            for i in batch
                        ]
                    )
                    for i, outcome in zip(batch, outcomes):
                        image = outcome.value if outcome.ok and outcome.value else None
                        item = items[i]
                        items[i] = replace(
                            item, image_url=image or item.image_url, loading=False
                        )

                    current[row_index] = replace(row, items=tuple(items))
                    snapshot = list(current)
                    if not await self._commit(QueryKey.home(), snapshot, signature):
                        return
                    if self._on_rows_updated is not None:
                        self._on_rows_updated(snapshot)

                    await asyncio.sleep(self._batch_delay)
            log.info("enhancement_completed", rows=len(rows))
        except asyncio.CancelledError:
            raise
        except Exception:
            log.error("enhancement_failed", exc_info=True)
