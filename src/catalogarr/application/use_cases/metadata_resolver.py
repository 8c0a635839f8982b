"""Metadata resolution: the detail record for one movie or series.

Addons that declare ``meta`` for the content type are tried in order (the
hint addon first).  The first *complete* record wins and no further addon
is called; otherwise the best partial record is kept.  If no addon returns
anything usable, enabled catalogs are scanned for a matching item and a
basic record is built from it.
"""

from __future__ import annotations

from functools import partial

import structlog

from catalogarr.application.id_translation import IdTranslator
from catalogarr.domain.entities.addon import Addon, AddonConfig, Catalog
from catalogarr.domain.entities.errors import EmptyResultError, TranslationError
from catalogarr.domain.entities.media import ContentRecord, MediaItem, MetadataResult
from catalogarr.domain.ports.addon_client import AddonClientPort
from catalogarr.domain.ports.concurrency import TaskGroupPort
from catalogarr.domain.ports.config_store import ConfigStorePort
from catalogarr.domain.ports.tmdb import TmdbClientFactory

log = structlog.get_logger(__name__)


def improves(candidate: ContentRecord, best: ContentRecord | None) -> bool:
    """True if *candidate* fills an artwork/description gap of *best*."""
    if best is None:
        return True
    return (
        (bool(candidate.description) and not best.description)
        or (bool(candidate.background) and not best.background)
        or (bool(candidate.poster) and not best.poster)
    )


def _basic_record(item: MediaItem, content_type: str) -> ContentRecord:
    return ContentRecord(
        id=item.id,
        content_type=item.content_type or content_type,
        title=item.title,
        poster=item.image_url,
    )


class MetadataResolverUseCase:
    """Resolves ``(content_type, content_id)`` to a MetadataResult."""

    def __init__(
        self,
        *,
        store: ConfigStorePort,
        addons: AddonClientPort,
        tasks: TaskGroupPort,
        tmdb_factory: TmdbClientFactory | None = None,
        window: int = 1,
    ) -> None:
        self._store = store
        self._addons = addons
        self._tasks = tasks
        self._tmdb_factory = tmdb_factory
        self._window = max(1, window)

    async def resolve(
        self,
        content_id: str,
        content_type: str,
        preferred_addon_id: str | None = None,
    ) -> MetadataResult:
        config = self._store.load()
        translator = IdTranslator(config.metadata_provider, self._tmdb_factory)

        candidates = self._candidates(config, content_type, preferred_addon_id)
        result = await self._from_meta(candidates, translator, content_type, content_id)
        if result is not None:
            return result

        result = await self._from_catalogs(
            config, content_type, content_id, preferred_addon_id
        )
        if result is not None:
            return result

        log.info(
            "metadata_not_found", content_type=content_type, content_id=content_id
        )
        raise EmptyResultError(
            f"Could not find details for {content_type}/{content_id} in any addon",
            reason="nothing_configured" if not config.addons else "nothing_returned",
        )

    # ------------------------------------------------------------------
    # Meta endpoint race
    # ------------------------------------------------------------------

    @staticmethod
    def _candidates(
        config: AddonConfig, content_type: str, preferred_addon_id: str | None
    ) -> list[Addon]:
        # id prefixes are checked after translation
        capable = [a for a in config.addons if a.supports("meta", content_type)]
        if preferred_addon_id:
            capable.sort(key=lambda a: a.id != preferred_addon_id)
        return capable

    async def _fetch_meta(
        self,
        addon: Addon,
        translator: IdTranslator,
        content_type: str,
        content_id: str,
    ) -> ContentRecord | None:
        if not translator.reachable(addon, "meta", content_type, content_id):
            return None
        try:
            query_id = await translator.for_addon(
                addon, "meta", content_type, content_id
            )
        except TranslationError as exc:
            log.info("addon_meta_skipped", addon_id=addon.id, reason=str(exc))
            return None
        if not addon.supports("meta", content_type, query_id):
            return None
        return await self._addons.fetch_meta(addon.base_url, content_type, query_id)

    async def _from_meta(
        self,
        candidates: list[Addon],
        translator: IdTranslator,
        content_type: str,
        content_id: str,
    ) -> MetadataResult | None:
        if not candidates:
            return None

        winner, outcomes = await self._tasks.race_to_first_complete(
            [
                partial(self._fetch_meta, addon, translator, content_type, content_id)
                for addon in candidates
            ],
            lambda record: record is not None and record.complete,
            window=self._window,
        )

        if winner is not None:
            addon = candidates[winner]
            record = outcomes[winner].value  # type: ignore[union-attr]
            log.info("metadata_resolved", addon_id=addon.id, content_id=content_id)
            return MetadataResult(
                record=record,  # type: ignore[arg-type]
                addon_id=addon.id,
                addon_base_url=addon.base_url,
            )

        best: tuple[Addon, ContentRecord] | None = None
        for addon, outcome in zip(candidates, outcomes):
            if outcome is None:
                continue
            if not outcome.ok:
                log.warning(
                    "addon_meta_failed", addon_id=addon.id, error=str(outcome.error)
                )
                continue
            record = outcome.value
            if record is not None and improves(record, best[1] if best else None):
                best = (addon, record)

        if best is None:
            return None
        addon, record = best
        log.info("metadata_partial", addon_id=addon.id, content_id=content_id)
        return MetadataResult(
            record=record,
            partial=True,
            addon_id=addon.id,
            addon_base_url=addon.base_url,
        )

    # ------------------------------------------------------------------
    # Catalog scan fallback
    # ------------------------------------------------------------------

    async def _find_in_catalog(
        self, addon: Addon, catalog: Catalog, content_id: str
    ) -> MediaItem | None:
        items = await self._addons.fetch_catalog(
            addon.base_url, catalog.content_type, catalog.catalog_id
        )
        return next((i for i in items if i.id == content_id), None)

    async def _from_catalogs(
        self,
        config: AddonConfig,
        content_type: str,
        content_id: str,
        preferred_addon_id: str | None,
    ) -> MetadataResult | None:
        addons = list(config.addons)
        if preferred_addon_id:
            addons = [a for a in addons if a.id == preferred_addon_id]

        jobs = [
            (addon, catalog)
            for addon in addons
            for catalog in addon.enabled_catalogs()
            if catalog.content_type == content_type
        ]
        if not jobs:
            return None

        winner, outcomes = await self._tasks.race_to_first_complete(
            [
                partial(self._find_in_catalog, addon, catalog, content_id)
                for addon, catalog in jobs
            ],
            lambda item: item is not None,
            window=1,
        )
        if winner is None:
            return None

        addon, catalog = jobs[winner]
        item: MediaItem = outcomes[winner].value  # type: ignore[union-attr,assignment]
        log.info(
            "metadata_from_catalog",
            addon_id=addon.id,
            catalog=catalog.key,
            content_id=content_id,
        )
        return MetadataResult(
            record=_basic_record(item, content_type),
            partial=True,
            source="catalog",
            addon_id=addon.id,
            addon_base_url=addon.base_url,
        )
