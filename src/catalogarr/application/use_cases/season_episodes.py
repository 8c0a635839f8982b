"""Season and episode listing for series.

Addons expose episodes in several layouts; each call walks a fixed chain
of endpoints and takes the first non-empty answer.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from catalogarr.domain.entities.errors import EmptyResultError, TransientProviderError
from catalogarr.domain.entities.media import EpisodeRecord, MetadataResult
from catalogarr.domain.ports.addon_client import AddonClientPort

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SeasonListing:
    seasons: tuple[int, ...] = ()
    selected_season: int | None = None
    episodes: tuple[EpisodeRecord, ...] = ()


class SeasonEpisodeResolverUseCase:
    def __init__(self, *, addons: AddonClientPort) -> None:
        self._addons = addons

    async def list_seasons(self, base_url: str, series_id: str) -> list[int]:
        """Distinct season numbers, sorted; ``[1]`` when nothing is known."""
        try:
            record = await self._addons.fetch_meta(base_url, "series", series_id)
        except TransientProviderError as exc:
            log.warning("addon_meta_failed", base_url=base_url, error=str(exc))
            record = None
        if record is not None and record.seasons:
            return list(record.seasons)

        try:
            seasons = await self._addons.fetch_legacy_seasons(base_url, series_id)
        except TransientProviderError as exc:
            log.debug("legacy_seasons_failed", base_url=base_url, error=str(exc))
            seasons = []
        return seasons or [1]

    async def list_episodes(
        self, base_url: str, series_id: str, season: int
    ) -> list[EpisodeRecord]:
        try:
            episodes = await self._addons.fetch_season(base_url, series_id, season)
        except TransientProviderError as exc:
            log.debug("season_meta_failed", base_url=base_url, error=str(exc))
            episodes = []

        if not episodes:
            try:
                episodes = await self._addons.fetch_legacy_episodes(
                    base_url, series_id, season
                )
            except TransientProviderError as exc:
                log.debug("legacy_episodes_failed", base_url=base_url, error=str(exc))

        if not episodes:
            try:
                record = await self._addons.fetch_meta(base_url, "series", series_id)
            except TransientProviderError as exc:
                log.warning("addon_meta_failed", base_url=base_url, error=str(exc))
                record = None
            if record is not None:
                episodes = [v for v in record.videos if v.season == season]

        if not episodes:
            raise EmptyResultError(f"No episode information for season {season}.")
        return episodes

    async def for_result(
        self, result: MetadataResult, season: int | None = None
    ) -> SeasonListing:
        """Seasons plus the episodes of *season* (or the first one available)."""
        record = result.record
        if record.content_type != "series" or not result.addon_base_url:
            return SeasonListing()

        if record.seasons:
            seasons = list(record.seasons)
        else:
            seasons = await self.list_seasons(result.addon_base_url, record.id)

        selected = season if season in seasons else seasons[0]
        episodes = await self.list_episodes(result.addon_base_url, record.id, selected)
        return SeasonListing(
            seasons=tuple(seasons),
            selected_season=selected,
            episodes=tuple(episodes),
        )
