"""Port for the addon HTTP protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from catalogarr.domain.entities.addon import Addon
from catalogarr.domain.entities.media import (
    AddonStream,
    ContentRecord,
    EpisodeRecord,
    MediaItem,
)


@runtime_checkable
class AddonClientPort(Protocol):
    """Async interface for talking to an addon.

    Every method raises ``TransientProviderError`` on transport errors,
    non-2xx responses, timeouts and malformed payloads.
    """

    async def fetch_manifest(self, manifest_url: str) -> Addon:
        """Fetch and parse a manifest. No catalogs are enabled yet."""
        ...

    async def fetch_catalog(
        self,
        base_url: str,
        content_type: str,
        catalog_id: str,
        *,
        search: str | None = None,
    ) -> list[MediaItem]:
        """Catalog (or catalog search) entries, unfiltered."""
        ...

    async def fetch_meta(
        self, base_url: str, content_type: str, content_id: str
    ) -> ContentRecord | None:
        """Detail record, or None if the addon has no usable record."""
        ...

    async def fetch_season(
        self, base_url: str, series_id: str, season: int
    ) -> list[EpisodeRecord]:
        """Episodes from the ``season=N`` meta endpoint."""
        ...

    async def fetch_legacy_seasons(self, base_url: str, series_id: str) -> list[int]:
        """Season numbers from the legacy ``/series/{id}/seasons.json`` path."""
        ...

    async def fetch_legacy_episodes(
        self, base_url: str, series_id: str, season: int
    ) -> list[EpisodeRecord]:
        """Episodes from the legacy per-season paths."""
        ...

    async def fetch_streams(
        self, base_url: str, content_type: str, video_id: str
    ) -> list[AddonStream]:
        """Raw stream entries for a video id."""
        ...
