"""Addon protocol client (async httpx implementation).

Endpoints (relative to the addon base URL, segments URL-encoded):

    /catalog/{type}/{id}.json
    /catalog/{type}/{id}/search={query}.json
    /meta/{type}/{id}.json
    /meta/series/{id}/season={n}.json
    /stream/{type}/{video_id}.json

Every failure mode (status, transport, timeout, bad JSON, shape mismatch)
is raised as ``TransientProviderError``.
"""

from __future__ import annotations

from typing import TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from catalogarr.domain.entities.addon import Addon
from catalogarr.domain.entities.errors import TransientProviderError
from catalogarr.domain.entities.media import (
    AddonStream,
    ContentRecord,
    EpisodeRecord,
    MediaItem,
)
from catalogarr.infrastructure.addons.schemas import (
    CatalogResponse,
    LegacyEpisodesResponse,
    LegacySeasonsResponse,
    ManifestModel,
    MetaResponse,
    SeasonMetaResponse,
    StreamResponse,
)

log = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _seg(value: str) -> str:
    # ":" is legal in a path segment and used by series video ids (tt1:1:2).
    return quote(value, safe=":")


class HttpxAddonClient:
    """Implements ``AddonClientPort`` over a shared ``httpx.AsyncClient``."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_model(self, url: str, model: type[ModelT]) -> ModelT:
        try:
            resp = await self._http.get(url)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as exc:
            raise TransientProviderError(
                f"HTTP {exc.response.status_code} from {url}", url=url
            ) from exc
        except httpx.HTTPError as exc:
            raise TransientProviderError(
                f"Request to {url} failed: {exc.__class__.__name__}", url=url
            ) from exc
        except ValueError as exc:
            raise TransientProviderError(f"Malformed JSON from {url}", url=url) from exc

        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise TransientProviderError(
                f"Unexpected response shape from {url}", url=url
            ) from exc

    @staticmethod
    def _url(base_url: str, *parts: str) -> str:
        return base_url.rstrip("/") + "/" + "/".join(parts)

    # ------------------------------------------------------------------
    # Public API (AddonClientPort)
    # ------------------------------------------------------------------

    async def fetch_manifest(self, manifest_url: str) -> Addon:
        manifest = await self._get_model(manifest_url, ManifestModel)
        log.debug("addon_manifest_fetched", url=manifest_url, addon_id=manifest.id)
        return manifest.to_addon(manifest_url)

    async def fetch_catalog(
        self,
        base_url: str,
        content_type: str,
        catalog_id: str,
        *,
        search: str | None = None,
    ) -> list[MediaItem]:
        if search is None:
            leaf = f"{_seg(catalog_id)}.json"
            url = self._url(base_url, "catalog", _seg(content_type), leaf)
        else:
            leaf = f"search={_seg(search)}.json"
            url = self._url(
                base_url, "catalog", _seg(content_type), _seg(catalog_id), leaf
            )
        response = await self._get_model(url, CatalogResponse)
        return response.items()

    async def fetch_meta(
        self, base_url: str, content_type: str, content_id: str
    ) -> ContentRecord | None:
        url = self._url(
            base_url, "meta", _seg(content_type), f"{_seg(content_id)}.json"
        )
        response = await self._get_model(url, MetaResponse)
        if response.meta is None:
            return None
        return response.meta.to_record()

    async def fetch_season(
        self, base_url: str, series_id: str, season: int
    ) -> list[EpisodeRecord]:
        url = self._url(
            base_url, "meta", "series", _seg(series_id), f"season={season}.json"
        )
        response = await self._get_model(url, SeasonMetaResponse)
        return response.to_episodes(series_id, season)

    async def fetch_legacy_seasons(self, base_url: str, series_id: str) -> list[int]:
        url = self._url(base_url, "series", _seg(series_id), "seasons.json")
        response = await self._get_model(url, LegacySeasonsResponse)
        return response.to_numbers()

    async def fetch_legacy_episodes(
        self, base_url: str, series_id: str, season: int
    ) -> list[EpisodeRecord]:
        """Try the two legacy layouts in order; first non-empty wins."""
        urls = [
            self._url(
                base_url,
                "series",
                _seg(series_id),
                "seasons",
                str(season),
                "episodes.json",
            ),
            self._url(base_url, "episodes", _seg(series_id), f"{season}.json"),
        ]
        last_error: TransientProviderError | None = None
        for url in urls:
            try:
                response = await self._get_model(url, LegacyEpisodesResponse)
            except TransientProviderError as exc:
                last_error = exc
                continue
            episodes = response.to_episodes(series_id, season)
            if episodes:
                return episodes
        if last_error is not None:
            raise last_error
        return []

    async def fetch_streams(
        self, base_url: str, content_type: str, video_id: str
    ) -> list[AddonStream]:
        url = self._url(
            base_url, "stream", _seg(content_type), f"{_seg(video_id)}.json"
        )
        response = await self._get_model(url, StreamResponse)
        return [s.to_stream() for s in response.streams]
