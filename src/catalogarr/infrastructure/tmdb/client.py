"""TMDB API client: async httpx implementation with caching."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from catalogarr.domain.entities.errors import TransientProviderError
from catalogarr.domain.entities.media import TmdbTitle
from catalogarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"
_IMAGE_BASE = "https://image.tmdb.org/t/p"

# Cache TTLs (seconds)
_TTL_EXTERNAL_IDS = 86_400  # 24 hours


def _endpoint(content_type: str) -> str:
    """Our ``series`` maps to TMDB's ``tv``."""
    return "tv" if content_type == "series" else "movie"


class HttpxTmdbClient:
    """Async TMDB client using httpx + CachePort.

    Implements ``TmdbClientPort`` from domain.ports.tmdb.  The API key is
    sent as a query parameter and never logged.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        base_url: str = _BASE_URL,
        image_base_url: str = _IMAGE_BASE,
        language: str = "en-US",
        external_ids_ttl: int = _TTL_EXTERNAL_IDS,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._base_url = base_url.rstrip("/")
        self._image_base = image_base_url.rstrip("/")
        self._language = language
        self._external_ids_ttl = external_ids_ttl

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _params(self, **extra: Any) -> dict[str, Any]:
        return {"api_key": self._api_key, **extra}

    async def _get(self, path: str, **extra: Any) -> dict[str, Any]:
        """GET request; any failure is raised as TransientProviderError."""
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, params=self._params(**extra))
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                raise TransientProviderError("TMDB rejected the API key", url=url)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            log.warning(
                "tmdb_http_error", path=path, status=exc.response.status_code
            )
            raise TransientProviderError(
                f"TMDB returned HTTP {exc.response.status_code}", url=url
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("tmdb_network_error", path=path, error=str(exc))
            raise TransientProviderError("TMDB request failed", url=url) from exc
        except ValueError as exc:
            raise TransientProviderError("Malformed JSON from TMDB", url=url) from exc

        if not isinstance(data, dict):
            raise TransientProviderError("Unexpected TMDB response shape", url=url)
        return data

    def _image(self, size: str, file_path: str | None) -> str:
        if not file_path:
            return ""
        return f"{self._image_base}/{size}{file_path}"

    def _to_title(self, item: dict[str, Any], content_type: str) -> TmdbTitle | None:
        tmdb_id = item.get("id")
        if not isinstance(tmdb_id, int):
            return None
        if content_type == "series":
            title = item.get("name") or item.get("original_name") or ""
        else:
            title = item.get("title") or item.get("original_title") or ""
        return TmdbTitle(
            tmdb_id=tmdb_id,
            title=title,
            content_type=content_type,
            backdrop_url=self._image("original", item.get("backdrop_path")),
            poster_url=self._image("w500", item.get("poster_path")),
        )

    def _to_titles(self, data: dict[str, Any], content_type: str) -> list[TmdbTitle]:
        titles: list[TmdbTitle] = []
        for item in data.get("results") or []:
            if isinstance(item, dict):
                title = self._to_title(item, content_type)
                if title is not None:
                    titles.append(title)
        return titles

    @staticmethod
    def _rank_backdrops(backdrops: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return sorted(
            backdrops,
            key=lambda b: (b.get("vote_average") or 0, b.get("vote_count") or 0),
            reverse=True,
        )

    # ------------------------------------------------------------------
    # Public API (TmdbClientPort)
    # ------------------------------------------------------------------

    async def list_category(self, path: str, content_type: str) -> list[TmdbTitle]:
        data = await self._get(path, language=self._language, page=1)
        return self._to_titles(data, content_type)

    async def search(self, query: str, content_type: str) -> list[TmdbTitle]:
        data = await self._get(
            f"/search/{_endpoint(content_type)}",
            query=query,
            language=self._language,
            page=1,
        )
        return self._to_titles(data, content_type)

    async def best_backdrop(self, tmdb_id: int, content_type: str) -> str | None:
        """English backdrops first (by vote average, then vote count)."""
        data = await self._get(
            f"/{_endpoint(content_type)}/{tmdb_id}/images",
            include_image_language="en,null",
        )
        backdrops = [b for b in data.get("backdrops") or [] if isinstance(b, dict)]
        english = [b for b in backdrops if b.get("iso_639_1") == "en"]
        for pool in (english, backdrops):
            for backdrop in self._rank_backdrops(pool):
                if backdrop.get("file_path"):
                    return self._image("original", backdrop["file_path"])
        return None

    async def imdb_id(self, tmdb_id: int, content_type: str) -> str | None:
        endpoint = _endpoint(content_type)
        cache_key = f"tmdb:external_ids:{endpoint}:{tmdb_id}"
        try:
            cached = await self._cache.get(cache_key)
        except Exception:
            log.warning("tmdb_cache_failed", operation="get", exc_info=True)
            cached = None
        if cached is not None:
            return cached

        data = await self._get(f"/{endpoint}/{tmdb_id}/external_ids")
        imdb_id = data.get("imdb_id") or None
        if imdb_id:
            try:
                await self._cache.set(cache_key, imdb_id, ttl=self._external_ids_ttl)
            except Exception:
                log.warning("tmdb_cache_failed", operation="set", exc_info=True)
        return imdb_id
