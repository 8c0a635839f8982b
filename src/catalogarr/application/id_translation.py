"""Translation of TMDB-namespaced ids (``tmdb:603``) into IMDb ids.

Home rows built from TMDB carry ``tmdb:`` ids, but most addons only
understand IMDb ids.  The lookup is done at most once per resolution and
shared by every addon attempt; addons that declare ``tmdb`` in their
``idPrefixes`` receive the raw id.
"""

from __future__ import annotations

import asyncio

import structlog

from catalogarr.domain.entities.addon import Addon, MetadataProviderConfig
from catalogarr.domain.entities.errors import TransientProviderError, TranslationError
from catalogarr.domain.ports.tmdb import TmdbClientFactory

log = structlog.get_logger(__name__)

TMDB_PREFIX = "tmdb:"
IMDB_PREFIX = "tt"

MISSING_KEY_MESSAGE = "TMDB API key missing. Cannot look up IMDb ID."


class IdTranslator:
    """Per-resolution translator; create a new one for each request."""

    def __init__(
        self,
        provider: MetadataProviderConfig,
        tmdb_factory: TmdbClientFactory | None,
    ) -> None:
        self._provider = provider
        self._tmdb_factory = tmdb_factory
        self._lock = asyncio.Lock()
        self._resolved: dict[str, str] = {}
        self._failed: dict[str, TranslationError] = {}

    @staticmethod
    def reachable(
        addon: Addon, resource: str, content_type: str, content_id: str
    ) -> bool:
        """True if some form of *content_id* matches the addon's id prefixes.

        Checked before translating so addons that could never be queried do
        not trigger a TMDB lookup or contribute its failure notes.
        """
        if content_id.startswith(TMDB_PREFIX) and not addon.accepts_prefix(
            resource, "tmdb"
        ):
            return addon.supports(resource, content_type, IMDB_PREFIX)
        return addon.supports(resource, content_type, content_id)

    async def for_addon(
        self, addon: Addon, resource: str, content_type: str, content_id: str
    ) -> str:
        """The id *addon* should be queried with for *content_id*."""
        if not content_id.startswith(TMDB_PREFIX):
            return content_id
        if addon.accepts_prefix(resource, "tmdb"):
            return content_id
        return await self.to_imdb(content_type, content_id)

    async def to_imdb(self, content_type: str, content_id: str) -> str:
        async with self._lock:
            if content_id in self._resolved:
                return self._resolved[content_id]
            if content_id in self._failed:
                raise self._failed[content_id]
            try:
                imdb_id = await self._lookup(content_type, content_id)
            except TranslationError as exc:
                self._failed[content_id] = exc
                raise
            self._resolved[content_id] = imdb_id
            return imdb_id

    async def _lookup(self, content_type: str, content_id: str) -> str:
        if not self._provider.has_key or self._tmdb_factory is None:
            raise TranslationError(MISSING_KEY_MESSAGE, content_id=content_id)

        raw = content_id[len(TMDB_PREFIX) :]
        if not raw.isdigit():
            raise TranslationError(
                f"Invalid TMDB id: {content_id}.", content_id=content_id
            )

        client = self._tmdb_factory(self._provider.api_key or "")
        try:
            imdb_id = await client.imdb_id(int(raw), content_type)
        except TransientProviderError as exc:
            log.warning(
                "tmdb_translation_failed", content_id=content_id, error=str(exc)
            )
            imdb_id = None

        if not imdb_id:
            raise TranslationError(
                f"Could not resolve IMDb ID for {content_id}.", content_id=content_id
            )
        log.debug("tmdb_id_translated", content_id=content_id, imdb_id=imdb_id)
        return imdb_id
