"""Stream resolution: ranked playable streams for a movie or an episode.

Flow:
    1. pick addons that declare ``stream`` for the content type
    2. translate the id per addon (tmdb -> imdb), skipping addons on failure
    3. fan out to every remaining addon; failures contribute nothing
    4. convert each stream to a StreamCandidate, run the text extractor
    5. rank (stable, by quality score) and dedupe by target URL
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import Protocol

import structlog

from catalogarr.application.id_translation import IdTranslator
from catalogarr.domain.entities.addon import Addon
from catalogarr.domain.entities.errors import EmptyResultError, TranslationError
from catalogarr.domain.entities.media import (
    AddonStream,
    ExtractedAttributes,
    PlaybackTarget,
    StreamCandidate,
    StreamResolution,
)
from catalogarr.domain.ports.addon_client import AddonClientPort
from catalogarr.domain.ports.concurrency import TaskGroupPort
from catalogarr.domain.ports.config_store import ConfigStorePort
from catalogarr.domain.ports.tmdb import TmdbClientFactory

log = structlog.get_logger(__name__)

AttributeExtractor = Callable[[AddonStream, str], ExtractedAttributes]

NO_STREAM_ADDONS = (
    "No installed addon provides streams for this content. "
    "Install a stream addon (e.g. Torrentio) to watch."
)
NO_STREAMS = "No streaming sources found for this content."


class _StreamRanker(Protocol):
    def sort(self, candidates: list[StreamCandidate]) -> list[StreamCandidate]: ...


def video_id(
    content_type: str, content_id: str, season: int | None, episode: int | None
) -> str:
    """``id`` or, for a series episode, ``id:season:episode``."""
    if content_type == "series" and season is not None and episode is not None:
        return f"{content_id}:{season}:{episode}"
    return content_id


class StreamResolverUseCase:
    def __init__(
        self,
        *,
        store: ConfigStorePort,
        addons: AddonClientPort,
        tasks: TaskGroupPort,
        extract_attributes: AttributeExtractor,
        ranker: _StreamRanker,
        tmdb_factory: TmdbClientFactory | None = None,
    ) -> None:
        self._store = store
        self._addons = addons
        self._tasks = tasks
        self._extract = extract_attributes
        self._ranker = ranker
        self._tmdb_factory = tmdb_factory

    async def resolve(
        self,
        content_type: str,
        content_id: str,
        season: int | None = None,
        episode: int | None = None,
    ) -> StreamResolution:
        config = self._store.load()
        capable = [a for a in config.addons if a.supports("stream", content_type)]
        if not capable:
            raise EmptyResultError(NO_STREAM_ADDONS, reason="nothing_configured")

        translator = IdTranslator(config.metadata_provider, self._tmdb_factory)
        notes: list[str] = []
        targets: list[tuple[Addon, str]] = []
        for addon in capable:
            if not translator.reachable(addon, "stream", content_type, content_id):
                continue
            try:
                query_id = await translator.for_addon(
                    addon, "stream", content_type, content_id
                )
            except TranslationError as exc:
                log.info("addon_stream_skipped", addon_id=addon.id, reason=str(exc))
                if str(exc) not in notes:
                    notes.append(str(exc))
                continue
            if not addon.supports("stream", content_type, query_id):
                continue
            targets.append((addon, video_id(content_type, query_id, season, episode)))

        outcomes = await self._tasks.fan_out_collect_all(
            [
                partial(self._addons.fetch_streams, addon.base_url, content_type, vid)
                for addon, vid in targets
            ]
        )

        candidates: list[StreamCandidate] = []
        for (addon, vid), outcome in zip(targets, outcomes):
            if not outcome.ok:
                log.warning(
                    "addon_streams_failed",
                    addon_id=addon.id,
                    video_id=vid,
                    error=str(outcome.error),
                )
                continue
            for stream in outcome.value or []:
                candidate = self._to_candidate(addon, stream)
                if candidate is not None:
                    candidates.append(candidate)

        ranked = self._ranker.sort(candidates)
        if not ranked:
            if notes:
                raise EmptyResultError(notes[0])
            raise EmptyResultError(NO_STREAMS)

        log.info(
            "streams_resolved",
            content_id=content_id,
            addons=len(targets),
            candidates=len(ranked),
        )
        return StreamResolution(candidates=tuple(ranked), notes=tuple(notes))

    def _to_candidate(
        self, addon: Addon, stream: AddonStream
    ) -> StreamCandidate | None:
        external_url = stream.external_url or (stream.url if stream.external else None)
        playback_url = None if external_url else stream.url
        if not external_url and not playback_url:
            return None
        return StreamCandidate(
            addon_id=addon.id,
            addon_name=addon.name,
            name=stream.name,
            title=stream.title,
            description=stream.description,
            playback_url=playback_url,
            external_url=external_url,
            quality=stream.quality,
            attributes=self._extract(stream, addon.name),
        )

    @staticmethod
    def select(candidate: StreamCandidate) -> PlaybackTarget:
        """Classify a chosen stream for the playback or external-agent side."""
        return PlaybackTarget(
            kind="external" if candidate.is_external else "internal",
            url=candidate.target_url,
            attributes=candidate.attributes,
        )
