"""Domain entities for aggregated catalog rows, details and streams.

Pure value objects. No framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

RowOrigin = Literal["addon", "tmdb"]
PlaybackKind = Literal["internal", "external"]


@dataclass(frozen=True)
class MediaItem:
    """A single tile in a catalog row."""

    id: str  # bare addon id ("tt0111161") or namespaced ("tmdb:603")
    image_url: str
    title: str
    content_type: str
    loading: bool = False  # backdrop enhancement still pending


@dataclass(frozen=True)
class AggregatedRow:
    """A titled row of items from one addon catalog or TMDB category."""

    row_id: str
    title: str
    items: tuple[MediaItem, ...]
    origin: RowOrigin
    addon_id: str | None = None


@dataclass(frozen=True)
class EpisodeRecord:
    """One episode of a series season."""

    id: str
    season: int
    episode: int
    title: str
    overview: str = ""
    thumbnail: str = ""
    runtime: str = ""
    released: str = ""


@dataclass(frozen=True)
class ContentRecord:
    """Full detail record for a movie or series."""

    id: str
    content_type: str
    title: str
    poster: str = ""
    background: str = ""
    logo: str = ""
    description: str = ""
    release_info: str = ""
    runtime: str = ""
    rating: str = ""
    genres: tuple[str, ...] = ()
    cast: tuple[str, ...] = ()
    director: tuple[str, ...] = ()
    seasons: tuple[int, ...] | None = None
    certification: str = ""
    videos: tuple[EpisodeRecord, ...] = ()

    @property
    def complete(self) -> bool:
        """Description plus at least one artwork field."""
        return bool(self.description) and bool(self.poster or self.background)


@dataclass(frozen=True)
class MetadataResult:
    """Outcome of a metadata resolution."""

    record: ContentRecord
    partial: bool = False
    source: Literal["addon", "catalog"] = "addon"
    addon_id: str | None = None
    addon_base_url: str | None = None


@dataclass(frozen=True)
class ExtractedAttributes:
    """Technical attributes recognised in stream free text."""

    resolution: str | None = None
    source: str | None = None
    codec: str | None = None
    audio: str | None = None
    language: str | None = None
    hdr: bool = False
    dolby_vision: bool = False
    bit_depth_10: bool = False
    release_group: str | None = None
    cache_provider: str | None = None
    size: str | None = None


@dataclass(frozen=True)
class AddonStream:
    """A stream entry as returned by an addon, before enrichment."""

    name: str = ""
    title: str = ""
    description: str = ""
    filename: str = ""
    url: str | None = None
    external_url: str | None = None
    external: bool = False
    quality: str | None = None
    resolution: str | None = None
    video_size: int | None = None


@dataclass(frozen=True)
class TmdbTitle:
    """A movie or TV show from a TMDB listing."""

    tmdb_id: int
    title: str
    content_type: str
    backdrop_url: str = ""
    poster_url: str = ""


@dataclass(frozen=True)
class StreamCandidate:
    """A playable stream returned by one addon, tagged and enriched."""

    addon_id: str
    addon_name: str
    name: str = ""
    title: str = ""
    description: str = ""
    playback_url: str | None = None
    external_url: str | None = None
    quality: str | None = None
    attributes: ExtractedAttributes = field(default_factory=ExtractedAttributes)
    rank_score: int = 0

    @property
    def is_external(self) -> bool:
        return self.external_url is not None

    @property
    def target_url(self) -> str:
        return self.external_url or self.playback_url or ""


@dataclass(frozen=True)
class StreamResolution:
    """Ranked candidates plus user-facing notes (e.g. skipped addons)."""

    candidates: tuple[StreamCandidate, ...]
    notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class PlaybackTarget:
    """Where a selected stream should be handed off to."""

    kind: PlaybackKind
    url: str
    attributes: ExtractedAttributes
