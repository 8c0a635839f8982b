"""Pydantic models for the addon HTTP protocol.

Addons are third-party servers with loosely followed conventions, so the
models are lenient: unknown keys are ignored, scalars are coerced where the
meaning is obvious and unparseable optional values fall back to ``None``.
A payload that still fails validation is a malformed response.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalogarr.domain.entities.addon import Addon, AddonResource, Catalog
from catalogarr.domain.entities.media import (
    AddonStream,
    ContentRecord,
    EpisodeRecord,
    MediaItem,
)


def _to_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if isinstance(v, (str, int, float)) and v != ""]
    return []


def _to_opt_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _to_opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value
    return None


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class ManifestCatalogModel(_WireModel):
    type: str
    id: str
    name: str | None = None


class ManifestResourceModel(_WireModel):
    name: str
    types: list[str] | None = None
    id_prefixes: list[str] | None = Field(default=None, alias="idPrefixes")


class ManifestModel(_WireModel):
    id: str = ""
    version: str = ""
    name: str = ""
    description: str = ""
    resources: list[str | ManifestResourceModel] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    catalogs: list[ManifestCatalogModel] = Field(default_factory=list)
    id_prefixes: list[str] | None = Field(default=None, alias="idPrefixes")

    @field_validator("id", "version", "name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _to_opt_str(v) or ""

    def to_addon(self, manifest_url: str) -> Addon:
        resources: list[AddonResource] = []
        for res in self.resources:
            if isinstance(res, str):
                # Bare resource names inherit the manifest-level types/prefixes.
                resources.append(
                    AddonResource(
                        name=res,
                        types=tuple(self.types),
                        id_prefixes=(
                            tuple(self.id_prefixes)
                            if self.id_prefixes is not None
                            else None
                        ),
                    )
                )
            else:
                resources.append(
                    AddonResource(
                        name=res.name,
                        types=tuple(res.types if res.types is not None else self.types),
                        id_prefixes=(
                            tuple(res.id_prefixes)
                            if res.id_prefixes is not None
                            else None
                        ),
                    )
                )
        return Addon(
            id=self.id,
            manifest_url=manifest_url,
            name=self.name,
            version=self.version,
            description=self.description,
            resources=tuple(resources),
            types=tuple(self.types),
            catalogs=tuple(
                Catalog(content_type=c.type, catalog_id=c.id, name=c.name)
                for c in self.catalogs
            ),
        )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class MetaPreviewModel(_WireModel):
    id: str | None = None
    type: str | None = None
    name: str = ""
    poster: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any) -> str:
        return _to_opt_str(v) or ""

    @field_validator("id", "type", "poster", mode="before")
    @classmethod
    def _coerce_optional(cls, v: Any) -> str | None:
        return _to_opt_str(v)

    def to_item(self) -> MediaItem:
        return MediaItem(
            id=self.id or "",
            image_url=self.poster or "",
            title=self.name,
            content_type=self.type or "",
        )


class CatalogResponse(_WireModel):
    metas: list[MetaPreviewModel] = Field(default_factory=list)

    @field_validator("metas", mode="before")
    @classmethod
    def _coerce_metas(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]

    def items(self) -> list[MediaItem]:
        """Catalog entries as domain items; entries without an id are dropped."""
        return [m.to_item() for m in self.metas if m.id]


# ---------------------------------------------------------------------------
# Meta / episodes
# ---------------------------------------------------------------------------


class VideoModel(_WireModel):
    id: str | None = None
    title: str | None = None
    name: str | None = None
    season: int | None = None
    episode: int | None = None
    number: int | None = None
    overview: str | None = None
    description: str | None = None
    synopsis: str | None = None
    thumbnail: str | None = None
    poster: str | None = None
    released: str | None = None
    air_date: str | None = None
    release_info: str | None = Field(default=None, alias="releaseInfo")
    runtime: str | None = None
    duration: str | None = None

    @field_validator("season", "episode", "number", mode="before")
    @classmethod
    def _coerce_int(cls, v: Any) -> int | None:
        return _to_opt_int(v)

    @field_validator(
        "id",
        "title",
        "name",
        "overview",
        "description",
        "synopsis",
        "thumbnail",
        "poster",
        "released",
        "air_date",
        "release_info",
        "runtime",
        "duration",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _to_opt_str(v)

    def to_episode(self, series_id: str, season: int, position: int) -> EpisodeRecord:
        number = self.episode or self.number or position
        return EpisodeRecord(
            id=self.id or f"{series_id}-s{season}-e{number}",
            season=season,
            episode=number,
            title=self.title or self.name or f"Episode {number}",
            overview=self.overview or self.description or self.synopsis or "",
            thumbnail=self.thumbnail or self.poster or "",
            runtime=self.runtime or self.duration or "",
            released=self.released or self.air_date or self.release_info or "",
        )


def episodes_for_season(
    videos: list[VideoModel], series_id: str, season: int
) -> list[EpisodeRecord]:
    """Videos belonging to *season* (an absent season counts as season 1)."""
    selected = [
        v for v in videos if (v.season if v.season is not None else 1) == season
    ]
    return [v.to_episode(series_id, season, i) for i, v in enumerate(selected, start=1)]


def season_numbers(videos: list[VideoModel]) -> list[int]:
    return sorted({v.season for v in videos if v.season is not None})


class MetaModel(_WireModel):
    id: str | None = None
    type: str | None = None
    name: str | None = None
    poster: str | None = None
    background: str | None = None
    logo: str | None = None
    description: str | None = None
    release_info: str | None = Field(default=None, alias="releaseInfo")
    runtime: str | None = None
    imdb_rating: str | None = Field(default=None, alias="imdbRating")
    genres: list[str] = Field(default_factory=list)
    cast: list[str] = Field(default_factory=list)
    director: list[str] = Field(default_factory=list)
    certification: str | None = None
    videos: list[VideoModel] = Field(default_factory=list)
    episodes: list[VideoModel] = Field(default_factory=list)

    @field_validator(
        "id",
        "type",
        "name",
        "poster",
        "background",
        "logo",
        "description",
        "release_info",
        "runtime",
        "imdb_rating",
        "certification",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _to_opt_str(v)

    @field_validator("genres", "cast", "director", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list[str]:
        return _to_str_list(v)

    @field_validator("videos", "episodes", mode="before")
    @classmethod
    def _coerce_videos(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]

    def to_record(self) -> ContentRecord | None:
        """Domain record, or None without the mandatory id/type/name."""
        if not (self.id and self.type and self.name):
            return None
        videos: list[EpisodeRecord] = []
        numbers = {v.season if v.season is not None else 1 for v in self.videos}
        for number in sorted(numbers):
            videos.extend(episodes_for_season(self.videos, self.id, number))
        seasons = season_numbers(self.videos)
        return ContentRecord(
            id=self.id,
            content_type=self.type,
            title=self.name,
            poster=self.poster or "",
            background=self.background or "",
            logo=self.logo or "",
            description=self.description or "",
            release_info=self.release_info or "",
            runtime=self.runtime or "",
            rating=self.imdb_rating or "",
            genres=tuple(self.genres),
            cast=tuple(self.cast),
            director=tuple(self.director),
            seasons=tuple(seasons) if seasons else None,
            certification=self.certification or "",
            videos=tuple(videos),
        )


class MetaResponse(_WireModel):
    meta: MetaModel | None = None


class SeasonMetaResponse(_WireModel):
    """Per-season meta: ``meta.episodes``, ``meta.videos`` or top-level ``metas``."""

    meta: MetaModel | None = None
    metas: list[VideoModel] = Field(default_factory=list)

    @field_validator("metas", mode="before")
    @classmethod
    def _coerce_metas(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]

    def to_episodes(self, series_id: str, season: int) -> list[EpisodeRecord]:
        if self.meta is not None and self.meta.episodes:
            return [
                v.to_episode(series_id, season, i)
                for i, v in enumerate(self.meta.episodes, start=1)
            ]
        if self.meta is not None and self.meta.videos:
            return episodes_for_season(self.meta.videos, series_id, season)
        if self.metas:
            return episodes_for_season(self.metas, series_id, season)
        return []


class LegacyEpisodesResponse(_WireModel):
    episodes: list[VideoModel] = Field(default_factory=list)
    videos: list[VideoModel] = Field(default_factory=list)
    metas: list[VideoModel] = Field(default_factory=list)

    def to_episodes(self, series_id: str, season: int) -> list[EpisodeRecord]:
        for videos in (self.episodes, self.videos, self.metas):
            if videos:
                return [
                    v.to_episode(series_id, season, i)
                    for i, v in enumerate(videos, start=1)
                ]
        return []


class LegacySeasonsResponse(_WireModel):
    seasons: list[Any] = Field(default_factory=list)

    def to_numbers(self) -> list[int]:
        numbers: set[int] = set()
        for entry in self.seasons:
            if isinstance(entry, dict):
                value = _to_opt_int(entry.get("season", entry.get("number")))
            else:
                value = _to_opt_int(entry)
            if value is not None:
                numbers.add(value)
        return sorted(numbers)


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


class BehaviorHintsModel(_WireModel):
    filename: str | None = None
    video_size: int | None = Field(default=None, alias="videoSize")

    @field_validator("video_size", mode="before")
    @classmethod
    def _coerce_size(cls, v: Any) -> int | None:
        return _to_opt_int(v)


class StreamModel(_WireModel):
    name: str | None = None
    title: str | None = None
    description: str | None = None
    url: str | None = None
    external_url: str | None = Field(default=None, alias="externalUrl")
    external: bool = False
    quality: str | None = None
    resolution: str | None = None
    behavior_hints: BehaviorHintsModel | None = Field(
        default=None, alias="behaviorHints"
    )

    @field_validator(
        "name",
        "title",
        "description",
        "url",
        "external_url",
        "quality",
        "resolution",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _to_opt_str(v)

    @field_validator("external", mode="before")
    @classmethod
    def _coerce_bool(cls, v: Any) -> bool:
        return v is True

    def to_stream(self) -> AddonStream:
        hints = self.behavior_hints or BehaviorHintsModel()
        return AddonStream(
            name=self.name or "",
            title=self.title or "",
            description=self.description or "",
            filename=hints.filename or "",
            url=self.url,
            external_url=self.external_url,
            external=self.external,
            quality=self.quality,
            resolution=self.resolution,
            video_size=hints.video_size,
        )


class StreamResponse(_WireModel):
    streams: list[StreamModel] = Field(default_factory=list)
