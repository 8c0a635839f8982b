from .addon import (
    Addon,
    AddonConfig,
    AddonResource,
    Catalog,
    ContentType,
    MetadataProviderConfig,
)
from .errors import (
    CatalogarrError,
    ConfigValidationError,
    EmptyResultError,
    TransientProviderError,
    TranslationError,
)
from .media import (
    AddonStream,
    AggregatedRow,
    ContentRecord,
    EpisodeRecord,
    ExtractedAttributes,
    MediaItem,
    MetadataResult,
    PlaybackTarget,
    StreamCandidate,
    StreamResolution,
    TmdbTitle,
)
from .query import QueryKey, QueryKind, normalize_query

__all__ = [
    "Addon",
    "AddonConfig",
    "AddonResource",
    "AddonStream",
    "AggregatedRow",
    "Catalog",
    "CatalogarrError",
    "ConfigValidationError",
    "ContentRecord",
    "ContentType",
    "EmptyResultError",
    "EpisodeRecord",
    "ExtractedAttributes",
    "MediaItem",
    "MetadataProviderConfig",
    "MetadataResult",
    "PlaybackTarget",
    "QueryKey",
    "QueryKind",
    "StreamCandidate",
    "StreamResolution",
    "TmdbTitle",
    "TransientProviderError",
    "TranslationError",
    "normalize_query",
]
