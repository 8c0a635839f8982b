from .addon_manager import AddonManagerUseCase
from .catalog_aggregator import CatalogAggregatorUseCase
from .metadata_resolver import MetadataResolverUseCase
from .season_episodes import SeasonEpisodeResolverUseCase, SeasonListing
from .stream_resolver import StreamResolverUseCase

__all__ = [
    "AddonManagerUseCase",
    "CatalogAggregatorUseCase",
    "MetadataResolverUseCase",
    "SeasonEpisodeResolverUseCase",
    "SeasonListing",
    "StreamResolverUseCase",
]
