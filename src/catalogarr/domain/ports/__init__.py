from .addon_client import AddonClientPort
from .cache import CachePort
from .concurrency import Outcome, TaskFactory, TaskGroupPort
from .config_store import ConfigStorePort
from .tmdb import TmdbClientFactory, TmdbClientPort

__all__ = [
    "AddonClientPort",
    "CachePort",
    "ConfigStorePort",
    "Outcome",
    "TaskFactory",
    "TaskGroupPort",
    "TmdbClientFactory",
    "TmdbClientPort",
]
