from __future__ import annotations

from .load import load_config
from .schema import AggregatorConfig, AppConfig, EnvOverrides, TmdbConfig

__all__ = ["AggregatorConfig", "AppConfig", "EnvOverrides", "TmdbConfig", "load_config"]
