"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["diskcache", "memory"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class AggregatorConfig(BaseModel):
    """Fan-out and enhancement tuning for the aggregation use cases."""

    max_concurrent_requests: int = Field(
        default=8,
        description="Max provider requests in flight per aggregation.",
    )
    provider_timeout_seconds: float = Field(
        default=10.0,
        description="Per-request timeout in seconds for addon and TMDB calls.",
    )
    metadata_window: int = Field(
        default=1,
        description=(
            "How many metadata providers may be queried at once. "
            "1 = strictly sequential, later providers only on a miss."
        ),
    )
    enhance_batch_size: int = Field(
        default=3,
        description="Concurrent backdrop lookups per enhancement batch.",
    )
    enhance_batch_delay_seconds: float = Field(
        default=0.2,
        description="Pause between enhancement batches (TMDB rate limits).",
    )

    @field_validator("max_concurrent_requests", "metadata_window", "enhance_batch_size")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("provider_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("provider_timeout_seconds must be > 0")
        return v


class TmdbConfig(BaseModel):
    """TMDB endpoint settings. The API key itself lives in the addon store."""

    base_url: str = Field(default="https://api.themoviedb.org/3")
    image_base_url: str = Field(default="https://image.tmdb.org/t/p")
    language: str = Field(default="en-US")
    external_ids_ttl_seconds: int = Field(
        default=86_400,
        description="TTL for cached TMDB -> IMDb id translations.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/store/...).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="catalogarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Transport-level HTTP timeout in seconds.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="Catalogarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Cache (YAML section: cache.*)
    cache_backend: CacheBackendName = Field(
        default="diskcache",
        validation_alias=AliasChoices(
            "cache_backend",
            AliasPath("cache", "backend"),
        ),
        description="Persistent backend for aggregated rows.",
    )
    cache_dir: Path = Field(
        default=Path("./.cache/catalogarr"),
        validation_alias=AliasChoices(
            "cache_dir",
            AliasPath("cache", "dir"),
        ),
        description="Cache directory (diskcache).",
    )
    cache_ttl_seconds: int = Field(
        default=0,
        validation_alias=AliasChoices(
            "cache_ttl_seconds",
            AliasPath("cache", "ttl_seconds"),
        ),
        description="Backend TTL in seconds (0 = rely on signature eviction only).",
    )
    cache_max_concurrent: int = Field(
        default=10,
        validation_alias=AliasChoices(
            "cache_max_concurrent",
            AliasPath("cache", "max_concurrent"),
        ),
        description="Max parallel cache ops (semaphore limit).",
    )

    # Addon/TMDB store (YAML section: store.*)
    store_path: Path = Field(
        default=Path("./catalogarr-addons.yaml"),
        validation_alias=AliasChoices(
            "store_path",
            AliasPath("store", "path"),
        ),
        description="YAML file holding installed addons and TMDB settings.",
    )

    # Seeds the store's TMDB key when the store has none.
    tmdb_api_key: str | None = Field(
        default=None,
        description="Initial TMDB API key.",
    )

    aggregator: AggregatorConfig = Field(default_factory=AggregatorConfig)
    tmdb: TmdbConfig = Field(default_factory=TmdbConfig)

    @field_validator("cache_dir", "store_path", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _validate_cache_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache_ttl_seconds must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.

        The TMDB key is omitted.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cache": {
                "backend": self.cache_backend,
                "dir": str(self.cache_dir),
                "ttl_seconds": self.cache_ttl_seconds,
                "max_concurrent": self.cache_max_concurrent,
            },
            "store": {"path": str(self.store_path)},
            "aggregator": self.aggregator.model_dump(),
            "tmdb": self.tmdb.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    CATALOGARR_* environment overrides, all optional and flat.

    Field names match the flat keys load.py folds into sections, e.g.
    CATALOGARR_LOG_LEVEL -> logging.level and
    CATALOGARR_METADATA_WINDOW -> aggregator.metadata_window.
    CATALOGARR_TMDB_API_KEY only seeds the addon store when it holds no key.
    """

    model_config = SettingsConfigDict(
        env_prefix="CATALOGARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_ttl_seconds: Optional[int] = None

    store_path: Optional[Path] = None

    max_concurrent_requests: Optional[int] = None
    provider_timeout_seconds: Optional[float] = None
    metadata_window: Optional[int] = None

    tmdb_language: Optional[str] = None
    tmdb_api_key: Optional[str] = None

    @field_validator("cache_dir", "store_path", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
