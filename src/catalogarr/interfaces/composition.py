"""Composition root: builds every adapter and use case from an AppConfig."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import AsyncIterator

import httpx
import structlog

from catalogarr.application.use_cases import (
    AddonManagerUseCase,
    CatalogAggregatorUseCase,
    MetadataResolverUseCase,
    SeasonEpisodeResolverUseCase,
    StreamResolverUseCase,
)
from catalogarr.domain.ports.cache import CachePort
from catalogarr.domain.ports.config_store import ConfigStorePort
from catalogarr.domain.ports.tmdb import TmdbClientPort
from catalogarr.infrastructure.addons.client import HttpxAddonClient
from catalogarr.infrastructure.cache.cache_factory import create_cache
from catalogarr.infrastructure.concurrency import BoundedTaskGroup
from catalogarr.infrastructure.config.schema import AppConfig
from catalogarr.infrastructure.persistence.config_store import YamlConfigStore
from catalogarr.infrastructure.persistence.result_cache import ResultCache
from catalogarr.infrastructure.stremio.stream_ranker import StreamRanker
from catalogarr.infrastructure.stremio.text_extractor import extract_for_stream
from catalogarr.infrastructure.tmdb.client import HttpxTmdbClient

log = structlog.get_logger(__name__)


@dataclass
class Services:
    """Everything a front end needs. Lifecycle managed by build_services()."""

    config: AppConfig
    cache: CachePort
    http_client: httpx.AsyncClient
    store: ConfigStorePort
    result_cache: ResultCache

    addons: AddonManagerUseCase
    catalog: CatalogAggregatorUseCase
    metadata: MetadataResolverUseCase
    seasons: SeasonEpisodeResolverUseCase
    streams: StreamResolverUseCase


def _seed_tmdb_key(store: ConfigStorePort, api_key: str | None) -> None:
    """Copy the configured TMDB key into the store if the store has none."""
    if not api_key:
        return
    current = store.load()
    if current.metadata_provider.has_key:
        return
    provider = replace(current.metadata_provider, api_key=api_key)
    store.save(replace(current, metadata_provider=provider))
    log.info("tmdb_key_seeded")


@asynccontextmanager
async def build_services(
    config: AppConfig, *, store: ConfigStorePort | None = None
) -> AsyncIterator[Services]:
    """Create adapters and use cases, yield them, then release resources.

    Order matters:
        1. Cache backend (TMDB client and result cache depend on it)
        2. HTTP client
        3. Config store (seeded with the configured TMDB key)
        4. Use cases
    """
    cache = create_cache(
        backend=config.cache_backend,
        directory=config.cache_dir,
        ttl_seconds=config.cache_ttl_seconds,
        max_concurrent=config.cache_max_concurrent,
    )
    await cache.__aenter__()

    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )

    if store is None:
        store = YamlConfigStore(config.store_path)
    _seed_tmdb_key(store, config.tmdb_api_key)

    addon_client = HttpxAddonClient(http_client)
    result_cache = ResultCache(cache, ttl_seconds=config.cache_ttl_seconds)
    tasks = BoundedTaskGroup(
        limit=config.aggregator.max_concurrent_requests,
        timeout=config.aggregator.provider_timeout_seconds,
    )

    def tmdb_factory(api_key: str) -> TmdbClientPort:
        return HttpxTmdbClient(
            api_key=api_key,
            http_client=http_client,
            cache=cache,
            base_url=config.tmdb.base_url,
            image_base_url=config.tmdb.image_base_url,
            language=config.tmdb.language,
            external_ids_ttl=config.tmdb.external_ids_ttl_seconds,
        )

    catalog = CatalogAggregatorUseCase(
        store=store,
        addons=addon_client,
        cache=result_cache,
        tasks=tasks,
        tmdb_factory=tmdb_factory,
        enhance_batch_size=config.aggregator.enhance_batch_size,
        enhance_batch_delay=config.aggregator.enhance_batch_delay_seconds,
    )
    services = Services(
        config=config,
        cache=cache,
        http_client=http_client,
        store=store,
        result_cache=result_cache,
        addons=AddonManagerUseCase(store=store, addons=addon_client),
        catalog=catalog,
        metadata=MetadataResolverUseCase(
            store=store,
            addons=addon_client,
            tasks=tasks,
            tmdb_factory=tmdb_factory,
            window=config.aggregator.metadata_window,
        ),
        seasons=SeasonEpisodeResolverUseCase(addons=addon_client),
        streams=StreamResolverUseCase(
            store=store,
            addons=addon_client,
            tasks=tasks,
            extract_attributes=extract_for_stream,
            ranker=StreamRanker(),
            tmdb_factory=tmdb_factory,
        ),
    )
    log.info(
        "services_initialized",
        cache_backend=config.cache_backend,
        store=str(getattr(store, "path", type(store).__name__)),
    )

    try:
        yield services
    finally:
        await catalog.aclose()
        await http_client.aclose()
        log.debug("http_client_closed")
        await cache.aclose()
        log.debug("cache_closed")
