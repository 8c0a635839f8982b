"""Shared test fixtures for Catalogarr test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from catalogarr.domain.entities import (
    Addon,
    AddonConfig,
    AddonResource,
    Catalog,
    MetadataProviderConfig,
)
from catalogarr.infrastructure.concurrency import BoundedTaskGroup

# ---------------------------------------------------------------------------
# Domain entity helpers
# ---------------------------------------------------------------------------


def _make_addon(
    addon_id: str = "org.example.a",
    name: str = "A",
    *,
    base_url: str | None = None,
    catalogs: tuple[Catalog, ...] = (Catalog("movie", "top"),),
    enabled: tuple[str, ...] | None = None,
    resources: tuple[AddonResource, ...] | None = None,
) -> Addon:
    """Addon with every declared catalog enabled unless *enabled* is given."""
    base_url = base_url or f"https://{addon_id}.test"
    if resources is None:
        resources = (
            AddonResource("catalog", ("movie", "series")),
            AddonResource("meta", ("movie", "series"), ("tt",)),
            AddonResource("stream", ("movie", "series"), ("tt",)),
        )
    return Addon(
        id=addon_id,
        manifest_url=f"{base_url}/manifest.json",
        name=name,
        version="1.0.0",
        resources=resources,
        types=("movie", "series"),
        catalogs=catalogs,
        enabled_catalog_ids=frozenset(
            enabled if enabled is not None else (c.key for c in catalogs)
        ),
    )


@pytest.fixture()
def make_addon():
    """Factory fixture: ``make_addon("id", "Name", catalogs=...)``."""
    return _make_addon


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


class InMemoryConfigStore:
    """ConfigStorePort fake; counts saves for mutation tests."""

    def __init__(self, config: AddonConfig | None = None) -> None:
        self.config = config or AddonConfig()
        self.saves = 0

    def load(self) -> AddonConfig:
        return self.config

    def save(self, config: AddonConfig) -> None:
        self.config = config
        self.saves += 1


@pytest.fixture()
def store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture()
def tmdb_keyed() -> MetadataProviderConfig:
    return MetadataProviderConfig(api_key="test-api-key-123", enabled=True)


@pytest.fixture()
def tasks() -> BoundedTaskGroup:
    return BoundedTaskGroup(limit=8, timeout=2.0)


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.exists = AsyncMock(return_value=False)
    cache.clear = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def mock_addon_client() -> AsyncMock:
    """Mock AddonClientPort: every endpoint empty by default."""
    client = AsyncMock()
    client.fetch_manifest = AsyncMock()
    client.fetch_catalog = AsyncMock(return_value=[])
    client.fetch_meta = AsyncMock(return_value=None)
    client.fetch_season = AsyncMock(return_value=[])
    client.fetch_legacy_seasons = AsyncMock(return_value=[])
    client.fetch_legacy_episodes = AsyncMock(return_value=[])
    client.fetch_streams = AsyncMock(return_value=[])
    return client
