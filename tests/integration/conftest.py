"""Shared fixtures for integration tests.

These tests use real infrastructure components (DiskcacheAdapter,
YamlConfigStore, HttpxAddonClient, HttpxTmdbClient) with mocked HTTP via respx.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx

from catalogarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from catalogarr.infrastructure.config import AppConfig, load_config


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    """Real httpx.AsyncClient for use with respx mocking."""
    return httpx.AsyncClient()


@pytest.fixture()
async def diskcache(tmp_path: Path) -> DiskcacheAdapter:
    """Real DiskcacheAdapter backed by tmp_path (auto-cleaned)."""
    adapter = DiskcacheAdapter(
        directory=tmp_path / "cache",
        ttl_seconds=3600,
        max_concurrent=5,
    )
    async with adapter:
        yield adapter


@pytest.fixture()
def respx_mock() -> respx.MockRouter:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def app_config(tmp_path: Path) -> AppConfig:
    """Real config: diskcache + YAML store under tmp_path, no batch delay."""
    return load_config(
        cli_overrides={
            "cache_dir": str(tmp_path / "cache"),
            "store_path": str(tmp_path / "addons.yaml"),
            "aggregator": {"enhance_batch_delay_seconds": 0.0},
        }
    )
