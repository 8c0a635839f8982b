"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "catalogarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 15.0,
        "follow_redirects": True,
        "user_agent": "Catalogarr/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "backend": "diskcache",
        "dir": "./.cache/catalogarr",
        "ttl_seconds": 0,
        "max_concurrent": 10,
    },
    "store": {
        "path": "./catalogarr-addons.yaml",
    },
    "aggregator": {
        "max_concurrent_requests": 8,
        "provider_timeout_seconds": 10.0,
        "metadata_window": 1,
        "enhance_batch_size": 3,
        "enhance_batch_delay_seconds": 0.2,
    },
    "tmdb": {
        "base_url": "https://api.themoviedb.org/3",
        "image_base_url": "https://image.tmdb.org/t/p",
        "language": "en-US",
        "external_ids_ttl_seconds": 86_400,
    },
}
