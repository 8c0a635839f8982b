"""Layered configuration loading: defaults < YAML < env (.env) < CLI."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTIONS = ("http", "logging", "cache", "store", "aggregator", "tmdb")
_TOP_LEVEL = ("app_name", "environment", "tmdb_api_key")

# Flat spellings (env vars, CLI flags) -> (section, key).
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "cache_backend": ("cache", "backend"),
    "cache_dir": ("cache", "dir"),
    "cache_ttl_seconds": ("cache", "ttl_seconds"),
    "cache_max_concurrent": ("cache", "max_concurrent"),
    "store_path": ("store", "path"),
    "max_concurrent_requests": ("aggregator", "max_concurrent_requests"),
    "provider_timeout_seconds": ("aggregator", "provider_timeout_seconds"),
    "metadata_window": ("aggregator", "metadata_window"),
    "tmdb_language": ("tmdb", "language"),
}


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge *layer* into *target* in place; nested mappings merge, leaves win."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value
    return target


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape AppConfig validates.

    Sections are copied as-is, flat keys from ``_FLAT_KEYS`` are moved into
    their section. A flat key beats the sectioned spelling within the same
    layer.
    """
    out: dict[str, Any] = {
        name: dict(layer[name])
        for name in _SECTIONS
        if isinstance(layer.get(name), Mapping)
    }
    out.update({key: layer[key] for key in _TOP_LEVEL if key in layer})

    for flat_key, (section, key) in _FLAT_KEYS.items():
        if flat_key in layer:
            out.setdefault(section, {})[key] = layer[flat_key]
    return out


def _require_file(path: Path) -> Path:
    if not path.exists():
        raise FileNotFoundError(path)
    return path


def _read_yaml(path: Path) -> dict[str, Any]:
    parsed = yaml.safe_load(_require_file(path).read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated AppConfig.

    Precedence: defaults < YAML file < CATALOGARR_* env vars < cli overrides.
    A *dotenv_path* is loaded without overriding variables that are already
    set, so it counts as part of the env layer. Nothing is created on disk;
    the cache directory and the addon store appear on first use.
    """
    if dotenv_path is not None:
        load_dotenv(_require_file(dotenv_path), override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))
    return AppConfig.model_validate(merged)
