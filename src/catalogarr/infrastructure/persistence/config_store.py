"""YAML-file implementation of ConfigStorePort.

File layout::

    tmdb:
      api_key: "..."
      enabled: true
    addons:
      - manifest_url: https://v3-cinemeta.strem.io/manifest.json
        id: com.linvo.cinemeta
        name: Cinemeta
        version: 3.0.0
        types: [movie, series]
        resources:
          - {name: catalog, types: [movie, series]}
          - {name: meta, types: [movie, series], id_prefixes: [tt]}
        catalogs:
          - {type: movie, id: top, name: Popular}
        enabled_catalogs: [movie/top]
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import structlog
import yaml

from catalogarr.domain.entities.addon import (
    Addon,
    AddonConfig,
    AddonResource,
    Catalog,
    MetadataProviderConfig,
)
from catalogarr.domain.entities.errors import ConfigValidationError

log = structlog.get_logger(__name__)


def _addon_to_dict(addon: Addon) -> dict[str, Any]:
    return {
        "manifest_url": addon.manifest_url,
        "id": addon.id,
        "name": addon.name,
        "version": addon.version,
        "description": addon.description,
        "types": list(addon.types),
        "resources": [
            {
                "name": r.name,
                "types": list(r.types),
                "id_prefixes": (
                    list(r.id_prefixes) if r.id_prefixes is not None else None
                ),
            }
            for r in addon.resources
        ],
        "catalogs": [
            {"type": c.content_type, "id": c.catalog_id, "name": c.name}
            for c in addon.catalogs
        ],
        "enabled_catalogs": sorted(addon.enabled_catalog_ids),
    }


def _addon_from_dict(d: dict[str, Any]) -> Addon:
    return Addon(
        id=str(d["id"]),
        manifest_url=str(d["manifest_url"]),
        name=str(d.get("name", "")),
        version=str(d.get("version", "")),
        description=str(d.get("description") or ""),
        types=tuple(d.get("types") or ()),
        resources=tuple(
            AddonResource(
                name=r["name"],
                types=tuple(r.get("types") or ()),
                id_prefixes=(
                    tuple(r["id_prefixes"])
                    if r.get("id_prefixes") is not None
                    else None
                ),
            )
            for r in d.get("resources") or ()
        ),
        catalogs=tuple(
            Catalog(content_type=c["type"], catalog_id=c["id"], name=c.get("name"))
            for c in d.get("catalogs") or ()
        ),
        enabled_catalog_ids=frozenset(d.get("enabled_catalogs") or ()),
    )


def config_to_dict(config: AddonConfig) -> dict[str, Any]:
    return {
        "tmdb": {
            "api_key": config.metadata_provider.api_key,
            "enabled": config.metadata_provider.enabled,
        },
        "addons": [_addon_to_dict(a) for a in config.addons],
    }


def config_from_dict(data: dict[str, Any]) -> AddonConfig:
    tmdb = data.get("tmdb") or {}
    return AddonConfig(
        addons=tuple(_addon_from_dict(a) for a in data.get("addons") or ()),
        metadata_provider=MetadataProviderConfig(
            api_key=tmdb.get("api_key") or None,
            enabled=bool(tmdb.get("enabled", True)),
        ),
    )


class YamlConfigStore:
    """Persists the addon configuration to a single YAML file.

    Writes go to a temp file in the same directory followed by
    ``os.replace`` so readers never observe a half-written file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> AddonConfig:
        if not self.path.exists():
            return AddonConfig()
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            if not isinstance(data, dict):
                raise TypeError(f"expected a mapping, got {type(data)!r}")
            return config_from_dict(data)
        except (yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            log.error("config_store_malformed", path=str(self.path), error=str(e))
            raise ConfigValidationError(
                f"Addon store {self.path} is malformed: {e}"
            ) from e

    def save(self, config: AddonConfig) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = yaml.safe_dump(
            config_to_dict(config), sort_keys=False, allow_unicode=True
        )
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        log.debug("config_store_saved", path=str(self.path), addons=len(config.addons))
