"""Addon management: install, remove, toggle catalogs, TMDB settings.

Each mutation is a single load -> modify -> save against the config store.
A rejected change raises ConfigValidationError and the stored
configuration is left untouched.
"""

from __future__ import annotations

from dataclasses import replace

import structlog

from catalogarr.domain.entities.addon import Addon, AddonConfig
from catalogarr.domain.entities.errors import (
    ConfigValidationError,
    TransientProviderError,
)
from catalogarr.domain.ports.addon_client import AddonClientPort
from catalogarr.domain.ports.config_store import ConfigStorePort

log = structlog.get_logger(__name__)

_ALREADY_INSTALLED = "This addon is already installed."


class AddonManagerUseCase:
    def __init__(self, *, store: ConfigStorePort, addons: AddonClientPort) -> None:
        self._store = store
        self._addons = addons

    async def install(self, manifest_url: str) -> Addon:
        manifest_url = manifest_url.strip()
        if not manifest_url.endswith("manifest.json"):
            raise ConfigValidationError(
                "Invalid manifest URL. It must end with 'manifest.json'."
            )
        if self._store.load().find(manifest_url) is not None:
            raise ConfigValidationError(_ALREADY_INSTALLED)

        try:
            addon = await self._addons.fetch_manifest(manifest_url)
        except TransientProviderError as exc:
            log.warning("addon_install_failed", url=manifest_url, error=str(exc))
            raise ConfigValidationError(f"Could not load manifest: {exc}") from exc

        if not (addon.id and addon.version and addon.name):
            raise ConfigValidationError(
                "Invalid manifest: missing id, version or name."
            )

        addon = replace(
            addon, enabled_catalog_ids=frozenset(c.key for c in addon.catalogs)
        )

        # the store may have changed while the manifest was in flight
        config = self._store.load()
        if config.find(manifest_url) is not None:
            raise ConfigValidationError(_ALREADY_INSTALLED)
        self._store.save(replace(config, addons=(*config.addons, addon)))
        log.info(
            "addon_installed",
            addon_id=addon.id,
            url=manifest_url,
            catalogs=len(addon.catalogs),
        )
        return addon

    def uninstall(self, manifest_url: str) -> None:
        config = self._store.load()
        if config.find(manifest_url) is None:
            raise ConfigValidationError(f"Addon not installed: {manifest_url}")
        addons = tuple(a for a in config.addons if a.manifest_url != manifest_url)
        self._store.save(replace(config, addons=addons))
        log.info("addon_uninstalled", url=manifest_url)

    def toggle_catalog(self, manifest_url: str, catalog_key: str) -> bool:
        """Flip one catalog on or off; returns the new enabled state."""
        config = self._store.load()
        addon = config.find(manifest_url)
        if addon is None:
            raise ConfigValidationError(f"Addon not installed: {manifest_url}")
        if catalog_key not in {c.key for c in addon.catalogs}:
            raise ConfigValidationError(
                f"Unknown catalog {catalog_key!r} for addon {addon.id}."
            )

        enabled = catalog_key not in addon.enabled_catalog_ids
        ids = set(addon.enabled_catalog_ids)
        if enabled:
            ids.add(catalog_key)
        else:
            ids.discard(catalog_key)
        updated = replace(addon, enabled_catalog_ids=frozenset(ids))

        self._store.save(
            replace(
                config,
                addons=tuple(
                    updated if a.manifest_url == manifest_url else a
                    for a in config.addons
                ),
            )
        )
        log.info(
            "catalog_toggled", addon_id=addon.id, catalog=catalog_key, enabled=enabled
        )
        return enabled

    def set_tmdb_key(self, api_key: str | None) -> None:
        config = self._store.load()
        key = (api_key or "").strip() or None
        provider = replace(config.metadata_provider, api_key=key)
        self._store.save(replace(config, metadata_provider=provider))
        log.info("tmdb_key_updated", has_key=provider.has_key)

    def set_tmdb_enabled(self, enabled: bool) -> None:
        config = self._store.load()
        provider = replace(config.metadata_provider, enabled=enabled)
        self._store.save(replace(config, metadata_provider=provider))
        log.info("tmdb_enabled_updated", enabled=enabled)

    def list_addons(self) -> AddonConfig:
        return self._store.load()
