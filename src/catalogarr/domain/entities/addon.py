"""Domain entities for installed addons and the metadata provider.

Pure value objects. No framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ContentType = Literal["movie", "series"]

_MANIFEST_SUFFIX = "manifest.json"


@dataclass(frozen=True)
class Catalog:
    """A listing endpoint declared in an addon manifest."""

    content_type: str
    catalog_id: str
    name: str | None = None

    @property
    def key(self) -> str:
        """Unique key within an addon, e.g. ``movie/top``."""
        return f"{self.content_type}/{self.catalog_id}"


@dataclass(frozen=True)
class AddonResource:
    """A resource (catalog/meta/stream) declared by an addon."""

    name: str
    types: tuple[str, ...] = ()
    id_prefixes: tuple[str, ...] | None = None

    def accepts(self, content_type: str, item_id: str | None = None) -> bool:
        if self.types and content_type not in self.types:
            return False
        if item_id is None or self.id_prefixes is None:
            return True
        return any(item_id.startswith(prefix) for prefix in self.id_prefixes)


@dataclass(frozen=True)
class Addon:
    """An installed content-index provider, identified by its manifest URL."""

    id: str
    manifest_url: str
    name: str
    version: str = ""
    description: str = ""
    resources: tuple[AddonResource, ...] = ()
    types: tuple[str, ...] = ()
    catalogs: tuple[Catalog, ...] = ()
    enabled_catalog_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def base_url(self) -> str:
        """Manifest URL with the trailing ``manifest.json`` removed."""
        url = self.manifest_url
        if url.endswith(_MANIFEST_SUFFIX):
            url = url[: -len(_MANIFEST_SUFFIX)]
        return url.rstrip("/")

    def resource(self, name: str) -> AddonResource | None:
        for res in self.resources:
            if res.name == name:
                return res
        return None

    def supports(
        self, resource: str, content_type: str, item_id: str | None = None
    ) -> bool:
        """True if the addon declares *resource* for this type (and id prefix)."""
        res = self.resource(resource)
        if res is None:
            return False
        return res.accepts(content_type, item_id)

    def accepts_prefix(self, resource: str, prefix: str) -> bool:
        """True if *resource* explicitly lists *prefix* in its ``idPrefixes``."""
        res = self.resource(resource)
        if res is None or res.id_prefixes is None:
            return False
        return any(p.startswith(prefix) for p in res.id_prefixes)

    def enabled_catalogs(self) -> list[Catalog]:
        """Enabled catalogs in declared order."""
        return [c for c in self.catalogs if c.key in self.enabled_catalog_ids]


@dataclass(frozen=True)
class MetadataProviderConfig:
    """Settings for the optional TMDB metadata provider."""

    api_key: str | None = None
    enabled: bool = True

    @property
    def has_key(self) -> bool:
        return bool(self.api_key)

    @property
    def active(self) -> bool:
        """TMDB replaces addon-based listing only when enabled and keyed."""
        return self.enabled and self.has_key


@dataclass(frozen=True)
class AddonConfig:
    """Complete persisted configuration snapshot."""

    addons: tuple[Addon, ...] = ()
    metadata_provider: MetadataProviderConfig = field(
        default_factory=MetadataProviderConfig
    )

    def find(self, manifest_url: str) -> Addon | None:
        for addon in self.addons:
            if addon.manifest_url == manifest_url:
                return addon
        return None

    def find_by_id(self, addon_id: str) -> Addon | None:
        for addon in self.addons:
            if addon.id == addon_id:
                return addon
        return None
