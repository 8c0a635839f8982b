"""Deterministic fingerprint of the configuration state that affects results.

Cached rows are tagged with the signature they were computed under and are
only served while the current configuration still produces the same value.
"""

from __future__ import annotations

from catalogarr.domain.entities.addon import AddonConfig


def compute_signature(config: AddonConfig) -> str:
    """Order-independent signature over addons, enabled catalogs and TMDB flags.

    Addons are keyed by id and manifest URL, which may carry addon settings
    in its path. The raw API key never appears in the output, only whether
    one is set.
    """
    fragments = [
        f"{addon.id}@{addon.manifest_url}:"
        + ",".join(sorted(addon.enabled_catalog_ids))
        for addon in sorted(config.addons, key=lambda a: (a.id, a.manifest_url))
    ]
    provider = config.metadata_provider
    tmdb = (
        f"tmdb:key={str(provider.has_key).lower()}"
        f":enabled={str(provider.enabled).lower()}"
    )
    return "|".join(fragments) + "#" + tmdb
