"""Tests for compute_signature."""

from __future__ import annotations

from dataclasses import replace

from catalogarr.application.config_signature import compute_signature
from catalogarr.domain.entities import AddonConfig, Catalog, MetadataProviderConfig


class TestComputeSignature:
    def test_empty_config(self) -> None:
        assert (
            compute_signature(AddonConfig())
            == "#tmdb:key=false:enabled=true"
        )

    def test_format(self, make_addon) -> None:
        addon = make_addon(
            "a",
            catalogs=(Catalog("movie", "top"), Catalog("series", "top")),
        )
        config = AddonConfig(
            addons=(addon,),
            metadata_provider=MetadataProviderConfig("secret", enabled=False),
        )
        assert (
            compute_signature(config)
            == "a@https://a.test/manifest.json:movie/top,series/top"
            "#tmdb:key=true:enabled=false"
        )

    def test_order_independent(self, make_addon) -> None:
        a = make_addon("a")
        b = make_addon("b", catalogs=(Catalog("series", "new"),))
        assert compute_signature(AddonConfig(addons=(a, b))) == compute_signature(
            AddonConfig(addons=(b, a))
        )

    def test_deterministic(self, make_addon) -> None:
        config = AddonConfig(addons=(make_addon("a"),))
        assert compute_signature(config) == compute_signature(config)

    def test_sensitive_to_catalog_toggle(self, make_addon) -> None:
        addon = make_addon(
            "a", catalogs=(Catalog("movie", "top"), Catalog("movie", "new"))
        )
        toggled = replace(addon, enabled_catalog_ids=frozenset({"movie/top"}))
        assert compute_signature(AddonConfig(addons=(addon,))) != compute_signature(
            AddonConfig(addons=(toggled,))
        )

    def test_sensitive_to_addon_install(self, make_addon) -> None:
        one = AddonConfig(addons=(make_addon("a"),))
        two = AddonConfig(addons=(make_addon("a"), make_addon("b")))
        assert compute_signature(one) != compute_signature(two)

    def test_sensitive_to_manifest_url(self, make_addon) -> None:
        # same addon id, settings carried in the URL path
        english = make_addon("org.x", base_url="https://x.test/lang=en")
        german = make_addon("org.x", base_url="https://x.test/lang=de")
        assert compute_signature(AddonConfig(addons=(english,))) != compute_signature(
            AddonConfig(addons=(german,))
        )

    def test_sensitive_to_tmdb_flags(self) -> None:
        sigs = {
            compute_signature(AddonConfig(metadata_provider=provider))
            for provider in (
                MetadataProviderConfig(None, True),
                MetadataProviderConfig("k", True),
                MetadataProviderConfig("k", False),
            )
        }
        assert len(sigs) == 3

    def test_api_key_never_included(self) -> None:
        config = AddonConfig(metadata_provider=MetadataProviderConfig("s3cr3t-key"))
        assert "s3cr3t" not in compute_signature(config)

    def test_key_value_does_not_matter(self) -> None:
        a = AddonConfig(metadata_provider=MetadataProviderConfig("one"))
        b = AddonConfig(metadata_provider=MetadataProviderConfig("two"))
        assert compute_signature(a) == compute_signature(b)
