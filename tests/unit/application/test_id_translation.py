"""Tests for IdTranslator (tmdb: -> IMDb id translation)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from catalogarr.application.id_translation import MISSING_KEY_MESSAGE, IdTranslator
from catalogarr.domain.entities import (
    AddonResource,
    MetadataProviderConfig,
    TransientProviderError,
    TranslationError,
)


@pytest.fixture()
def tmdb_client() -> AsyncMock:
    client = AsyncMock()
    client.imdb_id = AsyncMock(return_value="tt0133093")
    return client


@pytest.fixture()
def factory(tmdb_client: AsyncMock) -> MagicMock:
    return MagicMock(return_value=tmdb_client)


class TestToImdb:
    async def test_missing_key(self) -> None:
        translator = IdTranslator(MetadataProviderConfig(), None)

        with pytest.raises(TranslationError) as exc:
            await translator.to_imdb("movie", "tmdb:603")

        assert str(exc.value) == "TMDB API key missing. Cannot look up IMDb ID."
        assert str(exc.value) == MISSING_KEY_MESSAGE

    async def test_key_required_even_when_disabled(
        self, tmdb_keyed, factory: MagicMock
    ) -> None:
        # translation only needs the key; enabled only affects home rows
        provider = MetadataProviderConfig(tmdb_keyed.api_key, enabled=False)
        translator = IdTranslator(provider, factory)

        assert await translator.to_imdb("movie", "tmdb:603") == "tt0133093"

    async def test_lookup_once_per_resolution(
        self, tmdb_keyed, factory: MagicMock, tmdb_client: AsyncMock
    ) -> None:
        translator = IdTranslator(tmdb_keyed, factory)

        assert await translator.to_imdb("movie", "tmdb:603") == "tt0133093"
        assert await translator.to_imdb("movie", "tmdb:603") == "tt0133093"

        factory.assert_called_once_with("test-api-key-123")
        tmdb_client.imdb_id.assert_awaited_once_with(603, "movie")

    async def test_no_imdb_id(
        self, tmdb_keyed, factory: MagicMock, tmdb_client: AsyncMock
    ) -> None:
        tmdb_client.imdb_id.return_value = None
        translator = IdTranslator(tmdb_keyed, factory)

        with pytest.raises(TranslationError, match="Could not resolve IMDb ID"):
            await translator.to_imdb("series", "tmdb:1396")
        # failures are remembered too
        with pytest.raises(TranslationError):
            await translator.to_imdb("series", "tmdb:1396")
        tmdb_client.imdb_id.assert_awaited_once()

    async def test_tmdb_error_becomes_translation_error(
        self, tmdb_keyed, factory: MagicMock, tmdb_client: AsyncMock
    ) -> None:
        tmdb_client.imdb_id.side_effect = TransientProviderError("HTTP 500")
        translator = IdTranslator(tmdb_keyed, factory)

        with pytest.raises(TranslationError):
            await translator.to_imdb("movie", "tmdb:603")

    async def test_non_numeric_id(self, tmdb_keyed, factory: MagicMock) -> None:
        translator = IdTranslator(tmdb_keyed, factory)

        with pytest.raises(TranslationError, match="Invalid TMDB id"):
            await translator.to_imdb("movie", "tmdb:abc")


class TestReachable:
    def test_imdb_addon_reachable_for_tmdb_id(self, make_addon) -> None:
        assert IdTranslator.reachable(make_addon(), "stream", "movie", "tmdb:603")

    def test_tmdb_aware_addon(self, make_addon) -> None:
        addon = make_addon(
            resources=(AddonResource("stream", ("movie",), ("tmdb:",)),)
        )
        assert IdTranslator.reachable(addon, "stream", "movie", "tmdb:603")
        assert not IdTranslator.reachable(addon, "stream", "movie", "tt1")

    def test_foreign_prefix_addon_unreachable(self, make_addon) -> None:
        addon = make_addon(
            resources=(AddonResource("stream", ("movie",), ("kitsu:",)),)
        )
        assert not IdTranslator.reachable(addon, "stream", "movie", "tmdb:603")


class TestForAddon:
    async def test_imdb_ids_pass_through(self, make_addon) -> None:
        translator = IdTranslator(MetadataProviderConfig(), None)
        addon = make_addon()

        assert await translator.for_addon(addon, "meta", "movie", "tt1") == "tt1"

    async def test_tmdb_aware_addon_gets_raw_id(self, make_addon) -> None:
        translator = IdTranslator(MetadataProviderConfig(), None)
        addon = make_addon(
            resources=(AddonResource("meta", ("movie",), ("tt", "tmdb:")),)
        )

        assert (
            await translator.for_addon(addon, "meta", "movie", "tmdb:603")
            == "tmdb:603"
        )

    async def test_other_addons_get_imdb_id(
        self, tmdb_keyed, factory: MagicMock, make_addon
    ) -> None:
        translator = IdTranslator(tmdb_keyed, factory)

        addon = make_addon()

        assert (
            await translator.for_addon(addon, "stream", "movie", "tmdb:603")
            == "tt0133093"
        )
