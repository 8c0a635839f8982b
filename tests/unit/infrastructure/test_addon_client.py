"""Tests for HttpxAddonClient (addon protocol adapter)."""

from __future__ import annotations

import httpx
import pytest
import respx

from catalogarr.domain.entities import TransientProviderError
from catalogarr.infrastructure.addons.client import HttpxAddonClient

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_BASE = "https://addon.test"

_MANIFEST = {
    "id": "org.example.addon",
    "version": "1.2.0",
    "name": "Example",
    "description": "Example addon",
    "types": ["movie", "series"],
    "idPrefixes": ["tt"],
    "resources": [
        "catalog",
        {"name": "stream", "types": ["movie"], "idPrefixes": ["tt", "tmdb:"]},
    ],
    "catalogs": [
        {"type": "movie", "id": "top", "name": "Popular"},
        {"type": "series", "id": "top"},
    ],
}

_META_SERIES = {
    "meta": {
        "id": "tt0944947",
        "type": "series",
        "name": "Game of Thrones",
        "poster": "https://img/got.jpg",
        "description": "Seven kingdoms...",
        "imdbRating": 9.2,
        "genres": ["Drama", "Fantasy"],
        "videos": [
            {"id": "tt0944947:1:1", "season": 1, "episode": 1, "title": "Winter"},
            {"id": "tt0944947:1:2", "season": 1, "episode": 2, "name": "Kingsroad"},
            {"id": "tt0944947:2:1", "season": "2", "episode": 1},
            {"id": "tt0944947:0:1", "season": 0, "episode": 1, "title": "Special"},
        ],
    }
}


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


@pytest.fixture()
def client(http_client: httpx.AsyncClient) -> HttpxAddonClient:
    return HttpxAddonClient(http_client)


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class TestFetchManifest:
    @respx.mock
    async def test_parses_manifest(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(json=_MANIFEST)

        addon = await client.fetch_manifest(f"{_BASE}/manifest.json")

        assert addon.id == "org.example.addon"
        assert addon.base_url == _BASE
        assert [c.key for c in addon.catalogs] == ["movie/top", "series/top"]
        assert addon.enabled_catalog_ids == frozenset()

    @respx.mock
    async def test_bare_resource_inherits_manifest_types(
        self, client: HttpxAddonClient
    ) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(json=_MANIFEST)

        addon = await client.fetch_manifest(f"{_BASE}/manifest.json")

        catalog = addon.resource("catalog")
        assert catalog is not None
        assert catalog.types == ("movie", "series")
        assert catalog.id_prefixes == ("tt",)
        assert addon.supports("stream", "movie", "tmdb:603")
        assert not addon.supports("stream", "series")

    @respx.mock
    async def test_http_error(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(404)

        with pytest.raises(TransientProviderError, match="HTTP 404"):
            await client.fetch_manifest(f"{_BASE}/manifest.json")

    @respx.mock
    async def test_malformed_json(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(text="<html>")

        with pytest.raises(TransientProviderError, match="Malformed JSON"):
            await client.fetch_manifest(f"{_BASE}/manifest.json")

    @respx.mock
    async def test_shape_mismatch(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(json={"catalogs": "nope"})

        with pytest.raises(TransientProviderError, match="Unexpected response"):
            await client.fetch_manifest(f"{_BASE}/manifest.json")

    @respx.mock
    async def test_transport_error(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").mock(
            side_effect=httpx.ConnectError("refused")
        )

        with pytest.raises(TransientProviderError, match="ConnectError"):
            await client.fetch_manifest(f"{_BASE}/manifest.json")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class TestFetchCatalog:
    @respx.mock
    async def test_catalog(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/catalog/movie/top.json").respond(
            json={
                "metas": [
                    {"id": "tt1", "type": "movie", "name": "One", "poster": "p1"},
                    {"id": "tt2", "type": "movie", "name": "Two"},
                ]
            }
        )

        items = await client.fetch_catalog(_BASE, "movie", "top")

        assert [i.id for i in items] == ["tt1", "tt2"]
        assert items[0].image_url == "p1"
        assert items[1].image_url == ""

    @respx.mock
    async def test_search_path(self, client: HttpxAddonClient) -> None:
        route = respx.get(f"{_BASE}/catalog/movie/top/search=matrix.json").respond(
            json={"metas": []}
        )

        assert await client.fetch_catalog(_BASE, "movie", "top", search="matrix") == []
        assert route.called

    @respx.mock
    async def test_search_is_url_encoded(self, client: HttpxAddonClient) -> None:
        route = respx.get(
            f"{_BASE}/catalog/movie/top/search=the%20matrix%2Freloaded.json"
        ).respond(json={"metas": []})

        await client.fetch_catalog(_BASE, "movie", "top", search="the matrix/reloaded")

        assert route.called

    @respx.mock
    async def test_bad_entries_do_not_sink_the_row(
        self, client: HttpxAddonClient
    ) -> None:
        respx.get(f"{_BASE}/catalog/movie/top.json").respond(
            json={
                "metas": [
                    {"id": "tt1", "type": "movie", "name": "One", "poster": "p1"},
                    {"id": 42, "type": "movie", "name": "Numeric", "poster": "p2"},
                    {"type": "movie", "name": "No id", "poster": "p3"},
                    "garbage",
                ]
            }
        )

        items = await client.fetch_catalog(_BASE, "movie", "top")

        assert [i.id for i in items] == ["tt1", "42"]

    @respx.mock
    async def test_missing_metas_is_empty(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/catalog/movie/top.json").respond(json={})
        assert await client.fetch_catalog(_BASE, "movie", "top") == []


# ---------------------------------------------------------------------------
# Meta / seasons / episodes
# ---------------------------------------------------------------------------


class TestFetchMeta:
    @respx.mock
    async def test_series_record(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/meta/series/tt0944947.json").respond(json=_META_SERIES)

        record = await client.fetch_meta(_BASE, "series", "tt0944947")

        assert record is not None
        assert record.title == "Game of Thrones"
        assert record.rating == "9.2"
        assert record.genres == ("Drama", "Fantasy")
        assert record.seasons == (0, 1, 2)
        season_one = [v for v in record.videos if v.season == 1]
        assert [v.title for v in season_one] == ["Winter", "Kingsroad"]
        season_two = [v for v in record.videos if v.season == 2]
        assert season_two[0].title == "Episode 1"

    @respx.mock
    async def test_null_meta(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/meta/movie/tt1.json").respond(json={"meta": None})
        assert await client.fetch_meta(_BASE, "movie", "tt1") is None

    @respx.mock
    async def test_meta_without_name(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/meta/movie/tt1.json").respond(
            json={"meta": {"id": "tt1", "type": "movie"}}
        )
        assert await client.fetch_meta(_BASE, "movie", "tt1") is None


class TestSeasonEndpoints:
    @respx.mock
    async def test_season_meta_episodes(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/meta/series/tt1/season=2.json").respond(
            json={
                "meta": {
                    "id": "tt1",
                    "type": "series",
                    "name": "Show",
                    "episodes": [{"title": "Pilot"}, {"episode": 5}],
                }
            }
        )

        episodes = await client.fetch_season(_BASE, "tt1", 2)

        assert [(e.season, e.episode, e.title) for e in episodes] == [
            (2, 1, "Pilot"),
            (2, 5, "Episode 5"),
        ]
        assert episodes[0].id == "tt1-s2-e1"

    @respx.mock
    async def test_season_top_level_metas(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/meta/series/tt1/season=1.json").respond(
            json={"metas": [{"id": "e1", "title": "A"}, {"id": "e2", "season": 3}]}
        )

        episodes = await client.fetch_season(_BASE, "tt1", 1)

        # an absent season counts as season 1
        assert [e.id for e in episodes] == ["e1"]

    @respx.mock
    async def test_legacy_seasons(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/series/tt1/seasons.json").respond(
            json={"seasons": [{"season": 2}, 1, "3", {"number": 1}, "x"]}
        )
        assert await client.fetch_legacy_seasons(_BASE, "tt1") == [1, 2, 3]

    @respx.mock
    async def test_legacy_episodes_second_layout(
        self, client: HttpxAddonClient
    ) -> None:
        respx.get(f"{_BASE}/series/tt1/seasons/1/episodes.json").respond(404)
        respx.get(f"{_BASE}/episodes/tt1/1.json").respond(
            json={"episodes": [{"title": "One"}]}
        )

        episodes = await client.fetch_legacy_episodes(_BASE, "tt1", 1)

        assert [e.title for e in episodes] == ["One"]

    @respx.mock
    async def test_legacy_episodes_all_fail(self, client: HttpxAddonClient) -> None:
        respx.get(f"{_BASE}/series/tt1/seasons/1/episodes.json").respond(500)
        respx.get(f"{_BASE}/episodes/tt1/1.json").respond(500)

        with pytest.raises(TransientProviderError):
            await client.fetch_legacy_episodes(_BASE, "tt1", 1)


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


class TestFetchStreams:
    @respx.mock
    async def test_streams(self, client: HttpxAddonClient) -> None:
        route = respx.get(f"{_BASE}/stream/series/tt1:1:2.json").respond(
            json={
                "streams": [
                    {
                        "name": "Torrentio\n1080p",
                        "title": "Show.S01E02.1080p",
                        "url": "https://cdn/x.mkv",
                        "behaviorHints": {"filename": "x.mkv", "videoSize": "1024"},
                    },
                    {"externalUrl": "https://site/watch"},
                    {"url": "https://site/y", "external": "yes"},
                ]
            }
        )

        streams = await client.fetch_streams(_BASE, "series", "tt1:1:2")

        assert route.called
        assert streams[0].filename == "x.mkv"
        assert streams[0].video_size == 1024
        assert streams[1].external_url == "https://site/watch"
        # only a literal true marks a stream external
        assert streams[2].external is False
