"""Tests for cached lookup providers."""

from unittest.mock import AsyncMock, Mock

import pytest

from torrentify.models import ItemKind, MediaCategory, WorkItem
from torrentify.services.guess import Guess
from torrentify.services.lookup import ITunesLookup, TMDBLookup
from torrentify.storage.cache import CacheStore


@pytest.fixture
def cache(tmp_path):
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def item(tmp_path):
    return WorkItem(
        name="Movie.One.2020",
        release_name="Movie.One.2020",
        kind=ItemKind.SINGLE_FILE,
        category=MediaCategory.FILMS,
        source=tmp_path / "Movie.One.2020.mkv",
        files=(tmp_path / "Movie.One.2020.mkv",),
        output_dir=tmp_path / "out",
    )


class TestTMDBLookup:
    def test_key_and_tags(self, cache, item):
        provider = TMDBLookup(cache, Mock(), "movie")

        assert provider.cache_key(item, Guess(title="Movie One")) == "movie_movie.one.2020"
        assert provider.found_tag({"id": 603}) == "ID TMDB : 603"
        assert provider.is_not_found_tag("TMDB not found\n")
        assert not provider.is_not_found_tag("ID TMDB : 603")

    @pytest.mark.asyncio
    async def test_resolve_fetches_and_caches(self, cache):
        service = Mock()
        service.lookup = AsyncMock(return_value={"id": 603})
        provider = TMDBLookup(cache, service, "movie")

        first = await provider.resolve("k", Guess(title="Movie One", year=2020))
        second = await provider.resolve("k", Guess(title="Movie One", year=2020))

        assert first == second == {"id": 603}
        service.lookup.assert_awaited_once_with("Movie One", 2020, "movie")
        assert cache.get("k") == {"id": 603}

    @pytest.mark.asyncio
    async def test_misses_are_not_cached(self, cache):
        service = Mock()
        service.lookup = AsyncMock(return_value=None)
        provider = TMDBLookup(cache, service, "tv")

        assert await provider.resolve("k", Guess(title="Nothing")) is None
        assert not cache.contains("k")

    @pytest.mark.asyncio
    async def test_cached_record_without_id_is_refetched(self, cache):
        cache.put("k", {})
        service = Mock()
        service.lookup = AsyncMock(return_value={"id": 1})

        assert await TMDBLookup(cache, service, "movie").resolve("k", Guess(title="x")) == {"id": 1}


class TestITunesLookup:
    def test_key_from_artist_and_title(self, cache, item):
        provider = ITunesLookup(cache, Mock())

        assert provider.cache_key(item, Guess(title="Discovery", artist="Daft Punk")) == "daft.punk_discovery"
        assert provider.cache_key(item, Guess(title="Discovery")) == "discovery"

    def test_tags(self, cache):
        provider = ITunesLookup(cache, Mock())

        assert provider.found_tag({"trackId": 12}) == "iTunes ID : 12"
        assert provider.not_found_tag == "iTunes not found"

    @pytest.mark.asyncio
    async def test_resolve_passes_artist(self, cache):
        service = Mock()
        service.lookup = AsyncMock(return_value={"collectionId": 5})
        provider = ITunesLookup(cache, service)

        await provider.resolve("k", Guess(title="Discovery", artist="Daft Punk"))

        service.lookup.assert_awaited_once_with("Daft Punk", "Discovery")
