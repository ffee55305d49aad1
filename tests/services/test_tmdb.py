"""Tests for the TMDB service."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from torrentify.config import TorrentifyConfig
from torrentify.error_handling import LookupServiceError
from torrentify.services.tmdb import TMDBService, clean_title


@pytest.fixture
def config(tmp_path):
    return TorrentifyConfig(state_dir=tmp_path / "state", tmdb_api_key="dummy")


def test_clean_title():
    assert clean_title("Movie: One (Director's Cut)") == "Movie One Director s Cut"
    assert clean_title(None) == ""


@pytest.mark.asyncio
async def test_lookup_movie_uses_primary_language(config):
    service = TMDBService(config)

    async def fake_request(endpoint, params):
        if endpoint == "/search/movie":
            return {"results": [{"id": 1, "title": "Example"}]}
        if endpoint == "/movie/1":
            return {"id": 1, "title": "Exemple"}
        return {}

    service._request = AsyncMock(side_effect=fake_request)

    details = await service.lookup("Example", 2020, "movie")

    assert details == {"id": 1, "title": "Exemple"}
    search_params = service._request.await_args_list[0].args[1]
    assert search_params["language"] == "fr-FR"
    assert search_params["year"] == 2020


@pytest.mark.asyncio
async def test_lookup_falls_back_to_second_language(config):
    service = TMDBService(config)

    async def fake_request(endpoint, params):
        if endpoint == "/search/tv" and params["language"] == "en-US":
            return {"results": [{"id": 5, "name": "Example Show"}]}
        if endpoint == "/tv/5":
            return {"id": 5, "name": "Example Show"}
        return {"results": []}

    service._request = AsyncMock(side_effect=fake_request)

    details = await service.lookup("Example Show", None, "tv")

    assert details == {"id": 5, "name": "Example Show"}


@pytest.mark.asyncio
async def test_search_retries_without_year(config):
    service = TMDBService(config)
    service._request = AsyncMock(
        side_effect=[{"results": []}, {"results": [{"id": 9}]}],
    )

    result = await service.search("Example", 1999, "fr-FR", "tv")

    assert result == {"id": 9}
    first, second = service._request.await_args_list
    assert first.args[1]["first_air_date_year"] == 1999
    assert "first_air_date_year" not in second.args[1]


@pytest.mark.asyncio
async def test_no_match_returns_none(config):
    service = TMDBService(config)
    service._request = AsyncMock(return_value={"results": []})

    assert await service.lookup("Nothing", None, "movie") is None


@pytest.mark.asyncio
async def test_search_rejects_unknown_media_type(config):
    with pytest.raises(ValueError):
        await TMDBService(config).search("x", None, "fr-FR", "book")


@pytest.mark.asyncio
async def test_empty_title_makes_no_request(config):
    service = TMDBService(config)
    service._request = AsyncMock()

    assert await service.search("  !!  ", None, "fr-FR") is None
    service._request.assert_not_awaited()


class TestRequest:
    @pytest.mark.asyncio
    async def test_not_found_returns_none(self, config):
        response = httpx.Response(404, request=httpx.Request("GET", "https://tmdb"))
        with patch("httpx.AsyncClient.get", AsyncMock(return_value=response)):
            assert await TMDBService(config)._request("/movie/1", {}) is None

    @pytest.mark.asyncio
    async def test_server_error_raises_lookup_error(self, config):
        response = httpx.Response(500, request=httpx.Request("GET", "https://tmdb"))
        with patch("httpx.AsyncClient.get", AsyncMock(return_value=response)):
            with pytest.raises(LookupServiceError, match="API error 500"):
                await TMDBService(config)._request("/movie/1", {})

    @pytest.mark.asyncio
    async def test_transport_error_raises_lookup_error(self, config):
        with patch(
            "httpx.AsyncClient.get",
            AsyncMock(side_effect=httpx.ConnectTimeout("timed out")),
        ):
            with pytest.raises(LookupServiceError, match="TMDB: request failed"):
                await TMDBService(config)._request("/search/movie", {})
