"""TMDB API integration for films and series."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

import httpx

from ..error_handling import LookupServiceError

if TYPE_CHECKING:
    from ..config import TorrentifyConfig

logger = logging.getLogger(__name__)

MEDIA_TYPES = ("movie", "tv")


def clean_title(value: str | None) -> str:
    """Create a query friendly version of a title string."""
    if not value:
        return ""

    cleaned = re.sub(r"[^\w\s-]", " ", value)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return cleaned.strip()


class TMDBService:
    """Minimal async TMDB client.

    ``search`` and ``details`` map to single API calls. ``lookup`` applies the
    language policy: try the configured language first and fall back to
    ``fallback_language`` when it yields nothing.
    """

    _BASE_URL = "https://api.themoviedb.org/3"

    def __init__(self, config: TorrentifyConfig):
        self.config = config

    async def lookup(
        self,
        title: str,
        year: int | None = None,
        media_type: str = "movie",
    ) -> dict[str, Any] | None:
        """Return TMDB details for the best match, or None if nothing matches."""
        languages = [self.config.tmdb_language]
        if self.config.fallback_language != self.config.tmdb_language:
            languages.append(self.config.fallback_language)

        candidate = None
        for language in languages:
            candidate = await self.search(title, year, language, media_type)
            if candidate:
                break

        if not candidate or not candidate.get("id"):
            return None

        for language in languages:
            details = await self.details(candidate["id"], language, media_type)
            if details:
                return details

        return None

    async def search(
        self,
        title: str,
        year: int | None,
        language: str,
        media_type: str = "movie",
    ) -> dict[str, Any] | None:
        """Return the first search result, retrying without the year if needed."""
        if media_type not in MEDIA_TYPES:
            msg = f"Unsupported TMDB media type: {media_type}"
            raise ValueError(msg)

        query = clean_title(title)
        if not query:
            return None

        params: dict[str, Any] = {
            "query": query,
            "api_key": self.config.tmdb_api_key,
            "language": language,
            "include_adult": False,
        }

        if year:
            params["year" if media_type == "movie" else "first_air_date_year"] = year
            data = await self._request(f"/search/{media_type}", params)
            results = data.get("results", []) if data else []
            if results:
                return results[0]
        # A wrong year guess should not hide the title
        params = {
            k: v for k, v in params.items() if k not in ("year", "first_air_date_year")
        }
        data = await self._request(f"/search/{media_type}", params)
        results = data.get("results", []) if data else []
        return results[0] if results else None

    async def details(
        self,
        tmdb_id: int,
        language: str,
        media_type: str = "movie",
    ) -> dict[str, Any] | None:
        return await self._request(
            f"/{media_type}/{tmdb_id}",
            {
                "api_key": self.config.tmdb_api_key,
                "language": language,
            },
        )

    async def _request(
        self,
        endpoint: str,
        params: dict[str, Any],
    ) -> dict[str, Any] | None:
        url = f"{self._BASE_URL}{endpoint}"
        try:
            async with httpx.AsyncClient(
                timeout=self.config.tmdb_request_timeout,
            ) as client:
                response = await client.get(url, params=params)
                if response.status_code == httpx.codes.NOT_FOUND:
                    return None
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise LookupServiceError(
                "TMDB",
                f"API error {e.response.status_code} for {endpoint}",
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise LookupServiceError(
                "TMDB",
                f"request failed for {endpoint}: {e}",
                original_error=e,
            ) from e
        except ValueError as e:
            raise LookupServiceError(
                "TMDB",
                f"invalid JSON from {endpoint}",
                original_error=e,
            ) from e


__all__ = ["TMDBService", "clean_title"]
