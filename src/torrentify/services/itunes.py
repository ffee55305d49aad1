"""iTunes Search API integration for music."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from ..error_handling import LookupServiceError

if TYPE_CHECKING:
    from ..config import TorrentifyConfig

logger = logging.getLogger(__name__)


def itunes_id(record: dict[str, Any]) -> int | None:
    """Album id when available, track id otherwise."""
    return record.get("collectionId") or record.get("trackId")


class ITunesService:
    """Async client for the public iTunes Search API."""

    _SEARCH_URL = "https://itunes.apple.com/search"

    def __init__(self, config: TorrentifyConfig):
        self.config = config

    async def lookup(self, artist: str | None, title: str) -> dict[str, Any] | None:
        term = f"{artist} {title}" if artist else title
        return await self.search(term)

    async def search(self, term: str) -> dict[str, Any] | None:
        """Return the first music result for ``term``."""
        term = term.strip()
        if not term:
            return None

        params = {"term": term, "media": "music", "limit": 1}
        try:
            async with httpx.AsyncClient(
                timeout=self.config.itunes_request_timeout,
            ) as client:
                response = await client.get(self._SEARCH_URL, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise LookupServiceError(
                "iTunes",
                f"search failed for '{term}': {e}",
                original_error=e,
            ) from e
        except ValueError as e:
            raise LookupServiceError(
                "iTunes",
                f"invalid JSON for '{term}'",
                original_error=e,
            ) from e

        results = data.get("results") or []
        return results[0] if results else None


__all__ = ["ITunesService", "itunes_id"]
