"""Cached metadata lookups feeding the release tag file."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .itunes import itunes_id

if TYPE_CHECKING:
    from ..models import WorkItem
    from ..storage.cache import CacheStore
    from .guess import Guess
    from .itunes import ITunesService
    from .tmdb import TMDBService

logger = logging.getLogger(__name__)


class LookupProvider(ABC):
    """A metadata source paired with the cache that remembers its answers.

    Subclasses decide the cache key, how to query the service, and how a
    match or a miss is written to the tag file.
    """

    name: str
    not_found_tag: str

    def __init__(self, cache: CacheStore):
        self.cache = cache

    @abstractmethod
    def cache_key(self, item: WorkItem, guess: Guess) -> str: ...

    @abstractmethod
    async def fetch(self, guess: Guess) -> dict[str, Any] | None:
        """Query the external service. Raises LookupServiceError on transport errors."""

    @abstractmethod
    def found_tag(self, record: dict[str, Any]) -> str: ...

    def is_match(self, record: dict[str, Any] | None) -> bool:
        return bool(record)

    def is_not_found_tag(self, text: str) -> bool:
        return text.strip() == self.not_found_tag

    async def resolve(self, key: str, guess: Guess) -> dict[str, Any] | None:
        """Serve from the cache, or fetch and cache a positive result."""
        record = self.cache.get(key)
        if self.is_match(record):
            return record

        record = await self.fetch(guess)
        if not self.is_match(record):
            return None

        self.cache.put(key, record)
        return record


class TMDBLookup(LookupProvider):
    """Films and series, keyed by TMDB media type and release name."""

    name = "tmdb"
    not_found_tag = "TMDB not found"

    def __init__(self, cache: CacheStore, service: TMDBService, media_type: str):
        super().__init__(cache)
        self.service = service
        self.media_type = media_type

    def cache_key(self, item: WorkItem, guess: Guess) -> str:
        return self.cache.make_key(self.media_type, item.name)

    async def fetch(self, guess: Guess) -> dict[str, Any] | None:
        return await self.service.lookup(guess.title, guess.year, self.media_type)

    def is_match(self, record: dict[str, Any] | None) -> bool:
        return bool(record and record.get("id"))

    def found_tag(self, record: dict[str, Any]) -> str:
        return f"ID TMDB : {record['id']}"


class ITunesLookup(LookupProvider):
    """Music, keyed by guessed artist and title."""

    name = "itunes"
    not_found_tag = "iTunes not found"

    def __init__(self, cache: CacheStore, service: ITunesService):
        super().__init__(cache)
        self.service = service

    def cache_key(self, item: WorkItem, guess: Guess) -> str:
        return self.cache.make_key(guess.artist, guess.title)

    async def fetch(self, guess: Guess) -> dict[str, Any] | None:
        return await self.service.lookup(guess.artist, guess.title)

    def is_match(self, record: dict[str, Any] | None) -> bool:
        return bool(record and itunes_id(record))

    def found_tag(self, record: dict[str, Any]) -> str:
        return f"iTunes ID : {itunes_id(record)}"
