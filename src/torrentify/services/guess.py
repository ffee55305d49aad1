"""Filename parsing via guessit."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from guessit import guessit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Guess:
    """What can be told about a media file from its name alone."""

    title: str
    year: int | None = None
    artist: str | None = None


def _first(value: Any) -> Any:
    # guessit returns lists when a property is ambiguous
    if isinstance(value, list):
        return value[0] if value else None
    return value


class FilenameGuesser:
    """Guess title, year and artist from a path. Never raises."""

    def guess(self, path: Path) -> Guess:
        try:
            data = guessit(str(path))
        except Exception as e:
            logger.warning(f"guessit failed for {path.name}, using file name: {e}")
            return Guess(title=path.stem)

        title = _first(data.get("title")) or path.stem
        year = _first(data.get("year"))
        artist = _first(data.get("artist"))

        return Guess(
            title=str(title),
            year=int(year) if isinstance(year, int) else None,
            artist=str(artist) if artist else None,
        )
