"""Lookup result caching, one JSON file per key."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from .atomic import atomic_write_text

logger = logging.getLogger(__name__)


class CacheStore:
    """File-based cache for external lookup results.

    Every key maps to ``<cache_dir>/<key>.json``. A file that cannot be parsed,
    or that does not hold a JSON object, is deleted and reported as a miss, so
    a corrupt entry is rebuilt by the next lookup instead of blocking the item
    forever. Writes go through a
    temporary file and ``os.replace`` so readers only ever see a complete
    document. Entries never expire.
    """

    def __init__(self, cache_dir: Path, name: str = "cache"):
        self.cache_dir = cache_dir
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.name = name
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def make_key(*parts: str | int | None) -> str:
        """Build a normalized, case-insensitive key from the given parts."""
        cleaned = [str(p).strip() for p in parts if p is not None and str(p).strip()]
        key = "_".join(cleaned).lower().replace(" ", ".")
        # Keep keys usable as file names
        return re.sub(r"[/\\\x00]", "-", key)

    def _path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def contains(self, key: str) -> bool:
        return self._path_for(key).exists()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss."""
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                value = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.warning(
                "Corrupt %s cache entry %s, removing: %s",
                self.name,
                path.name,
                e,
            )
            self.delete(key)
            return None
        except FileNotFoundError:
            # Removed between the existence check and the read
            return None

        if not isinstance(value, dict):
            self.logger.warning(
                "Malformed %s cache entry %s (%s), removing",
                self.name,
                path.name,
                type(value).__name__,
            )
            self.delete(key)
            return None

        self.logger.debug(f"Cache hit for {self.name} key: {key}")
        return value

    def put(self, key: str, value: Any) -> None:
        """Store a value atomically."""
        atomic_write_text(
            self._path_for(key),
            json.dumps(value, indent=2, ensure_ascii=False),
        )
        self.logger.debug(f"Cached {self.name} result for key: {key}")

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if a file was removed."""
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False

    def keys(self) -> list[str]:
        return sorted(p.stem for p in self.cache_dir.glob("*.json"))

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        files = list(self.cache_dir.glob("*.json"))
        return {
            "name": self.name,
            "path": str(self.cache_dir),
            "total_entries": len(files),
            "size_bytes": sum(f.stat().st_size for f in files),
        }

    def clear(self) -> int:
        """Clear all cache entries. Returns the number removed."""
        removed = 0
        for key in self.keys():
            if self.delete(key):
                removed += 1
        self.logger.info(f"Cleared {removed} {self.name} cache entries")
        return removed
