"""Durable storage for lookup results."""

from .atomic import atomic_write_text
from .cache import CacheStore

__all__ = ["CacheStore", "atomic_write_text"]
