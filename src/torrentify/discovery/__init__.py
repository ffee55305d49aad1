"""Media discovery and classification."""

from .scanner import discover, has_partial_files, list_entries, list_files

__all__ = ["discover", "has_partial_files", "list_entries", "list_files"]
