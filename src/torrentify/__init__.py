"""torrentify - batch release builder for media libraries."""

__version__ = "0.1.0"
