"""Configuration management for torrentify."""

import os
from pathlib import Path
from typing import Any

import tomli
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import MediaCategory

DEFAULT_VIDEO_EXTENSIONS = ["mkv", "mp4", "avi", "mov", "flv", "wmv", "m4v"]
DEFAULT_AUDIO_EXTENSIONS = ["mp3", "flac", "aac", "wav"]
DEFAULT_PARTIAL_EXTENSIONS = ["part", "tmp", "crdownload"]
DEFAULT_SOURCES = {
    "films": "/films",
    "series": "/series",
    "music": "/musiques",
}

# Environment overrides for container deployments
ENV_CATEGORY_FLAGS = {
    "ENABLE_FILMS": "films",
    "ENABLE_SERIES": "series",
    "ENABLE_MUSIQUES": "music",
}


def _expand(v: Path | str) -> Path:
    if isinstance(v, str):
        v = Path(v)
    return v.expanduser().resolve()


class CategoryConfig(BaseModel):
    """Source and destination settings for one media category."""

    enabled: bool = Field(default=False)
    source: Path
    dest: Path | None = None

    @field_validator("source", "dest", mode="before")
    @classmethod
    def expand_paths(cls, v: Path | str | None) -> Path | None:
        """Expand user home directory in paths."""
        if v is None:
            return None
        return _expand(v)


class TorrentifyConfig(BaseModel):
    """Main configuration for torrentify."""

    # Defaults go through the validators too (home expansion, env fallbacks)
    model_config = ConfigDict(validate_default=True)

    # Paths - Generic defaults, MUST be configured in config.toml for your setup
    dest_dir: Path = Field(default=Path("~/torrents"))
    state_dir: Path = Field(default=Path("~/.local/share/torrentify"))
    log_dir: Path = Field(default=Path("~/.local/share/torrentify/logs"))

    # Media categories
    films: CategoryConfig = Field(
        default_factory=lambda: CategoryConfig(source=DEFAULT_SOURCES["films"]),
    )
    series: CategoryConfig = Field(
        default_factory=lambda: CategoryConfig(source=DEFAULT_SOURCES["series"]),
    )
    music: CategoryConfig = Field(
        default_factory=lambda: CategoryConfig(source=DEFAULT_SOURCES["music"]),
    )

    # Trackers embedded in every package
    trackers: list[str] = Field(default_factory=list)

    # Concurrency
    parallel_jobs: int = Field(default=1)

    # TMDB API
    tmdb_api_key: str | None = None
    tmdb_language: str = Field(default="fr-FR")
    fallback_language: str = Field(default="en-US")

    # File type detection
    video_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS),
    )
    audio_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_AUDIO_EXTENSIONS),
    )
    partial_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PARTIAL_EXTENSIONS),
    )

    # External tools
    mediainfo_binary: str = Field(default="mediainfo")
    mkbrr_binary: str = Field(default="mkbrr")

    # Timeout Settings (seconds)
    mediainfo_timeout: int = Field(default=120)  # 2 minutes
    mkbrr_timeout: int = Field(default=3600)  # 1 hour, hashing large folders
    tmdb_request_timeout: int = Field(default=30)
    itunes_request_timeout: int = Field(default=30)

    @field_validator("dest_dir", "state_dir", "log_dir", mode="before")
    @classmethod
    def expand_paths(cls, v: Path | str) -> Path:
        """Expand user home directory in paths."""
        return _expand(v)

    @field_validator("trackers", mode="before")
    @classmethod
    def split_trackers(cls, v: str | list[str] | None) -> list[str]:
        """Accept a comma-separated string, drop blanks and duplicates."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return list(dict.fromkeys(t.strip() for t in v if t and t.strip()))

    @field_validator("parallel_jobs", mode="before")
    @classmethod
    def clamp_parallel_jobs(cls, v: int | str) -> int:
        """Never run with fewer than one job in flight."""
        return max(1, int(v))

    @field_validator(
        "video_extensions",
        "audio_extensions",
        "partial_extensions",
        mode="after",
    )
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        return [ext.lower().lstrip(".") for ext in v if ext]

    @field_validator("tmdb_api_key", mode="after")
    @classmethod
    def tmdb_key_from_env(cls, v: str | None) -> str | None:
        """Fall back to the TMDB_API_KEY environment variable."""
        return v or os.getenv("TMDB_API_KEY") or None

    @property
    def cache_dir(self) -> Path:
        return self.state_dir / "cache"

    @property
    def tmdb_cache_dir(self) -> Path:
        return self.cache_dir / "tmdb"

    @property
    def itunes_cache_dir(self) -> Path:
        return self.cache_dir / "itunes"

    @property
    def fingerprint_file(self) -> Path:
        """Digest of the tracker list the existing packages were built with."""
        return self.state_dir / "trackers.fingerprint.sha256"

    @property
    def lock_file(self) -> Path:
        return self.state_dir / "torrentify.lock"

    def category_settings(self, category: MediaCategory) -> CategoryConfig:
        return {
            MediaCategory.FILMS: self.films,
            MediaCategory.SERIES: self.series,
            MediaCategory.MUSIC: self.music,
        }[category]

    def destination(self, category: MediaCategory) -> Path:
        """Output root for a category, defaulting to ``dest_dir/<name>``."""
        settings = self.category_settings(category)
        return settings.dest or self.dest_dir / category.value

    def enabled_categories(self) -> list[MediaCategory]:
        """Enabled categories in processing order."""
        order = [MediaCategory.FILMS, MediaCategory.MUSIC, MediaCategory.SERIES]
        return [c for c in order if self.category_settings(c).enabled]

    @property
    def needs_tmdb(self) -> bool:
        enabled = self.enabled_categories()
        return MediaCategory.FILMS in enabled or MediaCategory.SERIES in enabled

    def validate_for_run(self) -> list[str]:
        """Return the problems that make a processing run impossible."""
        problems = []
        if not self.trackers:
            problems.append("No trackers configured")
        if not self.enabled_categories():
            problems.append("No media category enabled")
        if self.needs_tmdb and not self.tmdb_api_key:
            problems.append("TMDB API key is required for films and series")
        return problems

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        dirs = [
            self.state_dir,
            self.log_dir,
            self.tmdb_cache_dir,
            self.itunes_cache_dir,
            self.dest_dir,
        ]
        dirs.extend(self.destination(c) for c in self.enabled_categories())
        for dir_path in dirs:
            dir_path.mkdir(parents=True, exist_ok=True)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Layer environment variables over values read from the config file."""
    if trackers := os.getenv("TRACKERS"):
        data["trackers"] = trackers
    if parallel := os.getenv("PARALLEL_JOBS"):
        data["parallel_jobs"] = parallel
    if dest := os.getenv("DEST_DIR"):
        data["dest_dir"] = dest
    for env_name, section in ENV_CATEGORY_FLAGS.items():
        value = os.getenv(env_name)
        if value is not None:
            category = dict(data.get(section) or {})
            category["enabled"] = value.strip().lower() == "true"
            data[section] = category
    return data


def load_config(config_path: Path | None = None) -> TorrentifyConfig:
    """Load configuration from file or defaults, then apply env overrides."""
    if config_path is None:
        # Check common config locations (user config first)
        possible_paths = [
            Path.home() / ".config" / "torrentify" / "config.toml",
            Path.cwd() / "torrentify.toml",
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    config_data: dict[str, Any] = {}
    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomli.load(f)

    data = _apply_env_overrides(config_data)
    for section, source in DEFAULT_SOURCES.items():
        # Partial category tables keep the default source directory
        if section in data:
            data[section] = {"source": source, **data[section]}
    return TorrentifyConfig(**data)


def create_sample_config(path: Path) -> None:
    """Create a sample configuration file."""
    sample_config = """# torrentify Configuration
# ========================
# Edit the REQUIRED settings below, then customize optional settings as needed.

# ============================================================================
# REQUIRED SETTINGS
# ============================================================================

# Trackers embedded in every created torrent. Changing this list retags
# every existing torrent on the next run.
trackers = ["https://tracker.example.org/announce"]

# TMDB API (required when films or series are enabled)
tmdb_api_key = "your_tmdb_api_key_here"           # Get from themoviedb.org/settings/api

# Output root, one sub-directory per category unless overridden below
dest_dir = "/data/torrent"

[films]
enabled = true
source = "/films"

[series]
enabled = false
source = "/series"

[music]
enabled = false
source = "/musiques"
# dest = "/data/torrent/musiques"

# ============================================================================
# COMMONLY CUSTOMIZED SETTINGS
# ============================================================================

# parallel_jobs = 1                              # Items processed concurrently
# state_dir = "~/.local/share/torrentify"        # Lookup caches and tracker fingerprint
# log_dir = "~/.local/share/torrentify/logs"
# tmdb_language = "fr-FR"                        # Primary TMDB language
# fallback_language = "en-US"                    # Used when the primary finds nothing

# ============================================================================
# ADVANCED SETTINGS
# ============================================================================

# mediainfo_binary = "mediainfo"
# mkbrr_binary = "mkbrr"
# mediainfo_timeout = 120
# mkbrr_timeout = 3600
# tmdb_request_timeout = 30
# itunes_request_timeout = 30
# partial_extensions = ["part", "tmp", "crdownload"]
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(sample_config)
