"""Shared test configuration and fixtures."""

import logging

import pytest

from torrentify.cli import cleanup_logging
from torrentify.config import TorrentifyConfig

ENV_VARS = (
    "TRACKERS",
    "TMDB_API_KEY",
    "PARALLEL_JOBS",
    "DEST_DIR",
    "ENABLE_FILMS",
    "ENABLE_SERIES",
    "ENABLE_MUSIQUES",
)


@pytest.fixture(scope="function", autouse=True)
def clean_environment(monkeypatch):
    """Keep container style overrides from the host out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="function", autouse=True)
def cleanup_logging_handlers():
    """Automatically cleanup logging handlers after each test to prevent ResourceWarnings."""
    yield
    cleanup_logging()


@pytest.fixture(scope="function", autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    # Clear all handlers and reset to default
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    # Reset logging level
    root_logger.setLevel(logging.WARNING)


@pytest.fixture
def config(tmp_path) -> TorrentifyConfig:
    """Configuration rooted entirely in the test's temporary directory."""
    for name in ("films", "series", "musiques"):
        (tmp_path / "src" / name).mkdir(parents=True)
    return TorrentifyConfig(
        dest_dir=tmp_path / "out",
        state_dir=tmp_path / "state",
        log_dir=tmp_path / "logs",
        films={"enabled": True, "source": tmp_path / "src" / "films"},
        series={"enabled": True, "source": tmp_path / "src" / "series"},
        music={"enabled": True, "source": tmp_path / "src" / "musiques"},
        trackers=["https://t1.example/announce"],
        tmdb_api_key="dummy",
    )

