"""Tests for the mediainfo wrapper."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from torrentify.config import TorrentifyConfig
from torrentify.services.mediainfo import MediaInfoService, rewrite_complete_name

REPORT = """General
Complete name                            : /films/Some Dir/Movie.One.2020.mkv
Format                                   : Matroska
"""


def test_rewrite_complete_name():
    rewritten = rewrite_complete_name(REPORT, "Movie.One.2020.mkv")

    assert "Complete name                            : Movie.One.2020.mkv" in rewritten
    assert "/films/Some Dir" not in rewritten
    assert "Format                                   : Matroska" in rewritten


def test_rewrite_without_complete_name_is_noop():
    assert rewrite_complete_name("General\n", "x.mkv") == "General\n"


@pytest.mark.asyncio
async def test_inspect_strips_source_path():
    service = MediaInfoService(TorrentifyConfig(mediainfo_timeout=15))
    path = Path("/films/Some Dir/Movie.One.2020.mkv")

    with patch(
        "torrentify.services.mediainfo.run_tool_async",
        AsyncMock(return_value=REPORT),
    ) as run:
        report = await service.inspect(path)

    run.assert_awaited_once_with(["mediainfo", str(path)], tool="mediainfo", timeout=15)
    assert "/films/Some Dir" not in report
