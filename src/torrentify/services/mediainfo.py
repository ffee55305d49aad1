"""MediaInfo service wrapper."""

import logging
import re
from pathlib import Path

from ..config import TorrentifyConfig
from .process import run_tool_async

logger = logging.getLogger(__name__)

_COMPLETE_NAME = re.compile(r"^(\s*Complete name\s*:\s*).*$", re.MULTILINE)


def rewrite_complete_name(report: str, filename: str) -> str:
    """Replace the absolute path on the ``Complete name`` line with a bare filename."""
    return _COMPLETE_NAME.sub(lambda m: m.group(1) + filename, report, count=1)


class MediaInfoService:
    """Async wrapper around the mediainfo CLI."""

    def __init__(self, config: TorrentifyConfig):
        self.config = config
        self.binary = config.mediainfo_binary

    async def inspect(self, path: Path) -> str:
        """Return the mediainfo text report for ``path``.

        The report is made portable: the ``Complete name`` line only carries
        the file name, never the absolute source path.
        """
        logger.debug(f"Inspecting {path}")
        report = await run_tool_async(
            [self.binary, str(path)],
            tool="mediainfo",
            timeout=self.config.mediainfo_timeout,
        )
        return rewrite_complete_name(report, path.name)
