"""mkbrr torrent creation service wrapper."""

import logging
from collections.abc import Sequence
from pathlib import Path

from ..config import TorrentifyConfig
from ..error_handling import ExternalToolError
from .process import run_tool_async

logger = logging.getLogger(__name__)


class MkbrrService:
    """Async wrapper for creating and retagging private torrents with mkbrr."""

    def __init__(self, config: TorrentifyConfig):
        self.config = config
        self.binary = config.mkbrr_binary

    @staticmethod
    def _tracker_args(trackers: Sequence[str]) -> list[str]:
        args: list[str] = []
        for tracker in trackers:
            args.extend(["--tracker", tracker])
        return args

    async def create(
        self,
        source: Path,
        output: Path,
        trackers: Sequence[str],
    ) -> Path:
        """Create a private torrent for a file or a whole directory."""
        cmd = [
            self.binary,
            "create",
            str(source),
            "--output",
            str(output),
            "--private",
            *self._tracker_args(trackers),
        ]

        logger.info(f"Creating torrent: {source.name} -> {output.name}")
        try:
            await run_tool_async(cmd, tool="mkbrr", timeout=self.config.mkbrr_timeout)
        except ExternalToolError:
            # A half-written torrent would mark the stage done on the next run
            output.unlink(missing_ok=True)
            raise

        if not output.exists():
            raise ExternalToolError(
                "mkbrr",
                message=f"mkbrr reported success but {output.name} was not written",
            )
        return output

    async def update(self, torrent: Path, trackers: Sequence[str]) -> Path:
        """Replace the tracker list embedded in an existing torrent in place.

        Re-applying the same tracker list rewrites identical announce data,
        so repeating an update after an interrupted sweep is harmless.
        """
        cmd = [
            self.binary,
            "modify",
            str(torrent),
            *self._tracker_args(trackers),
            "--output",
            str(torrent.with_suffix("")),
        ]

        logger.debug(f"Retagging torrent: {torrent}")
        await run_tool_async(cmd, tool="mkbrr", timeout=self.config.mkbrr_timeout)
        return torrent
