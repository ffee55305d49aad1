"""Tracker fingerprint: detect tracker list changes and retag old torrents."""

import functools
import hashlib
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..storage.atomic import atomic_write_text
from .scheduler import TaskScheduler
from .stats import RunStatistics

logger = logging.getLogger(__name__)


class PackageUpdater(Protocol):
    async def update(self, torrent: Path, trackers: Sequence[str]) -> Path: ...


def compute_fingerprint(trackers: Iterable[str]) -> str:
    """SHA-256 over the sorted, deduplicated tracker set joined with ``|``."""
    normalized = sorted({t.strip() for t in trackers if t and t.strip()})
    return hashlib.sha256("|".join(normalized).encode("utf-8")).hexdigest()


@dataclass
class SweepReport:
    """Outcome of a retag sweep."""

    triggered: bool
    scanned: int = 0
    updated: int = 0
    failed: int = 0


class FingerprintGate:
    """Compare the configured trackers with the ones existing torrents carry.

    When they differ every existing torrent is retagged. The new digest is
    written only once the whole sweep has run, so a crash mid-sweep leaves
    the old digest in place and the next run sweeps again.
    """

    def __init__(self, path: Path, trackers: Sequence[str]):
        self.path = path
        self.trackers = list(trackers)
        self.current = compute_fingerprint(self.trackers)
        self.previous = self._read_previous()

    def _read_previous(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8").strip() or None

    @property
    def changed(self) -> bool:
        return self.current != self.previous

    def persist(self) -> None:
        atomic_write_text(self.path, self.current)
        self.previous = self.current
        logger.debug(f"Stored tracker fingerprint {self.current[:12]}")

    @staticmethod
    def find_packages(roots: Iterable[Path]) -> list[Path]:
        """Every ``.torrent`` below any of ``roots``, without duplicates."""
        found: set[Path] = set()
        for root in roots:
            if root.is_dir():
                found.update(p.resolve() for p in root.rglob("*.torrent") if p.is_file())
        return sorted(found)

    async def sweep(
        self,
        roots: Iterable[Path],
        updater: PackageUpdater,
        scheduler: TaskScheduler,
        stats: RunStatistics,
    ) -> SweepReport:
        if not self.changed:
            logger.debug("Tracker list unchanged, no retag needed")
            return SweepReport(triggered=False)

        logger.info("🔁 Trackers changed → updating existing torrents")
        torrents = self.find_packages(roots)
        stats.increment("retag_scanned", len(torrents))
        report = SweepReport(triggered=True, scanned=len(torrents))

        if not torrents:
            logger.info("ℹ️ No existing torrents to update")
        else:
            logger.info(f"🛠️ Updating announce URLs on {len(torrents)} torrents")
            jobs = [
                functools.partial(self._retag, torrent, updater, stats)
                for torrent in torrents
            ]
            result = await scheduler.run(jobs, label="Retag")
            report.updated = result.succeeded
            report.failed = result.failed
            stats.increment("retag_skipped", result.failed)

        self.persist()
        return report

    async def _retag(
        self,
        torrent: Path,
        updater: PackageUpdater,
        stats: RunStatistics,
    ) -> None:
        await updater.update(torrent, self.trackers)
        stats.increment("retag_updated")
