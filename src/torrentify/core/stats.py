"""Run statistics and the end-of-run summary."""

import threading
import time
from collections import Counter
from dataclasses import dataclass, field

from rich.console import Console
from rich.table import Table

from ..models import MediaCategory

COUNTERS = (
    "processed",
    "skipped",
    "failed",
    "deferred",
    "retag_scanned",
    "retag_updated",
    "retag_skipped",
)

LOOKUP_PROVIDERS = ("tmdb", "itunes")


def format_duration(seconds: float) -> str:
    """Format a duration as ``{h}h {m}m {s}s``."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes}m {secs}s"


@dataclass
class RunStatistics:
    """Counters shared by every job of a run.

    All updates go through one lock, so increments coming from concurrent
    pipelines or executor threads are never lost.
    """

    started_at: float = field(default_factory=time.monotonic)
    finished_at: float | None = None
    _counts: Counter = field(default_factory=Counter, init=False, repr=False)
    _by_category: dict[str, Counter] = field(default_factory=dict, init=False, repr=False)
    _lookups: dict[str, Counter] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def increment(
        self,
        counter: str,
        amount: int = 1,
        *,
        category: MediaCategory | None = None,
    ) -> None:
        if counter not in COUNTERS:
            msg = f"Unknown counter: {counter}"
            raise KeyError(msg)
        with self._lock:
            self._counts[counter] += amount
            if category is not None:
                self._by_category.setdefault(category.value, Counter())[counter] += amount

    def record_lookup(self, provider: str, *, found: bool) -> None:
        with self._lock:
            self._lookups.setdefault(provider, Counter())[
                "found" if found else "missing"
            ] += 1

    def get(self, counter: str, category: MediaCategory | None = None) -> int:
        with self._lock:
            if category is None:
                return self._counts[counter]
            return self._by_category.get(category.value, Counter())[counter]

    def lookups(self, provider: str) -> tuple[int, int]:
        """Return ``(found, missing)`` for a lookup provider."""
        with self._lock:
            counts = self._lookups.get(provider, Counter())
            return counts["found"], counts["missing"]

    def finish(self) -> None:
        self.finished_at = time.monotonic()

    @property
    def duration(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    def snapshot(self) -> dict:
        """Plain-dict copy of every counter."""
        with self._lock:
            data: dict = {name: self._counts[name] for name in COUNTERS}
            data["categories"] = {
                name: dict(counts) for name, counts in self._by_category.items()
            }
            data["lookups"] = {
                provider: {
                    "found": self._lookups.get(provider, Counter())["found"],
                    "missing": self._lookups.get(provider, Counter())["missing"],
                }
                for provider in LOOKUP_PROVIDERS
            }
        data["duration_seconds"] = round(self.duration, 3)
        return data


def render_summary(
    stats: RunStatistics,
    console: Console,
    *,
    trackers_changed: bool,
) -> None:
    """Print the end-of-run summary."""
    table = Table(title="📊 Run summary", show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    if trackers_changed:
        table.add_row("🔍 Torrents scanned for retag", str(stats.get("retag_scanned")))
        table.add_row("🔁 Torrents retagged", str(stats.get("retag_updated")))
        table.add_row("⏭️ Retags failed", str(stats.get("retag_skipped")))
        table.add_section()

    table.add_row("🎞️ Processed", str(stats.get("processed")))
    table.add_row("⏭️ Already complete", str(stats.get("skipped")))
    table.add_row("❌ Failed", str(stats.get("failed")))
    table.add_row("⏸️ Deferred (in progress)", str(stats.get("deferred")))

    tmdb_found, tmdb_missing = stats.lookups("tmdb")
    itunes_found, itunes_missing = stats.lookups("itunes")
    table.add_row("🎬 TMDB found", str(tmdb_found))
    table.add_row("⚠️ TMDB missing", str(tmdb_missing))
    table.add_row("🎵 iTunes found", str(itunes_found))
    table.add_row("⚠️ iTunes missing", str(itunes_missing))
    table.add_row("⏱️ Total time", format_duration(stats.duration))

    console.print(table)
