"""Main workflow orchestration for torrentify."""

import functools
import logging
from pathlib import Path

from ..config import TorrentifyConfig
from ..discovery import discover
from ..models import MediaCategory, WorkItem
from ..services.guess import FilenameGuesser
from ..services.itunes import ITunesService
from ..services.lookup import ITunesLookup, LookupProvider, TMDBLookup
from ..services.mediainfo import MediaInfoService
from ..services.mkbrr import MkbrrService
from ..services.tmdb import TMDBService
from ..storage.cache import CacheStore
from .fingerprint import FingerprintGate, SweepReport
from .pipeline import ItemOutcome, ItemPipeline
from .scheduler import TaskScheduler
from .stats import RunStatistics

logger = logging.getLogger(__name__)

TMDB_TYPE_BY_CATEGORY = {
    MediaCategory.FILMS: "movie",
    MediaCategory.SERIES: "tv",
}


class TorrentifyOrchestrator:
    """Runs one complete pass: tracker retag sweep, then every enabled category."""

    def __init__(
        self,
        config: TorrentifyConfig,
        *,
        stats: RunStatistics | None = None,
        inspector: MediaInfoService | None = None,
        packager: MkbrrService | None = None,
        guesser: FilenameGuesser | None = None,
        tmdb: TMDBService | None = None,
        itunes: ITunesService | None = None,
    ):
        self.config = config
        self.stats = stats or RunStatistics()

        # External collaborators, injectable for tests
        self.inspector = inspector or MediaInfoService(config)
        self.packager = packager or MkbrrService(config)
        self.guesser = guesser or FilenameGuesser()
        self.tmdb = tmdb or TMDBService(config)
        self.itunes = itunes or ITunesService(config)

        self.tmdb_cache = CacheStore(config.tmdb_cache_dir, name="tmdb")
        self.itunes_cache = CacheStore(config.itunes_cache_dir, name="itunes")

        self.scheduler = TaskScheduler(config.parallel_jobs)
        self.gate = FingerprintGate(config.fingerprint_file, config.trackers)
        self.sweep_report: SweepReport | None = None

    @property
    def trackers_changed(self) -> bool:
        return bool(self.sweep_report and self.sweep_report.triggered)

    def output_roots(self) -> list[Path]:
        roots = [self.config.dest_dir]
        roots.extend(self.config.destination(c) for c in MediaCategory)
        return roots

    def provider_for(self, category: MediaCategory) -> LookupProvider:
        if category == MediaCategory.MUSIC:
            return ITunesLookup(self.itunes_cache, self.itunes)
        return TMDBLookup(self.tmdb_cache, self.tmdb, TMDB_TYPE_BY_CATEGORY[category])

    def pipeline_for(self, category: MediaCategory) -> ItemPipeline:
        return ItemPipeline(
            inspector=self.inspector,
            packager=self.packager,
            guesser=self.guesser,
            provider=self.provider_for(category),
            trackers=self.config.trackers,
            stats=self.stats,
            partial_extensions=self.config.partial_extensions,
        )

    async def run(self) -> RunStatistics:
        """Process everything once and return the run statistics."""
        logger.info("🚀 Initial scan at startup")
        self.config.ensure_directories()

        # Retag before anything else so new torrents are never swept twice
        self.sweep_report = await self.gate.sweep(
            self.output_roots(),
            self.packager,
            self.scheduler,
            self.stats,
        )

        for category in self.config.enabled_categories():
            await self.process_category(category)

        self.stats.finish()
        return self.stats

    async def process_category(self, category: MediaCategory) -> None:
        items = discover(self.config, category)
        if not items:
            logger.info(f"ℹ️ No {category.value} content to process")
            return

        if self.scheduler.limit == 1:
            logger.info(f"▶️ {category.value}: sequential mode")
        else:
            logger.info(
                f"⚡ {category.value}: parallel mode ({self.scheduler.limit} jobs)",
            )

        pipeline = self.pipeline_for(category)
        total = len(items)
        jobs = [
            functools.partial(self._process_item, pipeline, item, index, total)
            for index, item in enumerate(items, start=1)
        ]

        report = await self.scheduler.run(jobs, label=category.label)
        if report.failed:
            self.stats.increment("failed", report.failed, category=category)

    async def _process_item(
        self,
        pipeline: ItemPipeline,
        item: WorkItem,
        index: int,
        total: int,
    ) -> ItemOutcome:
        outcome = await pipeline.run(item, index=index, total=total)
        if outcome == ItemOutcome.PROCESSED:
            self.stats.increment("processed", category=item.category)
        elif outcome == ItemOutcome.SKIPPED:
            self.stats.increment("skipped", category=item.category)
        else:
            self.stats.increment("deferred", category=item.category)
        return outcome
