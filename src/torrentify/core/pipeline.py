"""Per-item stage pipeline: metadata record, torrent, lookup tag."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from ..discovery import has_partial_files
from ..models import WorkItem
from ..services.guess import FilenameGuesser, Guess
from ..services.lookup import LookupProvider
from ..services.mediainfo import MediaInfoService
from ..services.mkbrr import MkbrrService
from ..storage.atomic import atomic_write_text
from .stats import RunStatistics

logger = logging.getLogger(__name__)

NFO_RULE = "=" * 60


class StageState(Enum):
    PENDING = "pending"
    DONE = "done"


class ItemOutcome(Enum):
    """What happened to an item during this run."""

    PROCESSED = "processed"
    SKIPPED = "skipped"
    DEFERRED = "deferred"


@dataclass(frozen=True)
class PipelineStatus:
    """Stage completion inferred from what is already on disk.

    The artifacts themselves are the only job state: a stage is done when its
    artifact exists. The lookup stage additionally needs its cache entry, or
    a tag file that records a known miss.
    """

    metadata: StageState
    package: StageState
    lookup: StageState

    @property
    def complete(self) -> bool:
        return all(
            state == StageState.DONE
            for state in (self.metadata, self.package, self.lookup)
        )

    @classmethod
    def for_item(
        cls,
        item: WorkItem,
        provider: LookupProvider,
        cache_key: str,
    ) -> "PipelineStatus":
        artifacts = item.artifacts

        def state(done: bool) -> StageState:
            return StageState.DONE if done else StageState.PENDING

        lookup_done = False
        if artifacts.tag.exists():
            # A corrupt cache entry reads as a miss and is dropped, forcing a refetch
            lookup_done = provider.is_match(provider.cache.get(cache_key)) or (
                provider.is_not_found_tag(
                    artifacts.tag.read_text(encoding="utf-8", errors="replace"),
                )
            )

        return cls(
            metadata=state(artifacts.nfo.exists()),
            package=state(artifacts.torrent.exists()),
            lookup=state(lookup_done),
        )


def render_nfo(release_name: str, report: str, added_on: datetime) -> str:
    """Wrap a mediainfo report with the release header and footer."""
    return "\n".join(
        [
            NFO_RULE,
            f"Release Name : {release_name}",
            f"Added On    : {added_on.strftime('%Y-%m-%d %H:%M:%S')}",
            NFO_RULE,
            "",
            report.strip(),
            "",
            NFO_RULE,
            "Generated by torrentify",
            NFO_RULE,
        ],
    )


class ItemPipeline:
    """Drive one work item through its idempotent stages.

    Only pending stages run. Any stage failure propagates to the caller and
    leaves later stages untouched, so the next run resumes from the first
    missing artifact.
    """

    def __init__(
        self,
        *,
        inspector: MediaInfoService,
        packager: MkbrrService,
        guesser: FilenameGuesser,
        provider: LookupProvider,
        trackers: Sequence[str],
        stats: RunStatistics,
        partial_extensions: Sequence[str] = (),
    ):
        self.inspector = inspector
        self.packager = packager
        self.guesser = guesser
        self.provider = provider
        self.trackers = list(trackers)
        self.stats = stats
        self.partial_extensions = list(partial_extensions)

    async def run(
        self,
        item: WorkItem,
        index: int | None = None,
        total: int | None = None,
    ) -> ItemOutcome:
        if item.is_folder and await self._transfer_in_progress(item):
            logger.info(f"⏸️ Download in progress, skipping: {item.source}")
            return ItemOutcome.DEFERRED

        # guessit parsing is CPU bound; keep it off the event loop
        loop = asyncio.get_running_loop()
        guess = await loop.run_in_executor(None, self.guesser.guess, item.reference_file)
        cache_key = self.provider.cache_key(item, guess)
        status = PipelineStatus.for_item(item, self.provider, cache_key)

        if status.complete:
            logger.info(f"⏭️ Already processed: {item.name}")
            return ItemOutcome.SKIPPED

        position = f" {index}/{total}" if index is not None and total is not None else ""
        logger.info(
            f"📊 {item.category.label}{position} → {item.name}"
            + (f" ({len(item.files)} files)" if item.is_folder else ""),
        )
        item.output_dir.mkdir(parents=True, exist_ok=True)

        if status.metadata == StageState.PENDING:
            await self.write_metadata(item)
        if status.package == StageState.PENDING:
            await self.create_package(item)
        if status.lookup == StageState.PENDING:
            await self.write_tag(item, guess, cache_key)

        return ItemOutcome.PROCESSED

    async def _transfer_in_progress(self, item: WorkItem) -> bool:
        if not self.partial_extensions:
            return False
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            has_partial_files,
            item.source,
            self.partial_extensions,
        )

    async def write_metadata(self, item: WorkItem) -> None:
        report = await self.inspector.inspect(item.reference_file)
        atomic_write_text(
            item.artifacts.nfo,
            render_nfo(item.release_name, report, datetime.now(UTC)),
        )

    async def create_package(self, item: WorkItem) -> None:
        await self.packager.create(item.source, item.artifacts.torrent, self.trackers)

    async def write_tag(self, item: WorkItem, guess: Guess, cache_key: str) -> None:
        record = await self.provider.resolve(cache_key, guess)
        if record is not None:
            self.stats.record_lookup(self.provider.name, found=True)
            atomic_write_text(item.artifacts.tag, self.provider.found_tag(record))
            return

        self.stats.record_lookup(self.provider.name, found=False)
        atomic_write_text(item.artifacts.tag, self.provider.not_found_tag)
        logger.warning(f"⚠️ {self.provider.name.upper()} not found: {guess.title}")
