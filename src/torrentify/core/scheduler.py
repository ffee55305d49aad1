"""Bounded-parallelism job scheduler."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..error_handling import TorrentifyError

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]


@dataclass
class JobFailure:
    """A job that raised instead of completing."""

    index: int
    error: Exception


@dataclass
class SchedulerReport:
    """Outcome of one scheduler run."""

    submitted: int = 0
    succeeded: int = 0
    failures: list[JobFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


class TaskScheduler:
    """Run independent jobs with at most ``limit`` in flight.

    Admission is semaphore style rather than a static split into workers: a
    new job starts as soon as any running job finishes, so jobs of uneven
    length balance themselves. Jobs are started in submission order; no
    completion order is promised. With ``limit == 1`` jobs run strictly one
    after another.

    A job that raises is logged and recorded in the report. It never stops
    the remaining jobs from starting or finishing. The scheduler does not
    retry, cancel or time out jobs.
    """

    def __init__(self, limit: int):
        if limit < 1:
            msg = f"Parallelism limit must be at least 1, got {limit}"
            raise ValueError(msg)
        self.limit = limit

    async def run(self, jobs: Iterable[Job], *, label: str = "job") -> SchedulerReport:
        report = SchedulerReport()
        in_flight: dict[asyncio.Task, int] = {}

        for index, job in enumerate(jobs):
            if len(in_flight) >= self.limit:
                done, _ = await asyncio.wait(
                    in_flight.keys(),
                    return_when=asyncio.FIRST_COMPLETED,
                )
                self._collect(done, in_flight, report, label)

            task = asyncio.create_task(self._execute(job), name=f"{label}-{index}")
            in_flight[task] = index
            report.submitted += 1

        if in_flight:
            done, _ = await asyncio.wait(in_flight.keys())
            self._collect(done, in_flight, report, label)

        logger.debug(
            "%s: %d submitted, %d succeeded, %d failed",
            label,
            report.submitted,
            report.succeeded,
            report.failed,
        )
        return report

    @staticmethod
    async def _execute(job: Job) -> Any:
        return await job()

    def _collect(
        self,
        done: set[asyncio.Task],
        in_flight: dict[asyncio.Task, int],
        report: SchedulerReport,
        label: str,
    ) -> None:
        for task in done:
            index = in_flight.pop(task)
            error = task.exception()
            if error is None:
                report.succeeded += 1
                continue

            report.failures.append(JobFailure(index=index, error=error))
            if isinstance(error, TorrentifyError):
                logger.error(
                    "%s #%d failed: %s%s",
                    label,
                    index + 1,
                    error.message,
                    f" ({error.details.strip()})" if error.details else "",
                )
            else:
                logger.error(
                    "%s #%d failed: %s",
                    label,
                    index + 1,
                    error,
                    exc_info=error,
                )
