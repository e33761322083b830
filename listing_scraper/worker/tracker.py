"""Per-job state machine and progress accounting.

    created -> scraping -> completed
                        -> failed

Both completed and failed are terminal. Every accepted event is merged into the
job registry and then handed to progress listeners.
"""

import inspect
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence

from listing_scraper.ingest.base import ProductRecord
from listing_scraper.worker.job_registry import (
    STATUS_COMPLETED,
    STATUS_CREATED,
    STATUS_FAILED,
    STATUS_SCRAPING,
    TERMINAL_STATUSES,
    JobRegistry,
    JobSnapshot,
)
from listing_scraper import metrics

logger = logging.getLogger(__name__)

ProgressListener = Callable[[str, JobSnapshot], Any]


class JobStateError(RuntimeError):
    """An event arrived that the job's current state does not allow."""


@dataclass(frozen=True)
class ProgressPolicy:
    """
    Maps completed pages to a progress percentage.

    ``scale`` is the share of the bar earned by scraping; ``cap`` is the highest
    value reported before the job completes. A 90/90 policy leaves the last 10% to
    the artifact write, so 100 only ever appears on completion.
    """

    scale: int = 100
    cap: int = 100

    def compute(self, pages_completed: int, total_pages: int) -> int:
        if total_pages <= 0 or pages_completed <= 0:
            return 0
        # Half-up rounding, so 22.5 reports as 23
        value = math.floor(pages_completed / total_pages * self.scale + 0.5)
        return max(0, min(value, self.cap))


@dataclass
class ScrapeJob:
    """Mutable job state; only JobTracker changes it."""

    job_id: str
    owner: str
    platform: str
    total_pages: int
    policy: ProgressPolicy = field(default_factory=ProgressPolicy)
    state: str = STATUS_CREATED
    pages_completed: int = 0
    records: List[ProductRecord] = field(default_factory=list)
    progress: int = 0
    artifact_reference: Optional[str] = None
    error_detail: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATUSES


class JobTracker:
    """Owns one job's state machine and publishes its snapshots."""

    def __init__(
        self,
        job: ScrapeJob,
        registry: JobRegistry,
        listeners: Sequence[ProgressListener] = (),
    ):
        self.job = job
        self.registry = registry
        self.listeners = list(listeners)

    @classmethod
    async def create(
        cls,
        job: ScrapeJob,
        registry: JobRegistry,
        listeners: Sequence[ProgressListener] = (),
    ) -> "JobTracker":
        """Register the job in its initial state and return its tracker."""
        tracker = cls(job, registry, listeners)
        await registry.put(tracker.snapshot())
        return tracker

    @property
    def records(self) -> tuple[ProductRecord, ...]:
        return tuple(self.job.records)

    def snapshot(self) -> JobSnapshot:
        job = self.job
        return JobSnapshot(
            job_id=job.job_id,
            owner=job.owner,
            platform=job.platform,
            status=job.state,
            total_pages=job.total_pages,
            created_at=job.created_at,
            progress=job.progress,
            current_page=job.pages_completed,
            products_scraped=len(job.records),
            total_products=len(job.records),
            artifact_reference=job.artifact_reference,
            error_detail=job.error_detail,
            finished_at=job.finished_at,
        )

    def _reject_if_terminal(self, event: str) -> bool:
        if self.job.is_terminal:
            logger.warning(
                f"Ignoring {event} for job {self.job.job_id}: already {self.job.state}"
            )
            return True
        return False

    async def start(self) -> bool:
        """created -> scraping."""
        if self._reject_if_terminal("start"):
            return False
        if self.job.state != STATUS_CREATED:
            raise JobStateError(f"Job {self.job.job_id} already started")

        self.job.state = STATUS_SCRAPING
        await self._publish(status=STATUS_SCRAPING, progress=self.job.progress)
        return True

    async def page_completed(self, page_number: int, records: Sequence[ProductRecord]) -> bool:
        """Record one finished page and recompute progress."""
        if self._reject_if_terminal("page update"):
            return False
        if self.job.state != STATUS_SCRAPING:
            raise JobStateError(f"Job {self.job.job_id} is not scraping")

        job = self.job
        job.pages_completed = max(job.pages_completed, page_number)
        job.records.extend(records)
        job.progress = max(job.progress, job.policy.compute(job.pages_completed, job.total_pages))

        await self._publish(
            progress=job.progress,
            current_page=job.pages_completed,
            products_scraped=len(job.records),
            total_products=len(job.records),
        )
        return True

    async def complete(self, artifact_reference: str) -> bool:
        """scraping -> completed; progress becomes exactly 100."""
        if self._reject_if_terminal("completion"):
            return False
        if self.job.state != STATUS_SCRAPING:
            raise JobStateError(f"Job {self.job.job_id} cannot complete before it starts")

        job = self.job
        job.state = STATUS_COMPLETED
        job.progress = 100
        job.artifact_reference = artifact_reference
        job.finished_at = datetime.now(timezone.utc)
        metrics.scrape_jobs_total.labels(platform=job.platform, status=STATUS_COMPLETED).inc()

        await self._publish(
            status=STATUS_COMPLETED,
            progress=100,
            artifact_reference=artifact_reference,
            finished_at=job.finished_at,
        )
        return True

    async def fail(self, error_detail: str) -> bool:
        """created/scraping -> failed; progress stays where it was."""
        if self._reject_if_terminal("failure"):
            return False

        job = self.job
        job.state = STATUS_FAILED
        job.error_detail = error_detail.strip() if error_detail and error_detail.strip() else "Unknown error"
        job.finished_at = datetime.now(timezone.utc)
        metrics.scrape_jobs_total.labels(platform=job.platform, status=STATUS_FAILED).inc()

        await self._publish(
            status=STATUS_FAILED,
            error_detail=job.error_detail,
            finished_at=job.finished_at,
        )
        return True

    async def _publish(self, **changes) -> JobSnapshot:
        snapshot = await self.registry.merge(self.job.job_id, **changes)
        for listener in self.listeners:
            try:
                result = listener(self.job.job_id, snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Progress listener error for job {self.job.job_id}: {e}")
        return snapshot
