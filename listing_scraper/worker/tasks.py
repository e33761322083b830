"""Background scrape jobs: submission, progress callbacks and snapshot lookup."""

import asyncio
import itertools
import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import urlsplit

from listing_scraper.config import settings
from listing_scraper.ingest.fetchers.headless import PlaywrightBrowserSession
from listing_scraper.ingest.registry import ProfileRegistry
from listing_scraper.ingest.retailers.base import SiteProfile
from listing_scraper.ingest.scan_engine import ScrapeRunner, SessionFactory
from listing_scraper.worker.job_registry import (
    STATUS_COMPLETED,
    JobAccessError,
    JobRegistry,
    JobSnapshot,
    job_registry,
)
from listing_scraper.worker.tracker import JobTracker, ProgressListener, ScrapeJob

logger = logging.getLogger(__name__)

RunnerFactory = Callable[[SiteProfile, SessionFactory], ScrapeRunner]


class JobRunner:
    """
    Starts scrape jobs as independent asyncio tasks.

    Jobs share nothing but the job registry. ``start_job`` returns as soon as the job
    is registered; progress is observed through ``get_snapshot`` or registered
    progress callbacks.
    """

    def __init__(
        self,
        registry: Optional[JobRegistry] = None,
        session_factory: Optional[SessionFactory] = None,
        runner_factory: Optional[RunnerFactory] = None,
    ):
        self.registry = registry or job_registry
        self.session_factory = session_factory or PlaywrightBrowserSession.launch
        self.runner_factory = runner_factory or ScrapeRunner
        self._progress_callbacks: List[ProgressListener] = []
        self._tasks: Dict[str, asyncio.Task] = {}
        self._counter = itertools.count(1)

    def register_progress_callback(self, callback: ProgressListener) -> None:
        """Register a callback invoked as ``callback(job_id, snapshot)`` on every update."""
        self._progress_callbacks.append(callback)

    def _new_job_id(self) -> str:
        # Millisecond clock plus a process-local sequence keeps ids unique and ordered
        return f"{int(time.time() * 1000):013d}-{next(self._counter):06d}"

    @staticmethod
    def validate_request(url: str, platform: str, max_pages: int) -> SiteProfile:
        """
        Check a job request and resolve its site profile.

        Raises:
            ValueError: For a non-http(s) URL, an unknown platform or a page count
                outside 1..max_pages_limit
        """
        parts = urlsplit((url or "").strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"URL must be an absolute http(s) URL: {url!r}")

        if isinstance(max_pages, bool) or not isinstance(max_pages, int):
            raise ValueError(f"Page count must be an integer: {max_pages!r}")
        if not 1 <= max_pages <= settings.max_pages_limit:
            raise ValueError(
                f"Page count must be between 1 and {settings.max_pages_limit}: {max_pages}"
            )

        return ProfileRegistry.get_profile(platform)

    async def start_job(
        self,
        url: str,
        platform: str = "amazon",
        max_pages: int = 1,
        owner: str = "anonymous",
    ) -> str:
        """
        Register a job and start scraping it in the background.

        Returns:
            The new job id
        """
        profile = self.validate_request(url, platform, max_pages)
        job_id = self._new_job_id()

        job = ScrapeJob(
            job_id=job_id,
            owner=owner,
            platform=profile.name,
            total_pages=max_pages,
            policy=profile.progress_policy,
        )
        tracker = await JobTracker.create(job, self.registry, self._progress_callbacks)
        runner = self.runner_factory(profile, self.session_factory)

        task = asyncio.create_task(runner.run(tracker, url.strip()), name=f"scrape-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t, jid=job_id: self._tasks.pop(jid, None))

        logger.info(f"Started {profile.name} job {job_id} for {owner}: {max_pages} pages")
        return job_id

    async def get_snapshot(self, job_id: str, owner: Optional[str] = None) -> JobSnapshot:
        """
        Current snapshot of a job.

        Raises:
            JobNotFoundError: If the job id is unknown
            JobAccessError: If ``owner`` is given and the job belongs to someone else
        """
        snapshot = await self.registry.get(job_id)
        if owner is not None and snapshot.owner != owner:
            raise JobAccessError(job_id, owner)
        return snapshot

    async def list_jobs(self, owner: str) -> List[JobSnapshot]:
        return await self.registry.list_for_owner(owner)

    async def artifact_path(self, job_id: str, owner: Optional[str] = None) -> Optional[Path]:
        """Path of a completed job's CSV, or None while the job has none."""
        snapshot = await self.get_snapshot(job_id, owner)
        if snapshot.status != STATUS_COMPLETED or not snapshot.artifact_reference:
            return None
        path = Path(snapshot.artifact_reference)
        return path if path.is_file() else None

    async def wait_for(self, job_id: str) -> JobSnapshot:
        """Wait until a job's task finishes and return its final snapshot."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return await self.registry.get(job_id)

    async def wait_all(self) -> None:
        """Wait for every running job; used on shutdown."""
        tasks = list(self._tasks.values())
        if tasks:
            logger.info(f"Waiting for {len(tasks)} running jobs")
            await asyncio.gather(*tasks, return_exceptions=True)


# Global runner instance
job_runner = JobRunner()
