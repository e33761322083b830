"""Process-wide registry of scrape job snapshots."""

import asyncio
import logging
from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STATUS_CREATED = "created"
STATUS_SCRAPING = "scraping"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_FAILED})


class JobNotFoundError(KeyError):
    """No job is registered under the requested id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class JobAccessError(PermissionError):
    """The job exists but belongs to another owner."""

    def __init__(self, job_id: str, owner: Optional[str]):
        self.job_id = job_id
        self.owner = owner
        super().__init__(f"Access denied to job {job_id}")


@dataclass(frozen=True)
class JobSnapshot:
    """Point-in-time external view of a scrape job."""

    job_id: str
    owner: str
    platform: str
    status: str
    total_pages: int
    created_at: datetime
    progress: int = 0
    current_page: int = 0
    products_scraped: int = 0
    total_products: int = 0
    artifact_reference: Optional[str] = None
    error_detail: Optional[str] = None
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


_SNAPSHOT_FIELDS = frozenset(f.name for f in fields(JobSnapshot))


class JobRegistry:
    """
    Concurrency-safe job id -> snapshot store.

    Writers go through ``merge``, which overrides only the fields it is given, so a
    partial update can never erase a field by omitting it. Snapshots are immutable,
    so readers always see a consistent view.
    """

    def __init__(self):
        self._jobs: Dict[str, JobSnapshot] = {}
        self._lock = asyncio.Lock()

    async def put(self, snapshot: JobSnapshot) -> None:
        """Register a new job."""
        async with self._lock:
            if snapshot.job_id in self._jobs:
                raise ValueError(f"Job already registered: {snapshot.job_id}")
            self._jobs[snapshot.job_id] = snapshot

    async def get(self, job_id: str) -> JobSnapshot:
        """
        Current snapshot for a job.

        Raises:
            JobNotFoundError: If the job id is unknown
        """
        async with self._lock:
            snapshot = self._jobs.get(job_id)
        if snapshot is None:
            raise JobNotFoundError(job_id)
        return snapshot

    async def merge(self, job_id: str, **changes: Any) -> JobSnapshot:
        """
        Apply a partial update and return the merged snapshot.

        Raises:
            JobNotFoundError: If the job id is unknown
            ValueError: If a change names a field the snapshot does not have
        """
        unknown = set(changes) - _SNAPSHOT_FIELDS
        if unknown:
            raise ValueError(f"Unknown snapshot fields: {sorted(unknown)}")

        async with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFoundError(job_id)
            merged = replace(current, **changes)
            self._jobs[job_id] = merged
        return merged

    async def list_for_owner(self, owner: str) -> List[JobSnapshot]:
        """All jobs of one owner, oldest first."""
        async with self._lock:
            snapshots = [s for s in self._jobs.values() if s.owner == owner]
        return sorted(snapshots, key=lambda s: s.job_id)

    async def count(self) -> int:
        async with self._lock:
            return len(self._jobs)


# Global registry instance
job_registry = JobRegistry()
