"""Scrape job API endpoints."""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from listing_scraper.api.deps import get_job_runner, get_owner
from listing_scraper.ingest.registry import ProfileRegistry
from listing_scraper.worker.job_registry import JobAccessError, JobNotFoundError, JobSnapshot
from listing_scraper.worker.tasks import JobRunner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scrape"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request/Response models
class ScrapeRequest(CamelModel):
    """Request model for starting a scrape job."""
    url: str
    pages: int = Field(default=1)
    platform: str = "amazon"


class ScrapeStartedResponse(CamelModel):
    """Response model for a started job."""
    job_id: str


class JobProgressResponse(CamelModel):
    """Response model for job progress."""
    job_id: str
    platform: str
    status: str
    progress: int
    current_page: int
    total_pages: int
    products_scraped: int
    total_products: int
    artifact_reference: Optional[str] = None
    error_detail: Optional[str] = None
    created_at: datetime
    finished_at: Optional[datetime] = None

    @classmethod
    def from_snapshot(cls, snapshot: JobSnapshot) -> "JobProgressResponse":
        return cls(
            job_id=snapshot.job_id,
            platform=snapshot.platform,
            status=snapshot.status,
            progress=snapshot.progress,
            current_page=snapshot.current_page,
            total_pages=snapshot.total_pages,
            products_scraped=snapshot.products_scraped,
            total_products=snapshot.total_products,
            artifact_reference=snapshot.artifact_reference,
            error_detail=snapshot.error_detail,
            created_at=snapshot.created_at,
            finished_at=snapshot.finished_at,
        )


async def _snapshot_or_error(runner: JobRunner, job_id: str, owner: str) -> JobSnapshot:
    try:
        return await runner.get_snapshot(job_id, owner)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except JobAccessError:
        raise HTTPException(status_code=403, detail="Access denied")


@router.post("/scrape", response_model=ScrapeStartedResponse, response_model_by_alias=True)
async def start_scrape(
    request: ScrapeRequest,
    owner: str = Depends(get_owner),
    runner: JobRunner = Depends(get_job_runner),
):
    """Start a scrape job in the background and return its id."""
    try:
        job_id = await runner.start_job(
            request.url, platform=request.platform, max_pages=request.pages, owner=owner
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ScrapeStartedResponse(job_id=job_id)


@router.get("/progress/{job_id}", response_model=JobProgressResponse, response_model_by_alias=True)
async def get_progress(
    job_id: str,
    owner: str = Depends(get_owner),
    runner: JobRunner = Depends(get_job_runner),
):
    """Get the current snapshot of one of the caller's jobs."""
    snapshot = await _snapshot_or_error(runner, job_id, owner)
    return JobProgressResponse.from_snapshot(snapshot)


@router.get("/jobs", response_model=List[JobProgressResponse], response_model_by_alias=True)
async def list_jobs(
    owner: str = Depends(get_owner),
    runner: JobRunner = Depends(get_job_runner),
):
    """List the caller's jobs, oldest first."""
    snapshots = await runner.list_jobs(owner)
    return [JobProgressResponse.from_snapshot(s) for s in snapshots]


@router.get("/download/{job_id}")
async def download_artifact(
    job_id: str,
    owner: str = Depends(get_owner),
    runner: JobRunner = Depends(get_job_runner),
):
    """Download a completed job's CSV."""
    await _snapshot_or_error(runner, job_id, owner)
    path = await runner.artifact_path(job_id, owner)
    if path is None:
        raise HTTPException(status_code=404, detail="CSV file not ready yet")
    return FileResponse(path, media_type="text/csv", filename=path.name)


@router.get("/platforms")
async def list_platforms():
    """List supported platforms."""
    return {"platforms": ProfileRegistry.list_platforms()}
