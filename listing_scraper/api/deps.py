"""FastAPI dependencies."""

from typing import Optional

from fastapi import Header, HTTPException, status

from listing_scraper.worker.tasks import JobRunner, job_runner


async def get_owner(x_user: Optional[str] = Header(None, alias="X-User")) -> str:
    """
    Dependency resolving the calling user from the X-User header.

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not x_user or not x_user.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_user.strip()


def get_job_runner() -> JobRunner:
    """Dependency for the process-wide job runner."""
    return job_runner
