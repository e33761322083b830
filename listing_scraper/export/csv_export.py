"""CSV artifact writer for finished scrape jobs."""

import csv
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from listing_scraper.config import settings
from listing_scraper.ingest.base import ProductRecord
from listing_scraper.ingest.retailers.base import SiteProfile

logger = logging.getLogger(__name__)


def artifact_filename(platform: str, job_id: str, now: Optional[datetime] = None) -> str:
    """``<platform>_products_<UTC timestamp>_<job id>.csv``"""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{platform}_products_{stamp}_{job_id}.csv"


def write_records_csv(
    records: Sequence[ProductRecord],
    profile: SiteProfile,
    job_id: str,
    output_dir: Optional[Path] = None,
) -> Path:
    """
    Write one row per record using the profile's column layout.

    Args:
        records: Records in extraction order
        profile: Site profile supplying column keys and header labels
        job_id: Job id, embedded in the file name
        output_dir: Target directory (default: settings.output_dir)

    Returns:
        Path of the written file
    """
    directory = Path(output_dir or settings.output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / artifact_filename(profile.name, job_id)

    keys = [key for key, _ in profile.columns]
    header = dict(profile.columns)

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=keys, extrasaction="ignore")
        writer.writerow(header)
        for record in records:
            writer.writerow(record.to_row())

    logger.info(f"Wrote {len(records)} records to {path}")
    return path
