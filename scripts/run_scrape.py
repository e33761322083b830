#!/usr/bin/env python3
"""
Scrape search results from the command line.

Runs one job in-process and writes the CSV to the configured output directory.

Examples:
    python scripts/run_scrape.py "https://www.amazon.in/s?k=metal+furniture"
    python scripts/run_scrape.py "https://www.amazon.in/s?k=metal+furniture" 2 --no-headless
    python scripts/run_scrape.py "https://www.flipkart.com/search?q=shoes" 3 --platform flipkart
"""

import argparse
import asyncio
import sys
from functools import partial
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from listing_scraper.config import settings
from listing_scraper.ingest.fetchers.headless import PlaywrightBrowserSession
from listing_scraper.ingest.scan_engine import ScrapeRunner
from listing_scraper.logging_config import setup_logging
from listing_scraper.worker.job_registry import STATUS_COMPLETED, JobRegistry
from listing_scraper.worker.tasks import JobRunner


def print_progress(job_id: str, snapshot) -> None:
    print(
        f"  [{snapshot.status}] {snapshot.progress:3d}% "
        f"page {snapshot.current_page}/{snapshot.total_pages}, "
        f"{snapshot.products_scraped} products"
    )


async def run(url: str, pages: int, platform: str, headless: bool) -> int:
    runner = JobRunner(
        registry=JobRegistry(),
        session_factory=partial(PlaywrightBrowserSession.launch, headless=headless),
        runner_factory=ScrapeRunner,
    )
    runner.register_progress_callback(print_progress)

    try:
        job_id = await runner.start_job(url, platform=platform, max_pages=pages, owner="cli")
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    snapshot = await runner.wait_for(job_id)
    if snapshot.status == STATUS_COMPLETED:
        print(f"\nScraping completed successfully!")
        print(f"  - Products: {snapshot.total_products}")
        print(f"  - CSV: {snapshot.artifact_reference}")
        return 0

    print(f"\nScraping failed: {snapshot.error_detail}")
    return 1


def main() -> int:
    parser = argparse.ArgumentParser(description="Scrape product listings from a search results URL")
    parser.add_argument("url", help="Search results URL")
    parser.add_argument("pages", nargs="?", type=int, default=1, help="Number of pages to scrape (default: 1)")
    parser.add_argument(
        "--platform",
        default="amazon",
        help="Site profile to use: amazon or flipkart (default: amazon)",
    )
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=settings.headless,
        help="Run the browser without a window",
    )
    args = parser.parse_args()

    setup_logging()
    print(f"Starting scraper for: {args.url}")
    print(f"Number of pages to scrape: {args.pages}")
    return asyncio.run(run(args.url, args.pages, args.platform, args.headless))


if __name__ == "__main__":
    sys.exit(main())
