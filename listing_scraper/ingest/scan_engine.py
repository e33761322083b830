"""Per-job scrape loop: paginate, wait for results, extract, report progress."""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from listing_scraper.config import settings
from listing_scraper.export.csv_export import write_records_csv
from listing_scraper.ingest.base import BrowserSession, PageLoadError, ProductRecord
from listing_scraper.ingest.extractor import FieldExtractor
from listing_scraper.ingest.pagination import Paginator, paginator_for
from listing_scraper.ingest.readiness import ReadinessGate
from listing_scraper.ingest.retailers.base import SiteProfile
from listing_scraper.logging_config import get_logger
from listing_scraper.worker.tracker import JobTracker
from listing_scraper import metrics

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Awaitable[BrowserSession]]


def _describe(error: BaseException) -> str:
    return str(error).strip() or type(error).__name__


@dataclass
class ScrapeResult:
    """Outcome of one scrape run."""

    job_id: str
    platform: str
    status: str
    pages_completed: int = 0
    products: int = 0
    artifact_path: Optional[Path] = None
    last_url: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0


class ScrapeRunner:
    """
    Drives one job across its result pages.

    Pages are processed strictly in order within a job. Only a failure to launch the
    browser or to load the first page fails the job; trouble on a later page ends
    pagination and the job completes with what was collected.
    """

    def __init__(
        self,
        profile: SiteProfile,
        session_factory: SessionFactory,
        extractor: Optional[FieldExtractor] = None,
        gate: Optional[ReadinessGate] = None,
        paginator: Optional[Paginator] = None,
        inter_page_delay: Optional[float] = None,
        output_dir: Optional[Path] = None,
    ):
        self.profile = profile
        self.session_factory = session_factory
        self.extractor = extractor or FieldExtractor(profile)
        self.gate = gate or ReadinessGate(profile.readiness, platform=profile.name)
        self.paginator = paginator or paginator_for(profile)
        self.inter_page_delay = (
            inter_page_delay if inter_page_delay is not None else settings.inter_page_delay_seconds
        )
        self.output_dir = output_dir

    async def _scrape_page(self, session: BrowserSession) -> List[ProductRecord]:
        started = time.monotonic()
        await self.gate.wait(session)
        records = await session.evaluate_in_page(self.extractor.extract_page)
        metrics.page_scrape_duration_seconds.labels(platform=self.profile.name).observe(
            time.monotonic() - started
        )
        return records

    async def _fail(self, tracker: JobTracker, result: ScrapeResult, detail: str) -> ScrapeResult:
        await tracker.fail(detail)
        result.status = tracker.job.state
        result.error = tracker.job.error_detail
        return result

    async def run(self, tracker: JobTracker, url: str) -> ScrapeResult:
        """
        Scrape up to ``tracker.job.total_pages`` pages starting at ``url``.

        Never raises for scrape failures; the outcome is recorded on the tracker and
        summarized in the returned ScrapeResult.
        """
        job = tracker.job
        platform = self.profile.name
        log = get_logger(__name__, job_id=job.job_id, platform=platform)
        result = ScrapeResult(job_id=job.job_id, platform=platform, status=job.state)
        started = time.monotonic()
        session: Optional[BrowserSession] = None

        metrics.active_scrape_jobs.labels(platform=platform).inc()
        try:
            await tracker.start()

            try:
                session = await self.session_factory()
            except Exception as e:
                log.error(f"Browser session launch failed: {e}")
                return await self._fail(tracker, result, f"Browser launch failed: {_describe(e)}")

            try:
                await self.paginator.open(session, url)
            except PageLoadError as e:
                log.error(f"First page failed to load: {e}")
                return await self._fail(tracker, result, _describe(e))

            page_number = 1
            while True:
                try:
                    records = await self._scrape_page(session)
                except Exception as e:
                    if page_number == 1:
                        log.error(f"Extraction failed on first page: {e}")
                        return await self._fail(tracker, result, _describe(e))
                    log.warning(f"Extraction failed on page {page_number}, stopping: {e}")
                    break

                result.last_url = await session.current_url()
                metrics.pages_scraped_total.labels(platform=platform).inc()
                metrics.products_extracted_total.labels(platform=platform).inc(len(records))
                await tracker.page_completed(page_number, records)
                log.info(
                    f"Page {page_number}/{job.total_pages}: {len(records)} products "
                    f"({len(job.records)} total) at {result.last_url}"
                )

                if not records and page_number > 1:
                    log.info(f"No products on page {page_number}, stopping")
                    break
                if page_number >= job.total_pages:
                    break

                await asyncio.sleep(self.inter_page_delay)
                if not await self.paginator.advance(session, page_number + 1):
                    log.info(f"Pagination ended after page {page_number}")
                    break
                page_number += 1

            try:
                path = await asyncio.to_thread(
                    write_records_csv, tracker.records, self.profile, job.job_id, self.output_dir
                )
            except Exception as e:
                log.error(f"Failed to write artifact: {e}")
                return await self._fail(tracker, result, f"Artifact write failed: {_describe(e)}")

            await tracker.complete(str(path))
            result.artifact_path = path
            result.status = job.state
            log.info(f"Job completed: {len(job.records)} products from {job.pages_completed} pages")
            return result

        except Exception as e:
            log.exception(f"Unexpected scrape failure: {e}")
            return await self._fail(tracker, result, _describe(e))

        finally:
            if session is not None:
                try:
                    await session.close()
                except Exception as e:
                    log.error(f"Error closing browser session: {e}")
            metrics.active_scrape_jobs.labels(platform=platform).dec()
            result.pages_completed = job.pages_completed
            result.products = len(job.records)
            result.duration_seconds = time.monotonic() - started
