"""Page readiness: wait for results to render, then scroll to trigger lazy loading."""

import asyncio
import logging
from typing import Optional, Sequence

from listing_scraper.config import settings
from listing_scraper.ingest.base import BrowserSession
from listing_scraper.ingest.retailers.base import ReadinessLocator
from listing_scraper import metrics

logger = logging.getLogger(__name__)


class ReadinessGate:
    """
    Decides when a result page is ready for extraction.

    All readiness locators are raced; the first to appear wins and the rest are
    cancelled. If none appears the gate still opens, since extraction against a
    partially rendered page beats no extraction at all.
    """

    def __init__(
        self,
        locators: Sequence[ReadinessLocator],
        platform: str = "",
        scroll_step: int = None,
        scroll_interval: float = None,
        max_scroll_steps: int = None,
        settle_delay: float = None,
    ):
        self.locators = tuple(locators)
        self.platform = platform
        self.scroll_step = scroll_step if scroll_step is not None else settings.auto_scroll_step_px
        self.scroll_interval = (
            scroll_interval if scroll_interval is not None else settings.auto_scroll_interval_seconds
        )
        self.max_scroll_steps = (
            max_scroll_steps if max_scroll_steps is not None else settings.auto_scroll_max_steps
        )
        self.settle_delay = settle_delay if settle_delay is not None else settings.post_scroll_settle_seconds

    async def _wait_one(self, session: BrowserSession, readiness: ReadinessLocator) -> bool:
        try:
            return await session.wait_for_locator(readiness.locator, readiness.timeout_ms)
        except Exception as e:
            logger.debug(f"Readiness locator {readiness.locator!r} failed: {e}")
            return False

    async def wait_for_results(self, session: BrowserSession) -> Optional[str]:
        """
        Race the readiness locators.

        Returns:
            The locator that appeared first, or None if every wait failed
        """
        if not self.locators:
            return None

        tasks = {
            asyncio.create_task(self._wait_one(session, readiness)): readiness.locator
            for readiness in self.locators
        }
        pending = set(tasks)
        winner: Optional[str] = None

        try:
            while pending and winner is None:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task.result():
                        winner = tasks[task]
                        break
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if winner is None:
            metrics.readiness_timeouts_total.labels(platform=self.platform or "unknown").inc()
            logger.warning(
                f"No readiness locator appeared ({len(self.locators)} tried), "
                "extracting from current DOM"
            )
        else:
            logger.debug(f"Results ready via {winner!r}")
        return winner

    async def auto_scroll(self, session: BrowserSession) -> int:
        """
        Scroll down in fixed steps until the document stops growing.

        Returns:
            Number of scroll steps taken
        """
        scrolled = 0
        last_height = 0
        steps = 0

        while steps < self.max_scroll_steps:
            await session.scroll_by(self.scroll_step)
            scrolled += self.scroll_step
            steps += 1
            await asyncio.sleep(self.scroll_interval)

            height = await session.scroll_height()
            if scrolled >= height and height <= last_height:
                break
            last_height = max(last_height, height)

        logger.debug(f"Auto-scroll finished after {steps} steps ({scrolled}px)")
        return steps

    async def wait(self, session: BrowserSession) -> Optional[str]:
        """Full readiness sequence: locator race, auto-scroll, settle delay."""
        winner = await self.wait_for_results(session)
        try:
            await self.auto_scroll(session)
        except Exception as e:
            logger.warning(f"Auto-scroll failed: {e}")
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)
        return winner
