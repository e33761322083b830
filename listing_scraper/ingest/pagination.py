"""Pagination strategies: URL query parameter and interactive "next" control."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from listing_scraper.config import settings
from listing_scraper.ingest.base import BrowserSession, PageLoadError
from listing_scraper.ingest.retailers.base import (
    PAGINATION_INTERACTIVE,
    PAGINATION_PARAMETER,
    PaginationConfig,
    SiteProfile,
)
from listing_scraper import metrics

logger = logging.getLogger(__name__)


def build_page_url(url: str, key: str, page_number: int) -> str:
    """
    Point ``url`` at a given result page.

    An existing ``key`` is rewritten in place; otherwise it is appended. All other
    query parameters keep their values and order.
    """
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)

    rewritten = []
    replaced = False
    for name, value in query:
        if name == key:
            if replaced:
                continue
            rewritten.append((name, str(page_number)))
            replaced = True
        else:
            rewritten.append((name, value))
    if not replaced:
        rewritten.append((key, str(page_number)))

    return urlunsplit(parts._replace(query=urlencode(rewritten)))


class Paginator(ABC):
    """Opens the first result page and moves to the next one."""

    def __init__(self, config: PaginationConfig, platform: str = ""):
        self.config = config
        self.platform = platform
        self.start_url: Optional[str] = None

    async def open(self, session: BrowserSession, url: str) -> None:
        """
        Load the first result page.

        Raises:
            PageLoadError: If the first page cannot be loaded
        """
        self.start_url = url
        try:
            await session.navigate(url, settings.navigation_wait_until, settings.navigation_timeout_ms)
        except PageLoadError:
            metrics.navigation_errors_total.labels(platform=self.platform, stage="open").inc()
            raise
        except Exception as e:
            metrics.navigation_errors_total.labels(platform=self.platform, stage="open").inc()
            raise PageLoadError(url, str(e) or type(e).__name__) from e

    @abstractmethod
    async def advance(self, session: BrowserSession, page_number: int) -> bool:
        """Move to ``page_number``; False means there is no further page."""


class ParameterPaginator(Paginator):
    """Navigates straight to each page by rewriting the page query parameter."""

    async def advance(self, session: BrowserSession, page_number: int) -> bool:
        if self.start_url is None:
            raise RuntimeError("open() must be called before advance()")

        target = build_page_url(self.start_url, self.config.page_param, page_number)
        logger.info(f"Navigating to page {page_number}: {target}")
        try:
            await session.navigate(
                target, settings.navigation_wait_until, settings.navigation_timeout_ms
            )
        except Exception as e:
            metrics.navigation_errors_total.labels(platform=self.platform, stage="advance").inc()
            logger.warning(f"Navigation to page {page_number} failed, ending pagination: {e}")
            return False
        return True


class InteractivePaginator(Paginator):
    """Clicks the site's "next page" control."""

    def __init__(
        self,
        config: PaginationConfig,
        platform: str = "",
        pre_delay: float = None,
        click_delay: float = None,
        settle_timeout_ms: int = None,
        fallback_delay: float = None,
    ):
        super().__init__(config, platform)
        self.pre_delay = pre_delay if pre_delay is not None else settings.pre_pagination_delay_seconds
        self.click_delay = click_delay if click_delay is not None else settings.click_delay_seconds
        self.settle_timeout_ms = (
            settle_timeout_ms if settle_timeout_ms is not None else settings.network_settle_timeout_ms
        )
        self.fallback_delay = (
            fallback_delay if fallback_delay is not None else settings.settle_fallback_delay_seconds
        )

    def is_disabled(self, attributes: dict) -> bool:
        """A next control is unusable if it carries the disabled class or aria-disabled."""
        classes = (attributes.get("class") or "").split()
        if self.config.disabled_class and self.config.disabled_class in classes:
            return True
        return (attributes.get("aria-disabled") or "").strip().lower() == "true"

    async def find_next_control(self, session: BrowserSession) -> Optional[str]:
        """First next-control locator that is present and enabled."""
        for locator in self.config.next_locators:
            attributes = await session.element_attributes(locator)
            if attributes is None:
                continue
            if self.is_disabled(attributes):
                logger.debug(f"Next control {locator!r} is disabled")
                continue
            return locator
        return None

    async def advance(self, session: BrowserSession, page_number: int) -> bool:
        try:
            await session.scroll_to_bottom()
            await asyncio.sleep(self.pre_delay)

            locator = await self.find_next_control(session)
            if locator is None:
                logger.info(f"No usable next control before page {page_number}, pagination ends")
                return False

            logger.info(f"Clicking next control {locator!r} for page {page_number}")
            await session.click(locator)
            await asyncio.sleep(self.click_delay)

            if not await session.wait_for_network_idle(self.settle_timeout_ms):
                logger.debug(
                    f"Network did not settle within {self.settle_timeout_ms}ms, "
                    f"sleeping {self.fallback_delay}s"
                )
                await asyncio.sleep(self.fallback_delay)
            return True
        except Exception as e:
            metrics.navigation_errors_total.labels(platform=self.platform, stage="advance").inc()
            logger.warning(f"Pagination to page {page_number} failed: {e}")
            return False


def paginator_for(profile: SiteProfile) -> Paginator:
    """
    Build the paginator a site profile asks for.

    Raises:
        ValueError: If the profile names an unknown pagination kind
    """
    kind = profile.pagination.kind
    if kind == PAGINATION_PARAMETER:
        return ParameterPaginator(profile.pagination, profile.name)
    if kind == PAGINATION_INTERACTIVE:
        return InteractivePaginator(profile.pagination, profile.name)
    raise ValueError(f"Unknown pagination kind: {kind}")
