"""Playwright-backed browser session for JavaScript-rendered result pages."""

import logging
from typing import Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from listing_scraper.config import settings
from listing_scraper.ingest.base import BrowserSession, PageLoadError

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


class PlaywrightBrowserSession(BrowserSession):
    """One Chromium tab, owned by a single scrape job."""

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
    ):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._closed = False

    @classmethod
    async def launch(
        cls,
        headless: Optional[bool] = None,
        user_agent: Optional[str] = None,
    ) -> "PlaywrightBrowserSession":
        """
        Start Playwright, launch Chromium and open a single tab.

        Args:
            headless: Run without a window (default: settings.headless)
            user_agent: User agent override (default: settings.browser_user_agent)
        """
        playwright = await async_playwright().start()
        browser: Optional[Browser] = None
        try:
            browser = await playwright.chromium.launch(
                headless=settings.headless if headless is None else headless,
                args=LAUNCH_ARGS,
            )
            context = await browser.new_context(
                user_agent=user_agent or settings.browser_user_agent,
                viewport={"width": settings.viewport_width, "height": settings.viewport_height},
            )
            page = await context.new_page()
        except Exception:
            if browser is not None:
                await browser.close()
            await playwright.stop()
            raise

        logger.debug("Browser session launched")
        return cls(playwright, browser, context, page)

    async def navigate(self, url: str, wait_until: str, timeout_ms: int) -> None:
        logger.debug(f"Navigating to {url}")
        try:
            await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            raise PageLoadError(url, "Navigation timeout")
        except Exception as e:
            raise PageLoadError(url, str(e))

    async def wait_for_locator(self, locator: str, timeout_ms: int) -> bool:
        try:
            await self._page.wait_for_selector(locator, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def element_attributes(self, locator: str) -> Optional[dict[str, str]]:
        element = await self._page.query_selector(locator)
        if element is None:
            return None
        return await element.evaluate(
            "(el) => Object.fromEntries(Array.from(el.attributes, (a) => [a.name, a.value]))"
        )

    async def click(self, locator: str) -> None:
        element = await self._page.query_selector(locator)
        if element is None:
            raise LookupError(f"No element matches {locator!r}")
        await element.scroll_into_view_if_needed()
        await element.click()

    async def wait_for_network_idle(self, timeout_ms: int) -> bool:
        try:
            await self._page.wait_for_load_state("networkidle", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def scroll_by(self, distance: int) -> None:
        await self._page.evaluate("(d) => window.scrollBy(0, d)", distance)

    async def scroll_to_bottom(self) -> None:
        await self._page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")

    async def scroll_height(self) -> int:
        return int(await self._page.evaluate("() => document.body.scrollHeight"))

    async def content(self) -> str:
        return await self._page.content()

    async def current_url(self) -> str:
        return self._page.url

    async def close(self) -> None:
        """Close tab, context, browser and driver; safe to call twice."""
        if self._closed:
            return
        self._closed = True

        for name, closer in (
            ("page", self._page.close),
            ("context", self._context.close),
            ("browser", self._browser.close),
            ("playwright", self._playwright.stop),
        ):
            try:
                await closer()
            except Exception as e:
                logger.error(f"Error closing {name}: {e}")
