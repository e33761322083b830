"""Shared test helpers: an in-memory browser session and fast runner wiring."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
from selectolax.parser import HTMLParser

from listing_scraper.ingest.base import BrowserSession, PageLoadError
from listing_scraper.ingest.pagination import InteractivePaginator, ParameterPaginator
from listing_scraper.ingest.readiness import ReadinessGate
from listing_scraper.ingest.retailers.base import PAGINATION_INTERACTIVE, SiteProfile
from listing_scraper.ingest.scan_engine import ScrapeRunner

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


class FakeBrowserSession(BrowserSession):
    """
    Browser session over static HTML.

    ``pages`` maps URLs to documents for direct navigation. ``click_sequence`` is the
    list of documents reached by clicking "next": the first entry is what any
    navigation not found in ``pages`` lands on.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        click_sequence: Optional[List[str]] = None,
        fail_urls: Iterable[str] = (),
        fail_clicks: bool = False,
        network_idle: bool = True,
        height: int = 250,
    ):
        self.pages = dict(pages or {})
        self.click_sequence = list(click_sequence or [])
        self.fail_urls = set(fail_urls)
        self.fail_clicks = fail_clicks
        self.network_idle = network_idle
        self.height = height

        self.html = ""
        self.url = "about:blank"
        self.position = 0
        self.navigations: List[str] = []
        self.clicks: List[str] = []
        self.scroll_steps = 0
        self.closed = False

    def _tree(self) -> HTMLParser:
        return HTMLParser(self.html)

    async def navigate(self, url: str, wait_until: str, timeout_ms: int) -> None:
        self.navigations.append(url)
        if url in self.fail_urls:
            raise PageLoadError(url, "net::ERR_CONNECTION_REFUSED")
        if url in self.pages:
            self.html = self.pages[url]
        elif self.click_sequence:
            self.position = 0
            self.html = self.click_sequence[0]
        else:
            raise PageLoadError(url, "Navigation timeout")
        self.url = url

    async def wait_for_locator(self, locator: str, timeout_ms: int) -> bool:
        try:
            return self._tree().css_first(locator) is not None
        except Exception:
            return False

    async def element_attributes(self, locator: str) -> Optional[dict]:
        node = self._tree().css_first(locator)
        if node is None:
            return None
        return {name: value or "" for name, value in node.attributes.items()}

    async def click(self, locator: str) -> None:
        self.clicks.append(locator)
        if self.fail_clicks:
            raise RuntimeError("Element is not attached to the DOM")
        self.position += 1
        if self.position >= len(self.click_sequence):
            raise RuntimeError("Click did not lead anywhere")
        self.html = self.click_sequence[self.position]

    async def wait_for_network_idle(self, timeout_ms: int) -> bool:
        return self.network_idle

    async def scroll_by(self, distance: int) -> None:
        self.scroll_steps += 1

    async def scroll_to_bottom(self) -> None:
        pass

    async def scroll_height(self) -> int:
        return self.height

    async def content(self) -> str:
        return self.html

    async def current_url(self) -> str:
        return self.url

    async def close(self) -> None:
        self.closed = True


def session_factory_for(session: BrowserSession):
    async def factory():
        return session

    return factory


def fast_gate(profile: SiteProfile) -> ReadinessGate:
    return ReadinessGate(
        profile.readiness,
        platform=profile.name,
        scroll_step=100,
        scroll_interval=0,
        max_scroll_steps=10,
        settle_delay=0,
    )


def fast_paginator(profile: SiteProfile):
    if profile.pagination.kind == PAGINATION_INTERACTIVE:
        return InteractivePaginator(
            profile.pagination,
            profile.name,
            pre_delay=0,
            click_delay=0,
            settle_timeout_ms=0,
            fallback_delay=0,
        )
    return ParameterPaginator(profile.pagination, profile.name)


def fast_runner_factory(output_dir: Path):
    """Runner factory with every delay removed, for JobRunner."""

    def factory(profile: SiteProfile, session_factory) -> ScrapeRunner:
        return ScrapeRunner(
            profile,
            session_factory,
            gate=fast_gate(profile),
            paginator=fast_paginator(profile),
            inter_page_delay=0,
            output_dir=output_dir,
        )

    return factory


@pytest.fixture
def amazon_page1() -> str:
    return load_fixture("amazon_page1.html")


@pytest.fixture
def amazon_last_page() -> str:
    return load_fixture("amazon_last_page.html")


@pytest.fixture
def flipkart_page() -> str:
    return load_fixture("flipkart_page.html")
