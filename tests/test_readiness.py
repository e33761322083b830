"""Tests for the page readiness gate."""

import asyncio

import pytest

from conftest import FakeBrowserSession
from listing_scraper.ingest.readiness import ReadinessGate
from listing_scraper.ingest.retailers.base import ReadinessLocator


class SlowSession(FakeBrowserSession):
    """Locators resolve after per-locator delays."""

    def __init__(self, delays, **kwargs):
        super().__init__(**kwargs)
        self.delays = delays
        self.cancelled = []

    async def wait_for_locator(self, locator, timeout_ms):
        try:
            await asyncio.sleep(self.delays[locator])
        except asyncio.CancelledError:
            self.cancelled.append(locator)
            raise
        return locator != "div.never"


def _gate(*locators, max_scroll_steps=10):
    return ReadinessGate(
        [ReadinessLocator(loc, 1000) for loc in locators],
        platform="test",
        scroll_step=100,
        scroll_interval=0,
        max_scroll_steps=max_scroll_steps,
        settle_delay=0,
    )


@pytest.mark.asyncio
async def test_first_locator_to_appear_wins():
    session = SlowSession({"div.slow": 1.0, "div.fast": 0.01})

    winner = await _gate("div.slow", "div.fast").wait_for_results(session)

    assert winner == "div.fast"
    assert session.cancelled == ["div.slow"]


@pytest.mark.asyncio
async def test_failed_locator_does_not_win():
    session = SlowSession({"div.never": 0, "div.ok": 0.01})

    winner = await _gate("div.never", "div.ok").wait_for_results(session)

    assert winner == "div.ok"


@pytest.mark.asyncio
async def test_all_locators_fail_is_not_fatal():
    session = FakeBrowserSession()
    session.html = "<html><body><p>Loading</p></body></html>"

    winner = await _gate("div[data-id]", "a.s1Q9rs").wait(session)

    assert winner is None


@pytest.mark.asyncio
async def test_locator_present(flipkart_page):
    session = FakeBrowserSession()
    session.html = flipkart_page

    assert await _gate("div.absent", "div[data-id]").wait_for_results(session) == "div[data-id]"


@pytest.mark.asyncio
async def test_auto_scroll_stops_when_height_stable():
    session = FakeBrowserSession(height=250)

    steps = await _gate("div").auto_scroll(session)

    # 100, 200 short of 250; 300 reaches it with the height unchanged
    assert steps == 3
    assert session.scroll_steps == 3


@pytest.mark.asyncio
async def test_auto_scroll_is_bounded():
    class GrowingSession(FakeBrowserSession):
        async def scroll_height(self):
            self.height += 1000
            return self.height

    session = GrowingSession(height=0)

    steps = await _gate("div", max_scroll_steps=5).auto_scroll(session)

    assert steps == 5
