"""Tests for pagination strategies."""

import pytest

from conftest import FakeBrowserSession, fast_paginator
from listing_scraper.ingest.base import PageLoadError
from listing_scraper.ingest.pagination import (
    InteractivePaginator,
    Paginator,
    ParameterPaginator,
    build_page_url,
    paginator_for,
)
from listing_scraper.ingest.retailers.amazon import AMAZON_PROFILE
from listing_scraper.ingest.retailers.flipkart import FLIPKART_PROFILE


class TestBuildPageUrl:
    """Tests for page query rewriting."""

    def test_appends_key(self):
        assert (
            build_page_url("https://www.flipkart.com/search?q=shoes", "page", 2)
            == "https://www.flipkart.com/search?q=shoes&page=2"
        )

    def test_rewrites_existing_key_in_place(self):
        assert (
            build_page_url("https://www.flipkart.com/search?q=shoes&page=1&sort=popularity", "page", 3)
            == "https://www.flipkart.com/search?q=shoes&page=3&sort=popularity"
        )

    def test_url_without_query(self):
        assert build_page_url("https://www.flipkart.com/shoes", "page", 2) == (
            "https://www.flipkart.com/shoes?page=2"
        )

    def test_blank_values_kept(self):
        assert build_page_url("https://x.test/s?q=&page=1", "page", 2) == "https://x.test/s?q=&page=2"


def test_paginator_for_profiles():
    assert isinstance(paginator_for(AMAZON_PROFILE), InteractivePaginator)
    assert isinstance(paginator_for(FLIPKART_PROFILE), ParameterPaginator)


def test_base_paginator_is_abstract():
    with pytest.raises(TypeError):
        Paginator(FLIPKART_PROFILE.pagination, "flipkart")


@pytest.mark.asyncio
async def test_open_failure_raises_page_load_error():
    url = "https://www.flipkart.com/search?q=shoes"
    session = FakeBrowserSession(fail_urls=[url])
    paginator = fast_paginator(FLIPKART_PROFILE)

    with pytest.raises(PageLoadError):
        await paginator.open(session, url)


@pytest.mark.asyncio
async def test_parameter_advance(flipkart_page):
    url = "https://www.flipkart.com/search?q=shoes"
    session = FakeBrowserSession(pages={url: flipkart_page, f"{url}&page=2": flipkart_page})
    paginator = fast_paginator(FLIPKART_PROFILE)

    await paginator.open(session, url)
    assert await paginator.advance(session, 2) is True
    assert session.navigations == [url, f"{url}&page=2"]


@pytest.mark.asyncio
async def test_parameter_advance_navigation_failure_ends(flipkart_page):
    url = "https://www.flipkart.com/search?q=shoes"
    session = FakeBrowserSession(pages={url: flipkart_page}, fail_urls=[f"{url}&page=2"])
    paginator = fast_paginator(FLIPKART_PROFILE)

    await paginator.open(session, url)
    assert await paginator.advance(session, 2) is False


class TestInteractivePaginator:
    """Tests for the "next" control strategy."""

    url = "https://www.amazon.in/s?k=shelf"

    @pytest.mark.asyncio
    async def test_clicks_enabled_next(self, amazon_page1, amazon_last_page):
        session = FakeBrowserSession(click_sequence=[amazon_page1, amazon_last_page])
        paginator = fast_paginator(AMAZON_PROFILE)

        await paginator.open(session, self.url)
        assert await paginator.advance(session, 2) is True
        assert session.clicks == ["a.s-pagination-next"]
        assert session.html == amazon_last_page

    @pytest.mark.asyncio
    async def test_aria_disabled_next_ends(self, amazon_last_page):
        session = FakeBrowserSession(click_sequence=[amazon_last_page])
        paginator = fast_paginator(AMAZON_PROFILE)

        await paginator.open(session, self.url)
        assert await paginator.advance(session, 2) is False
        assert session.clicks == []

    @pytest.mark.asyncio
    async def test_disabled_class_ends(self):
        html = (
            '<html><body><a class="s-pagination-next s-pagination-disabled" '
            'href="#">Next</a></body></html>'
        )
        session = FakeBrowserSession(click_sequence=[html])
        paginator = fast_paginator(AMAZON_PROFILE)

        await paginator.open(session, self.url)
        assert await paginator.advance(session, 2) is False

    @pytest.mark.asyncio
    async def test_no_control_ends(self):
        session = FakeBrowserSession(click_sequence=["<html><body></body></html>"])
        paginator = fast_paginator(AMAZON_PROFILE)

        await paginator.open(session, self.url)
        assert await paginator.advance(session, 2) is False

    @pytest.mark.asyncio
    async def test_click_failure_ends(self, amazon_page1):
        session = FakeBrowserSession(click_sequence=[amazon_page1], fail_clicks=True)
        paginator = fast_paginator(AMAZON_PROFILE)

        await paginator.open(session, self.url)
        assert await paginator.advance(session, 2) is False

    @pytest.mark.asyncio
    async def test_network_never_idle_uses_fallback(self, amazon_page1, amazon_last_page):
        session = FakeBrowserSession(
            click_sequence=[amazon_page1, amazon_last_page], network_idle=False
        )
        paginator = fast_paginator(AMAZON_PROFILE)

        await paginator.open(session, self.url)
        assert await paginator.advance(session, 2) is True
