"""Flipkart search results profile.

Flipkart ships obfuscated class names that change between deploys; each chain
lists the current class first and older ones after it.
"""

from listing_scraper.config import settings
from listing_scraper.ingest.normalizer import (
    RATING_COUNT_KEYWORDS,
    normalize_count,
    normalize_price,
    normalize_rating_value,
    normalize_text,
)
from listing_scraper.ingest.retailers.base import (
    DELIVERY_SCAN,
    PAGINATION_PARAMETER,
    PaginationConfig,
    ReadinessLocator,
    SiteProfile,
)
from listing_scraper.ingest.selectors import (
    SelectorChain,
    SelectorStep,
    SponsorshipRule,
    attr,
    attr_or_text,
    matching,
    text,
)
from listing_scraper.worker.tracker import ProgressPolicy

READY_TIMEOUT_MS = 20000


def _rating_count(value: str) -> str:
    return normalize_count(value, RATING_COUNT_KEYWORDS)


def _price(value: str) -> str:
    return normalize_price(value)


NAME = SelectorChain(
    field="name",
    steps=(
        SelectorStep("a.pIpigb", attr_or_text("title")),
        SelectorStep("a.s1Q9rs", attr_or_text("title")),
        SelectorStep("div._4rR01T", attr_or_text("title")),
        SelectorStep("a.IRpwTa", attr_or_text("title")),
    ),
    normalize=normalize_text,
)

URL = SelectorChain(
    field="url",
    steps=(
        SelectorStep("a.pIpigb", attr("href")),
        SelectorStep("a.s1Q9rs", attr("href")),
        SelectorStep("a._1fQZEK", attr("href")),
        SelectorStep('a[href*="/p/itm"]', attr("href")),
    ),
)

PRICE = SelectorChain(
    field="price",
    steps=(
        SelectorStep("div.hZ3P6w"),
        SelectorStep("div._30jeq3"),
    ),
    normalize=_price,
)

RATING = SelectorChain(
    field="rating",
    steps=(
        SelectorStep("div.MKiFS6"),
        SelectorStep("div._3LWZlK"),
    ),
    normalize=normalize_rating_value,
)

# "(36,417)" or "36,417 Ratings"
RATING_COUNT = SelectorChain(
    field="rating_count",
    steps=(
        SelectorStep("span.PvbNMB", text("()")),
        SelectorStep("span._2_R_DZ", text("()")),
    ),
    normalize=_rating_count,
)

DELIVERY = SelectorChain(
    field="delivery_estimate",
    steps=(
        SelectorStep(
            None,
            matching(DELIVERY_SCAN, max_length=settings.delivery_scan_max_length),
            scan_tags=("span", "div"),
        ),
    ),
    normalize=normalize_text,
)


FLIPKART_PROFILE = SiteProfile(
    name="flipkart",
    base_url="https://www.flipkart.com",
    container_locators=("div[data-id]",),
    id_attribute="data-id",
    chains={
        chain.field: chain
        for chain in (NAME, URL, PRICE, RATING, RATING_COUNT, DELIVERY)
    },
    sponsorship=SponsorshipRule(
        badge_locators=("div._2I5qvP", "span.y178-5"),
        text_markers=("sponsored",),
    ),
    readiness=(
        ReadinessLocator("div._1AtVbE", READY_TIMEOUT_MS),
        ReadinessLocator("div[data-id]", READY_TIMEOUT_MS),
        ReadinessLocator("a.s1Q9rs", READY_TIMEOUT_MS),
        ReadinessLocator("div._4rR01T", READY_TIMEOUT_MS),
    ),
    pagination=PaginationConfig(kind=PAGINATION_PARAMETER, page_param="page"),
    columns=(
        ("name", "Name"),
        ("price", "Price"),
        ("url", "URL"),
        ("rating", "Rating"),
        ("numRatings", "Number of Ratings"),
        ("sponsored", "Sponsored"),
        ("deliveryDate", "Delivery Date"),
        ("unitsSold", "Units Sold"),
    ),
    progress_policy=ProgressPolicy(scale=100, cap=100),
)
