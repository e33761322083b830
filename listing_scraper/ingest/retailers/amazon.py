"""Amazon India search results profile."""

from listing_scraper.config import settings
from listing_scraper.ingest.normalizer import (
    RATING_COUNT_KEYWORDS,
    UNITS_KEYWORDS,
    normalize_count,
    normalize_price,
    normalize_rating,
    normalize_text,
)
from listing_scraper.ingest.retailers.base import (
    DAY_MONTH,
    DELIVERY_SCAN,
    PAGINATION_INTERACTIVE,
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
    price_parts,
    text,
)
from listing_scraper.worker.tracker import ProgressPolicy


# Targeted delivery locators are generic, so their text must look like a delivery line
DELIVERY_HINT = rf"\bDelivery\b|Get it|{DAY_MONTH}"

PRODUCT_LINK = r"/dp/|/gp/product/|/product/"

# Bare numbers in generic spans are usually rating counts, so require the wording
UNITS_HINT = r"\b(?:bought|sold|purchased)\b"


def _units_sold(value: str) -> str:
    return normalize_count(value, UNITS_KEYWORDS)


def _rating_count(value: str) -> str:
    return normalize_count(value, RATING_COUNT_KEYWORDS)


def _price(value: str) -> str:
    return normalize_price(value)


NAME = SelectorChain(
    field="name",
    steps=(
        SelectorStep("h2.a-size-mini a span"),
        SelectorStep("h2 a span"),
        SelectorStep("h2 a"),
        SelectorStep("a.a-text-normal span"),
        SelectorStep('[data-cy="title-recipe"] span'),
        SelectorStep(".a-text-normal span"),
        SelectorStep("h2 span"),
        SelectorStep("h2", attr("aria-label")),
        SelectorStep("h2"),
    ),
    normalize=normalize_text,
)

URL = SelectorChain(
    field="url",
    steps=(
        SelectorStep("a.a-text-normal", attr("href", PRODUCT_LINK)),
        SelectorStep("h2 a", attr("href", PRODUCT_LINK)),
        SelectorStep('a[href*="/dp/"]', attr("href", PRODUCT_LINK)),
        SelectorStep('a[href*="/gp/product/"]', attr("href", PRODUCT_LINK)),
        SelectorStep("a", attr("href", PRODUCT_LINK), all_matches=True),
    ),
)

PRICE = SelectorChain(
    field="price",
    steps=(
        SelectorStep(".a-price .a-offscreen"),
        SelectorStep(
            None,
            price_parts(".a-price-whole", ".a-price-fraction", ".a-price-symbol"),
        ),
        SelectorStep('[data-a-color="price"] .a-offscreen'),
        SelectorStep(".a-price-range"),
        SelectorStep("span.a-price"),
    ),
    normalize=_price,
)

RATING = SelectorChain(
    field="rating",
    steps=(
        SelectorStep(".a-icon-alt"),
        SelectorStep('[aria-label*="star"]', attr_or_text("aria-label")),
        SelectorStep(".a-icon-star"),
        SelectorStep("i.a-icon-star"),
        SelectorStep("span.a-icon-alt"),
    ),
    normalize=normalize_rating,
)

RATING_COUNT = SelectorChain(
    field="rating_count",
    steps=(
        SelectorStep('a[href*="#customerReviews"]', text("()")),
        SelectorStep(".a-row.a-size-small"),
        SelectorStep(".a-size-base"),
        SelectorStep('[aria-label*="rating"]', attr("aria-label"), all_matches=True),
        SelectorStep("span.a-size-base", all_matches=True),
        SelectorStep("span.a-color-base", all_matches=True),
    ),
    normalize=_rating_count,
)

UNITS_SOLD = SelectorChain(
    field="units_sold",
    steps=(
        SelectorStep('[data-testid="units-sold"]'),
        SelectorStep("span", matching(UNITS_HINT), all_matches=True),
        SelectorStep(None, matching(UNITS_HINT)),
    ),
    normalize=_units_sold,
)

DELIVERY = SelectorChain(
    field="delivery_estimate",
    steps=(
        SelectorStep('[data-testid="delivery-date"]', matching(DELIVERY_HINT)),
        SelectorStep(".a-color-base", matching(DELIVERY_HINT)),
        SelectorStep(".a-text-bold", matching(DELIVERY_HINT)),
        SelectorStep("span.a-color-base", matching(DELIVERY_HINT)),
        SelectorStep(".s-align-children-center", matching(DELIVERY_HINT)),
        SelectorStep(
            None,
            matching(DELIVERY_SCAN, max_length=settings.delivery_scan_max_length),
            scan_tags=("span", "div", "a"),
        ),
    ),
    normalize=normalize_text,
)


AMAZON_PROFILE = SiteProfile(
    name="amazon",
    base_url="https://www.amazon.in",
    container_locators=('[data-component-type="s-search-result"]', "[data-asin]"),
    id_attribute="data-asin",
    chains={
        chain.field: chain
        for chain in (NAME, URL, PRICE, RATING, RATING_COUNT, UNITS_SOLD, DELIVERY)
    },
    sponsorship=SponsorshipRule(
        badge_locators=(".s-label-popover-default",),
        attribute_markers=(("data-component-type", "sp-sponsored-result"),),
        class_markers=("AdHolder",),
        text_markers=("sponsored",),
    ),
    readiness=(
        ReadinessLocator('[data-component-type="s-search-result"]', 30000),
        ReadinessLocator('[data-asin]:not([data-asin=""])', 10000),
    ),
    pagination=PaginationConfig(
        kind=PAGINATION_INTERACTIVE,
        next_locators=(
            "a.s-pagination-next",
            '[aria-label="Go to next page"]',
            'a[aria-label*="next"]',
        ),
        disabled_class="s-pagination-disabled",
    ),
    columns=(
        ("name", "Name"),
        ("price", "Price"),
        ("url", "URL"),
        ("deliveryDate", "Delivery Date"),
        ("sponsored", "Sponsored"),
        ("rating", "Rating"),
        ("numRatings", "Number of Ratings"),
        ("unitsSold", "Units Sold"),
    ),
    # Last 10% is reserved for writing the artifact
    progress_policy=ProgressPolicy(scale=90, cap=90),
    product_url_template="{base_url}/dp/{identifier}",
    currency_symbol="₹",
)
