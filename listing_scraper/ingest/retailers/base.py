"""Site profile definitions shared by the retailer modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from listing_scraper.ingest.selectors import SelectorChain, SponsorshipRule
from listing_scraper.worker.tracker import ProgressPolicy

PAGINATION_PARAMETER = "parameter"
PAGINATION_INTERACTIVE = "interactive"


@dataclass(frozen=True)
class ReadinessLocator:
    """A "results present" signal with its own timeout."""

    locator: str
    timeout_ms: int


@dataclass(frozen=True)
class PaginationConfig:
    """How a site moves from one result page to the next."""

    kind: str
    page_param: str = "page"
    next_locators: tuple[str, ...] = ()
    disabled_class: Optional[str] = None


@dataclass(frozen=True)
class SiteProfile:
    """Everything site-specific the scrape loop needs; pure configuration."""

    name: str
    base_url: str
    container_locators: tuple[str, ...]
    id_attribute: str
    chains: Mapping[str, SelectorChain]
    sponsorship: SponsorshipRule
    readiness: tuple[ReadinessLocator, ...]
    pagination: PaginationConfig
    # (row key, column label) in artifact order
    columns: tuple[tuple[str, str], ...]
    progress_policy: ProgressPolicy = field(default_factory=ProgressPolicy)
    product_url_template: Optional[str] = None
    currency_symbol: str = "₹"

    def chain(self, field_name: str) -> Optional[SelectorChain]:
        return self.chains.get(field_name)

    def product_url_for(self, identifier: str) -> Optional[str]:
        """Canonical product URL built from the identifier, if the site supports it."""
        if not self.product_url_template:
            return None
        return self.product_url_template.format(base_url=self.base_url, identifier=identifier)


MONTHS = (
    "Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    "|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?"
)

# Day followed by a whole month token, so "2 Marble" or "4 Junior" is not a date
DAY_MONTH = rf"\b\d{{1,2}}\s+(?:{MONTHS})\b"

# Delivery lines found by scanning a result's whole subtree
DELIVERY_SCAN = rf"Get it\s+(?:by|on|before)\s+\w+,\s+\w+\s+\d+|{DAY_MONTH}|\bDelivery\b"
