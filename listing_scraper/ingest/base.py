"""Core record type and the browser session interface used by the scrape loop."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from listing_scraper.ingest.normalizer import UNKNOWN

T = TypeVar("T")


@dataclass(frozen=True)
class ProductRecord:
    """One product listing extracted from a search-result page."""

    identifier: str
    url: str
    name: str = UNKNOWN
    price: str = UNKNOWN
    rating: str = UNKNOWN
    rating_count: str = UNKNOWN
    units_sold: str = UNKNOWN
    sponsored: bool = False
    delivery_estimate: str = UNKNOWN

    def __post_init__(self):
        if not self.identifier or not self.url:
            raise ValueError("ProductRecord requires both identifier and url")

    def to_row(self) -> dict[str, str]:
        """Artifact row keyed by column id."""
        return {
            "name": self.name,
            "price": self.price,
            "url": self.url,
            "rating": self.rating,
            "numRatings": self.rating_count,
            "sponsored": "Yes" if self.sponsored else "No",
            "deliveryDate": self.delivery_estimate,
            "unitsSold": self.units_sold,
        }


class PageLoadError(Exception):
    """Page failed to load properly."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class BrowserSession(ABC):
    """A single browser tab owned by one scrape job.

    Implementations wrap a real automation driver; the scrape loop only ever talks
    to this interface.
    """

    @abstractmethod
    async def navigate(self, url: str, wait_until: str, timeout_ms: int) -> None:
        """
        Load ``url`` in the tab.

        Raises:
            PageLoadError: If navigation fails or times out
        """

    @abstractmethod
    async def wait_for_locator(self, locator: str, timeout_ms: int) -> bool:
        """Wait until ``locator`` matches; False on timeout."""

    @abstractmethod
    async def element_attributes(self, locator: str) -> Optional[dict[str, str]]:
        """Attributes of the first element matching ``locator``, or None if absent."""

    @abstractmethod
    async def click(self, locator: str) -> None:
        """Scroll the first element matching ``locator`` into view and click it."""

    @abstractmethod
    async def wait_for_network_idle(self, timeout_ms: int) -> bool:
        """Wait for the network to settle; False on timeout."""

    @abstractmethod
    async def scroll_by(self, distance: int) -> None:
        """Scroll the window vertically by ``distance`` pixels."""

    @abstractmethod
    async def scroll_to_bottom(self) -> None:
        """Scroll the window to the end of the document."""

    @abstractmethod
    async def scroll_height(self) -> int:
        """Current scroll height of the document body."""

    @abstractmethod
    async def content(self) -> str:
        """Serialized HTML of the current DOM."""

    @abstractmethod
    async def current_url(self) -> str:
        """URL of the current document."""

    @abstractmethod
    async def close(self) -> None:
        """Release the tab and any browser resources behind it."""

    async def evaluate_in_page(self, extraction_fn: Callable[[str], T]) -> T:
        """Run an extraction function against a snapshot of the live DOM."""
        html = await self.content()
        return extraction_fn(html)
