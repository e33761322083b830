"""Field extraction for search-result pages.

``FieldExtractor.extract_page`` is a pure function from an HTML snapshot to
product records. It is handed to the browser session as an opaque callback, so the
same code runs against live pages and against saved fixtures.
"""

import logging
from typing import Iterator, List, Optional

from selectolax.parser import HTMLParser, Node

from listing_scraper.ingest.base import ProductRecord
from listing_scraper.ingest.candidates import Candidate, CandidateResolver
from listing_scraper.ingest.normalizer import UNKNOWN, clean_url, is_unknown
from listing_scraper.ingest.retailers.base import SiteProfile
from listing_scraper.ingest.selectors import SelectorChain, SelectorStep, node_text
from listing_scraper import metrics

logger = logging.getLogger(__name__)

RECORD_FIELDS = ("name", "price", "rating", "rating_count", "units_sold", "delivery_estimate")


def _iter_descendants(node: Node, tags: tuple[str, ...]) -> Iterator[Node]:
    """Descendants of ``node`` with one of ``tags``, in document order."""
    for child in node.iter(include_text=False):
        if child.tag in tags:
            yield child
        yield from _iter_descendants(child, tags)


class FieldExtractor:
    """Builds ProductRecords from one site's result nodes using its selector chains."""

    def __init__(self, profile: SiteProfile, resolver: Optional[CandidateResolver] = None):
        self.profile = profile
        self.resolver = resolver or CandidateResolver(
            profile.container_locators, profile.id_attribute
        )

    def _step_elements(self, node: Node, step: SelectorStep) -> List[Node]:
        if step.scan_tags:
            return list(_iter_descendants(node, step.scan_tags))
        if step.locator is None:
            return [node]
        if step.all_matches:
            return node.css(step.locator)
        found = node.css_first(step.locator)
        return [found] if found is not None else []

    def evaluate_chain(self, node: Node, chain: SelectorChain) -> str:
        """
        Evaluate a chain top to bottom and return the first usable value.

        A value is usable when it is non-empty and, for chains with a normalizer,
        does not normalize to UNKNOWN. Exhausting the chain yields UNKNOWN.
        """
        for index, step in enumerate(chain.steps):
            try:
                elements = self._step_elements(node, step)
            except Exception as e:
                logger.debug(f"{chain.field} step {index + 1} locator {step.locator!r} failed: {e}")
                continue

            for element in elements:
                try:
                    raw = step.rule(element)
                except Exception as e:
                    logger.debug(f"{chain.field} step {index + 1} rule failed: {e}")
                    continue
                if raw is None or not raw.strip():
                    continue
                value = chain.normalize(raw) if chain.normalize else raw.strip()
                if not is_unknown(value):
                    return value

        return UNKNOWN

    def extract_field(self, node: Node, field_name: str) -> str:
        """Value for one field; a missing chain or any failure yields UNKNOWN."""
        chain = self.profile.chain(field_name)
        if chain is None:
            return UNKNOWN
        try:
            value = self.evaluate_chain(node, chain)
        except Exception as e:
            logger.debug(f"Field {field_name} extraction failed: {e}")
            return UNKNOWN
        if field_name == "price":
            return self.with_currency(value)
        return value

    def with_currency(self, price: str) -> str:
        """Prefix the profile's currency symbol to a price rendered without one."""
        if is_unknown(price) or not price[:1].isdigit():
            return price
        return f"{self.profile.currency_symbol}{price}"

    def is_sponsored(self, node: Node) -> bool:
        """True if any sponsorship signal fires for the node."""
        rule = self.profile.sponsorship

        for locator in rule.badge_locators:
            try:
                if node.css_first(locator) is not None:
                    return True
            except Exception as e:
                logger.debug(f"Sponsored badge locator {locator!r} failed: {e}")

        if rule.attribute_markers:
            current: Optional[Node] = node
            while current is not None:
                for name, expected in rule.attribute_markers:
                    if current.attributes.get(name) == expected:
                        return True
                current = current.parent

        if rule.class_markers:
            classes = (node.attributes.get("class") or "").split()
            if any(marker in classes for marker in rule.class_markers):
                return True

        if rule.text_markers:
            haystack = node_text(node).lower()
            if any(marker.lower() in haystack for marker in rule.text_markers):
                return True

        return False

    def extract_url(self, candidate: Candidate) -> Optional[str]:
        """Absolute, query-stripped product URL, or None when the candidate has none."""
        url = self.extract_field(candidate.node, "url")
        if not is_unknown(url):
            cleaned = clean_url(url, self.profile.base_url)
            if not is_unknown(cleaned):
                return cleaned
        return self.profile.product_url_for(candidate.identifier)

    def build_record(self, candidate: Candidate) -> Optional[ProductRecord]:
        """ProductRecord for a candidate, or None if it has no usable URL."""
        url = self.extract_url(candidate)
        if not url:
            return None

        values = {name: self.extract_field(candidate.node, name) for name in RECORD_FIELDS}
        return ProductRecord(
            identifier=candidate.identifier,
            url=url,
            sponsored=self.is_sponsored(candidate.node),
            **values,
        )

    def extract_page(self, html: str) -> List[ProductRecord]:
        """Extract every product record from a page snapshot."""
        parser = HTMLParser(html or "")
        root = parser.body or parser.root
        if root is None:
            logger.debug("Empty document, nothing to extract")
            return []

        candidates, stats = self.resolver.resolve(root)
        records: List[ProductRecord] = []
        skipped_no_url = 0

        for candidate in candidates:
            record = self.build_record(candidate)
            if record is None:
                skipped_no_url += 1
                continue
            records.append(record)

        platform = self.profile.name
        if stats.missing_identifier:
            metrics.candidates_skipped_total.labels(platform=platform, reason="no_identifier").inc(
                stats.missing_identifier
            )
        if stats.duplicates:
            metrics.candidates_skipped_total.labels(platform=platform, reason="duplicate").inc(
                stats.duplicates
            )
        if skipped_no_url:
            metrics.candidates_skipped_total.labels(platform=platform, reason="no_url").inc(
                skipped_no_url
            )

        logger.info(
            f"Extraction stats ({platform}): total={stats.total}, added={len(records)}, "
            f"skipped_no_identifier={stats.missing_identifier}, "
            f"skipped_duplicate={stats.duplicates}, skipped_no_url={skipped_no_url}"
        )
        return records
