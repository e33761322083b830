"""Declarative selector chains for field extraction.

A chain is an ordered tuple of steps. Each step names a locator (CSS, relative to
the product node) and an extraction rule, a callable that turns one matched element
into a raw string or None. Rules are built by the small factories below so a whole
site profile can be written as data.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from selectolax.parser import Node

from listing_scraper.ingest.normalizer import normalize_price

ExtractionRule = Callable[[Node], Optional[str]]
Normalizer = Callable[[str], str]

_WHITESPACE = re.compile(r"\s+")


def node_text(node: Node) -> str:
    """Visible text of a node with whitespace collapsed across child elements."""
    raw = node.text(deep=True, separator=" ")
    return _WHITESPACE.sub(" ", raw or "").strip()


def text(strip_chars: str = "") -> ExtractionRule:
    """Element text, optionally trimmed of wrapper characters like "(36,417)"."""

    def rule(node: Node) -> Optional[str]:
        value = node_text(node)
        if strip_chars:
            value = value.strip(strip_chars).strip()
        return value or None

    return rule


def attr(name: str, pattern: Optional[str] = None) -> ExtractionRule:
    """Attribute value, optionally required to contain a regex match."""
    compiled = re.compile(pattern) if pattern else None

    def rule(node: Node) -> Optional[str]:
        value = (node.attributes.get(name) or "").strip()
        if not value:
            return None
        if compiled and not compiled.search(value):
            return None
        return value

    return rule


def attr_or_text(name: str) -> ExtractionRule:
    """Prefer the attribute (often the untruncated string) and fall back to element text."""
    from_attr = attr(name)
    from_text = text()

    def rule(node: Node) -> Optional[str]:
        return from_attr(node) or from_text(node)

    return rule


def matching(pattern: str, max_length: Optional[int] = None) -> ExtractionRule:
    """Element text, kept only if it matches ``pattern`` and is short enough."""
    compiled = re.compile(pattern, re.IGNORECASE)

    def rule(node: Node) -> Optional[str]:
        value = node_text(node)
        if not value:
            return None
        if max_length is not None and len(value) > max_length:
            return None
        return value if compiled.search(value) else None

    return rule


def price_parts(
    whole: str,
    fraction: str,
    symbol: str,
    default_symbol: Optional[str] = None,
) -> ExtractionRule:
    """
    Rebuild a price from separately rendered symbol, whole and fraction elements.

    Without a symbol element or ``default_symbol`` the price comes back bare
    ("2499.50") and the extractor prefixes the site's currency.
    """

    def rule(node: Node) -> Optional[str]:
        whole_node = node.css_first(whole)
        if whole_node is None:
            return None
        fraction_node = node.css_first(fraction)
        symbol_node = node.css_first(symbol)
        return normalize_price(
            whole=node_text(whole_node),
            fraction=node_text(fraction_node) if fraction_node else None,
            symbol=node_text(symbol_node) if symbol_node else None,
            default_symbol=default_symbol or "",
        )

    return rule


@dataclass(frozen=True)
class SelectorStep:
    """One (locator, extraction rule) pair.

    ``locator=None`` applies the rule to the product node itself. ``all_matches``
    tries every element the locator matches instead of only the first, and
    ``scan_tags`` walks every descendant with one of those tag names in document order.
    """

    locator: Optional[str]
    rule: ExtractionRule = field(default_factory=text)
    all_matches: bool = False
    scan_tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class SelectorChain:
    """Ordered fallback steps for one field."""

    field: str
    steps: tuple[SelectorStep, ...]
    normalize: Optional[Normalizer] = None


@dataclass(frozen=True)
class SponsorshipRule:
    """Independent signals that mark a result as sponsored; any one is enough."""

    badge_locators: tuple[str, ...] = ()
    attribute_markers: tuple[tuple[str, str], ...] = ()  # checked on the node and its ancestors
    class_markers: tuple[str, ...] = ()
    text_markers: tuple[str, ...] = ("sponsored",)
