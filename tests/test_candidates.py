"""Tests for candidate resolution."""

from selectolax.parser import HTMLParser

from listing_scraper.ingest.candidates import CandidateResolver


def _root(html: str):
    parser = HTMLParser(html)
    return parser.body


def test_first_duplicate_wins():
    """A repeated identifier keeps only its first node in document order."""
    root = _root(
        '<div data-asin="ASIN123" class="first"></div>'
        '<div data-asin="ASIN123" class="second"></div>'
        '<div data-asin="ASIN456"></div>'
    )
    resolver = CandidateResolver(["[data-asin]"], "data-asin")

    candidates, stats = resolver.resolve(root)

    assert [c.identifier for c in candidates] == ["ASIN123", "ASIN456"]
    assert candidates[0].node.attributes["class"] == "first"
    assert stats.duplicates == 1
    assert stats.accepted == 2


def test_missing_and_blank_identifiers_dropped():
    root = _root(
        '<div class="r" data-asin=""></div>'
        '<div class="r" data-asin="   "></div>'
        '<div class="r"></div>'
        '<div class="r" data-asin=" B0X "></div>'
    )
    resolver = CandidateResolver(["div.r"], "data-asin")

    candidates, stats = resolver.resolve(root)

    assert [c.identifier for c in candidates] == ["B0X"]
    assert stats.total == 4
    assert stats.missing_identifier == 3


def test_container_locators_in_priority_order():
    """The first locator that matches anything supplies the nodes."""
    root = _root(
        '<div data-component-type="s-search-result" data-asin="A1"></div>'
        '<div data-asin="A2"></div>'
    )
    resolver = CandidateResolver(
        ['[data-component-type="s-search-result"]', "[data-asin]"], "data-asin"
    )

    candidates, _ = resolver.resolve(root)

    assert [c.identifier for c in candidates] == ["A1"]


def test_falls_back_to_next_locator():
    root = _root('<div data-asin="A2"></div>')
    resolver = CandidateResolver(
        ['[data-component-type="s-search-result"]', "[data-asin]"], "data-asin"
    )

    candidates, _ = resolver.resolve(root)

    assert [c.identifier for c in candidates] == ["A2"]


def test_no_nodes():
    resolver = CandidateResolver(["div[data-id]"], "data-id")

    candidates, stats = resolver.resolve(_root("<p>No results</p>"))

    assert candidates == []
    assert stats.total == 0
