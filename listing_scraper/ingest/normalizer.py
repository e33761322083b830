"""Text normalization for scraped listing fields.

Every function here is total: malformed, partial or missing input degrades to
UNKNOWN for that one field and never raises.
"""

import re
from typing import Iterable, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

UNKNOWN = "N/A"

COUNT_KEYWORDS = ("bought", "sold", "purchased", "ratings", "rating", "reviews", "review")
UNITS_KEYWORDS = ("bought", "sold", "purchased")
RATING_COUNT_KEYWORDS = ("ratings", "rating", "reviews", "review")

# "1K+", "1.5 K", "2,500", "700+"
_COUNT_NUMBER = r"\d[\d,]*(?:\.\d+)?\s*[kKmM]?\+?"
_COUNT_PARTS = re.compile(r"^(?P<digits>\d[\d,]*(?:\.\d+)?)\s*(?P<multiplier>[kKmM]?)(?P<plus>\+?)$")
_BARE_COUNT = re.compile(rf"^({_COUNT_NUMBER})$")
_KEYWORD_PATTERNS: dict[tuple[str, ...], re.Pattern] = {}

_RATING = re.compile(r"(\d+(?:\.\d+)?)\s*(?:out of|stars?)", re.IGNORECASE)
_BARE_RATING = re.compile(r"^(\d(?:\.\d+)?)$")

_WHITESPACE = re.compile(r"\s+")


def is_unknown(value: Optional[str]) -> bool:
    """True for the unknown sentinel, None and blank strings."""
    return value is None or not value.strip() or value == UNKNOWN


def normalize_text(text: Optional[str]) -> str:
    """Collapse internal whitespace; blank input becomes UNKNOWN."""
    if not isinstance(text, str):
        return UNKNOWN
    collapsed = _WHITESPACE.sub(" ", text).strip()
    return collapsed or UNKNOWN


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern:
    pattern = _KEYWORD_PATTERNS.get(keywords)
    if pattern is None:
        # Longest first so "ratings" is preferred over "rating"
        alternation = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
        pattern = re.compile(rf"({_COUNT_NUMBER})\s*(?:{alternation})\b", re.IGNORECASE)
        _KEYWORD_PATTERNS[keywords] = pattern
    return pattern


def _canonical_count(raw: str) -> str:
    compact = _WHITESPACE.sub("", raw)
    match = _COUNT_PARTS.match(compact)
    if not match:
        return UNKNOWN
    digits = match.group("digits").replace(",", "")
    return f"{digits}{match.group('multiplier').upper()}{match.group('plus')}"


def normalize_count(text: Optional[str], keywords: Iterable[str] = COUNT_KEYWORDS) -> str:
    """
    Normalize a count such as units sold or number of ratings.

    The number must be immediately followed by one of ``keywords``; failing that the
    whole trimmed string must be a bare count. Thousands separators and internal
    whitespace are removed, a K/M multiplier is uppercased and a trailing "+" kept.

    Examples:
        "1K+ bought in past month" -> "1K+"
        "2,500 ratings" -> "2500"
        "1 k+" -> "1K+"
        "Some other random text" -> "N/A"
    """
    if not isinstance(text, str):
        return UNKNOWN
    trimmed = text.strip()
    if not trimmed:
        return UNKNOWN

    match = _keyword_pattern(tuple(keywords)).search(trimmed)
    if match:
        return _canonical_count(match.group(1))

    match = _BARE_COUNT.match(trimmed)
    if match:
        return _canonical_count(match.group(1))

    return UNKNOWN


def _digits(text: Optional[str]) -> str:
    if not isinstance(text, str):
        return ""
    return re.sub(r"[^0-9]", "", text)


def normalize_price(
    full: Optional[str] = None,
    *,
    whole: Optional[str] = None,
    fraction: Optional[str] = None,
    symbol: Optional[str] = None,
    default_symbol: str = "₹",
    default_fraction: str = "00",
) -> str:
    """
    Normalize a displayed price.

    A pre-rendered full price string (e.g. an off-screen accessibility copy) wins.
    Otherwise the price is rebuilt as ``symbol + whole + "." + fraction`` with the
    symbol and fraction defaulted when their parts are missing.
    """
    full_text = normalize_text(full)
    if full_text != UNKNOWN:
        return full_text

    whole_digits = _digits(whole)
    if not whole_digits:
        return UNKNOWN

    symbol_text = symbol.strip() if isinstance(symbol, str) and symbol.strip() else default_symbol
    fraction_digits = _digits(fraction) or default_fraction
    return f"{symbol_text}{whole_digits}.{fraction_digits}"


def normalize_rating(text: Optional[str]) -> str:
    """Extract the decimal preceding "out of" / "stars" ("4.3 out of 5 stars" -> "4.3")."""
    if not isinstance(text, str):
        return UNKNOWN
    match = _RATING.search(text)
    if match:
        return match.group(1)
    return UNKNOWN


def normalize_rating_value(text: Optional[str]) -> str:
    """Accept a bare rating badge value between 0 and 5, else defer to normalize_rating."""
    if not isinstance(text, str):
        return UNKNOWN
    match = _BARE_RATING.match(text.strip())
    if match and float(match.group(1)) <= 5:
        return match.group(1)
    return normalize_rating(text)


def clean_url(href: Optional[str], base_url: str = "") -> str:
    """Resolve ``href`` against ``base_url`` and drop query string and fragment."""
    if not isinstance(href, str) or not href.strip():
        return UNKNOWN
    try:
        absolute = urljoin(base_url, href.strip())
        parts = urlsplit(absolute)
    except ValueError:
        return UNKNOWN
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return UNKNOWN
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
