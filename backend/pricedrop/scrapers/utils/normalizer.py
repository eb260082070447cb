"""Text and price normalization utilities shared by adapters and the filter."""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional
from urllib.parse import urljoin

_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")
_NON_ASCII_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_text(text: Optional[str]) -> str:
    """Lowercase, strip non-alphanumeric characters and collapse whitespace.

    Accented letters are kept so Spanish product names still tokenize into
    whole words ("cámara" stays one token).
    """
    if not text:
        return ""
    cleaned = _NON_WORD.sub("", text.lower())
    return _WHITESPACE.sub(" ", cleaned).strip()


def normalize_key(text: Optional[str]) -> str:
    """Lowercase and keep only ``[a-z0-9]``; used for dedup keys."""
    if not text:
        return ""
    return _NON_ASCII_ALNUM.sub("", text.lower())


def clean_price_string(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a Colombian-formatted price string.

    Handles:
    - "$ 1.499.900" -> 1499900
    - "1.499.900,50" -> 1499900.50
    - "2999900" -> 2999900

    Args:
        raw: Raw price string

    Returns:
        Decimal price value, or None if parsing fails
    """
    if not raw:
        return None

    cleaned = re.sub(r"[^\d.,]", "", raw)
    if not cleaned:
        return None

    # Dots are thousand separators, a comma marks decimals
    cleaned = cleaned.replace(".", "").replace(",", ".")

    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def to_decimal(value) -> Optional[Decimal]:
    """Convert a JSON number (int/float/str) into a Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def absolute_url(base: str, href: Optional[str]) -> Optional[str]:
    """Resolve a possibly relative link against the source's main URL."""
    if not href:
        return None
    if href.startswith("http"):
        return href
    return urljoin(base, href)
