"""Scraper utilities for retries, text/price normalization and browser management."""

from .retry import http_retry, browser_retry
from .normalizer import clean_price_string, to_decimal, normalize_text, normalize_key, absolute_url


__all__ = [
    # Retry decorators
    "http_retry",
    "browser_retry",
    # Normalization
    "clean_price_string",
    "to_decimal",
    "normalize_text",
    "normalize_key",
    "absolute_url",
]
