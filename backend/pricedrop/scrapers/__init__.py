"""Scraper system for fetching listings from e-commerce sources.

This package provides:
- The source adapter contract and raw listing type
- Adapters for each supported source
- A factory mapping source codes to adapters
- The scraper service orchestrating fetch, filtering and persistence
- The scheduler driving hourly alert evaluation
"""

from .base import (
    SourceAdapter,
    BaseHTTPAdapter,
    BaseBrowserAdapter,
    SourceConfig,
    RawListing,
)
from .factory import AdapterFactory, adapter_factory, get_adapter_factory

__all__ = [
    # Base classes
    "SourceAdapter",
    "BaseHTTPAdapter",
    "BaseBrowserAdapter",
    # Data structures
    "SourceConfig",
    "RawListing",
    # Factory
    "AdapterFactory",
    "adapter_factory",
    "get_adapter_factory",
]
