"""Services module for business logic and data operations.

This module contains the listing filter and deduplicator, the product and
alert repositories, and the notifier. The alert evaluator lives in
``pricedrop.services.alert_evaluator`` and is imported from there, since it
depends on the scraper service.
"""

from pricedrop.services.alert_service import AlertService
from pricedrop.services.deduplicator import deduplicate_listings
from pricedrop.services.listing_filter import ListingFilter
from pricedrop.services.notifier import AlertEvent, LoggingNotifier, Notifier
from pricedrop.services.product_service import ProductService
from pricedrop.services.source_registry import SourceRegistry, get_source_registry

__all__ = [
    "AlertService",
    "deduplicate_listings",
    "ListingFilter",
    "AlertEvent",
    "LoggingNotifier",
    "Notifier",
    "ProductService",
    "SourceRegistry",
    "get_source_registry",
]
