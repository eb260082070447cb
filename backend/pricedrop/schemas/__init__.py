"""Pydantic schemas for the PriceDrop API.

All request/response models are defined here for easy import.
"""

from pricedrop.schemas.common import ApiResponse, ErrorDetail, ErrorResponse
from pricedrop.schemas.product import PriceObservationResponse, ProductResponse
from pricedrop.schemas.alert import AlertCreateRequest, AlertResponse
from pricedrop.schemas.source import SourceResponse
from pricedrop.schemas.scrape import (
    InlineError,
    RawListingResponse,
    SearchResponse,
    SourceErrorResponse,
    SourceScrapeResponse,
)
from pricedrop.schemas.health import HealthCheckResponse

__all__ = [
    # Common
    "ApiResponse",
    "ErrorDetail",
    "ErrorResponse",
    # Product
    "ProductResponse",
    "PriceObservationResponse",
    # Alert
    "AlertCreateRequest",
    "AlertResponse",
    # Source
    "SourceResponse",
    # Scrape
    "SearchResponse",
    "SourceErrorResponse",
    "SourceScrapeResponse",
    "RawListingResponse",
    "InlineError",
    # Health
    "HealthCheckResponse",
]
