"""Scrape request/response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from pricedrop.schemas.product import ProductResponse
from pricedrop.scrapers.scraper_service import SearchResult, SourceError, SourceScrapeResult


class SourceErrorResponse(BaseModel):
    """Per-source failure annotation."""

    model_config = ConfigDict(from_attributes=True)

    source: str
    status: int
    message: str


class InlineError(BaseModel):
    status: int
    message: str


class RawListingResponse(BaseModel):
    """Unfiltered listing as returned by an adapter."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    price: Decimal
    url: str
    source: str
    currency: str
    scraped_at: datetime
    image: Optional[str] = None
    brand: Optional[str] = None
    seller: Optional[str] = None
    sku: Optional[str] = None
    ean: Optional[str] = None
    category: Optional[str] = None


class SearchResponse(BaseModel):
    """Multi-source search outcome."""

    search_term: str
    products: List[ProductResponse]
    cheapest: List[ProductResponse]
    errors: List[SourceErrorResponse]

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResponse":
        return cls(
            search_term=result.search_term,
            products=[ProductResponse.from_product(p) for p in result.products],
            cheapest=[ProductResponse.from_product(p) for p in result.cheapest],
            errors=[SourceErrorResponse.model_validate(e) for e in result.errors],
        )


class SourceScrapeResponse(BaseModel):
    """Single-source result; ``error`` is set and ``data`` empty on failure."""

    source: str
    data: List[ProductResponse] | List[RawListingResponse]
    error: Optional[InlineError] = None

    @classmethod
    def from_result(cls, result: SourceScrapeResult, raw: bool = False) -> "SourceScrapeResponse":
        if raw:
            data = [RawListingResponse.model_validate(listing) for listing in result.listings]
        else:
            data = [ProductResponse.from_product(p) for p in result.products]
        return cls(
            source=result.source,
            data=data,
            error=_inline(result.error),
        )


def _inline(error: Optional[SourceError]) -> Optional[InlineError]:
    if error is None:
        return None
    return InlineError(status=error.status, message=error.message)
