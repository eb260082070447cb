"""Product Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pricedrop.models.product import Product


class PriceObservationResponse(BaseModel):
    """Single price history data point."""

    model_config = ConfigDict(from_attributes=True)

    price: Decimal
    currency: str
    observed_at: datetime


class ProductResponse(BaseModel):
    """Product response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source: str = Field(description="Source code the product was scraped from")
    name: str
    url: str
    price: Decimal
    currency: str
    image_url: Optional[str] = None
    brand: Optional[str] = None
    seller: Optional[str] = None
    sku: Optional[str] = None
    ean: Optional[str] = None
    category: Optional[str] = None
    country: Optional[str] = None
    search_term: Optional[str] = None
    last_seen_at: datetime

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            source=product.source.code,
            name=product.name,
            url=product.url,
            price=product.price,
            currency=product.currency,
            image_url=product.image_url,
            brand=product.brand,
            seller=product.seller,
            sku=product.sku,
            ean=product.ean,
            category=product.category,
            country=product.country,
            search_term=product.search_term,
            last_seen_at=product.last_seen_at,
        )
