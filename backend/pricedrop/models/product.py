"""Product model representing canonical listings from e-commerce sources."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, ForeignKey, Numeric, DateTime, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricedrop.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricedrop.models.source import Source
    from pricedrop.models.price_observation import PriceObservation


class Product(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Canonical listing scraped from a source.

    Each product is uniquely identified by its (source_id, url) pair, so
    repeated scrapes of the same URL update one row. Every scrape appends a
    PriceObservation.
    """

    __tablename__ = "products"

    source_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("sources.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    url: Mapped[str] = mapped_column(String(2000), nullable=False, comment="Link to product on source")

    # Display fields
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    sku: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ean: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, comment="Current price")
    currency: Mapped[str] = mapped_column(String(5), nullable=False, default="COP")

    seller: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    search_term: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        index=True,
        comment="Search term the product was discovered under"
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Last time this product was scraped"
    )

    __table_args__ = (
        UniqueConstraint("source_id", "url", name="uq_product_source_url"),
        Index("idx_products_term_price", "search_term", "price"),
    )

    # Relationships
    source: Mapped["Source"] = relationship(back_populates="products", lazy="joined")
    observations: Mapped[list["PriceObservation"]] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="PriceObservation.observed_at.desc()"
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name[:50]}', source_id={self.source_id})>"
