"""Price history tracking for products."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import String, ForeignKey, Numeric, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricedrop.models.base import Base, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricedrop.models.product import Product


class PriceObservation(UUIDPrimaryKeyMixin, Base):
    """One immutable price sample per scrape of a product.

    Rows are append-only: the historical lowest price of a search term is
    computed from them.
    """

    __tablename__ = "price_observations"

    product_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, comment="Price at this point in time")
    currency: Mapped[str] = mapped_column(String(5), nullable=False, default="COP")

    observed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When the listing carrying this price was scraped"
    )

    __table_args__ = (
        Index("idx_price_observations_product_observed", "product_id", "observed_at"),
    )

    product: Mapped["Product"] = relationship(back_populates="observations")

    def __repr__(self) -> str:
        return f"<PriceObservation(product_id={self.product_id}, price={self.price}, observed_at={self.observed_at})>"
