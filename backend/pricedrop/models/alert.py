"""Alert model for search-term price subscriptions."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Numeric, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from pricedrop.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Alert(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Standing subscription on a search term's lowest price."""

    __tablename__ = "alerts"

    search_term: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    price_threshold: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False,
        comment="Alert when the lowest price drops to or below this"
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Bookkeeping written by the evaluation loop only
    last_checked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_triggered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_triggered_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)

    def __repr__(self) -> str:
        return f"<Alert(term='{self.search_term}', threshold={self.price_threshold}, email='{self.email}')>"
