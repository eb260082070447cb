"""Source model representing e-commerce origins."""

from typing import TYPE_CHECKING

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricedrop.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from pricedrop.models.product import Product


class Source(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """E-commerce source registry entry.

    Rows are created lazily the first time a source is scraped successfully
    and looked up by ``code`` afterwards. Sources are never deleted, only
    deactivated.
    """

    __tablename__ = "sources"

    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False, comment="Adapter code (e.g., 'exito')")
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    url_base: Mapped[str] = mapped_column(String(500), nullable=False, comment="Source's base URL")

    scrape_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="html",
        comment="Extraction mode: 'html', 'api' or 'headless'"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, comment="Whether scraping is enabled")

    # Localization
    country: Mapped[str] = mapped_column(String(10), nullable=False, default="CO", comment="ISO country code")
    currency: Mapped[str] = mapped_column(String(5), nullable=False, default="COP", comment="ISO currency code")

    # Relationships
    products: Mapped[list["Product"]] = relationship(back_populates="source")

    def __repr__(self) -> str:
        return f"<Source(id={self.id}, code='{self.code}', name='{self.name}')>"
