"""SQLAlchemy models for PriceDrop.

All models are imported here so ``Base.metadata`` knows every table.
"""

from pricedrop.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from pricedrop.models.source import Source
from pricedrop.models.product import Product
from pricedrop.models.price_observation import PriceObservation
from pricedrop.models.alert import Alert

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Source",
    "Product",
    "PriceObservation",
    "Alert",
]
