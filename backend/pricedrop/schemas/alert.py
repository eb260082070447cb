"""Price alert Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AlertCreateRequest(BaseModel):
    """Request to create a price alert."""
    search_term: str = Field(min_length=1, max_length=200)
    price_threshold: Decimal = Field(gt=0)
    email: EmailStr


class AlertResponse(BaseModel):
    """Price alert response."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    search_term: str
    price_threshold: Decimal
    email: str
    is_active: bool
    last_checked_at: Optional[datetime] = None
    last_triggered_at: Optional[datetime] = None
    last_triggered_price: Optional[Decimal] = None
    created_at: datetime
