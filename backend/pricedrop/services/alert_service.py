"""Price alert service for search-term subscriptions."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.core.exceptions import NotFoundError
from pricedrop.models.alert import Alert


class AlertService:
    """Handles CRUD for price alerts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_alerts(self, active_only: bool = True) -> List[Alert]:
        """Get price alerts, newest first."""
        stmt = select(Alert)
        if active_only:
            stmt = stmt.where(Alert.is_active == True)
        stmt = stmt.order_by(Alert.created_at.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_active_alerts(self) -> List[Alert]:
        """Active alerts in creation order, as the evaluation loop visits them."""
        result = await self.db.execute(
            select(Alert).where(Alert.is_active == True).order_by(Alert.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_alert(self, alert_id: uuid.UUID) -> Optional[Alert]:
        result = await self.db.execute(select(Alert).where(Alert.id == alert_id))
        return result.scalar_one_or_none()

    async def create_alert(
        self,
        search_term: str,
        price_threshold: Decimal,
        email: str,
    ) -> Alert:
        """Create a new price alert. Returns existing alert if duplicate."""
        # One active alert per (term, email); a repeat just moves the threshold
        stmt = select(Alert).where(
            Alert.search_term == search_term,
            Alert.email == email,
            Alert.is_active == True,
        )
        result = await self.db.execute(stmt)
        existing = result.scalar_one_or_none()

        if existing:
            existing.price_threshold = price_threshold
            await self.db.flush()
            return existing

        alert = Alert(
            search_term=search_term,
            price_threshold=price_threshold,
            email=email,
            is_active=True,
        )
        self.db.add(alert)
        await self.db.flush()
        return alert

    async def delete_alert(self, alert_id: uuid.UUID) -> Alert:
        """Deactivate a price alert.

        Raises:
            NotFoundError: If no alert has this id
        """
        alert = await self.get_alert(alert_id)
        if not alert:
            raise NotFoundError("Alert", str(alert_id))

        alert.is_active = False
        await self.db.flush()
        return alert

    async def record_check(
        self,
        alert: Alert,
        checked_at: datetime,
        triggered_price: Optional[Decimal] = None,
    ) -> None:
        """Write the evaluation bookkeeping fields of an alert."""
        alert.last_checked_at = checked_at
        if triggered_price is not None:
            alert.last_triggered_at = checked_at
            alert.last_triggered_price = triggered_price
        await self.db.commit()
