"""Price alert API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.dependencies import get_db
from pricedrop.schemas.alert import AlertCreateRequest, AlertResponse
from pricedrop.schemas.common import ApiResponse
from pricedrop.scrapers.scraper_service import normalize_search_term
from pricedrop.services.alert_service import AlertService

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_alerts(db: AsyncSession = Depends(get_db)):
    """Get all active price alerts."""
    service = AlertService(db)
    alerts = await service.list_alerts()

    return ApiResponse(
        status="success",
        data=[AlertResponse.model_validate(a).model_dump(mode="json") for a in alerts],
    )


@router.post("", response_model=ApiResponse, status_code=201)
async def create_alert(
    body: AlertCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create or update a price alert for a search term."""
    service = AlertService(db)
    alert = await service.create_alert(
        search_term=normalize_search_term(body.search_term),
        price_threshold=body.price_threshold,
        email=str(body.email),
    )

    return ApiResponse(
        status="success",
        data=AlertResponse.model_validate(alert).model_dump(mode="json"),
    )


@router.delete("/{alert_id}", response_model=ApiResponse)
async def delete_alert(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a price alert."""
    service = AlertService(db)
    await service.delete_alert(alert_id)

    return ApiResponse(status="success", data={"deleted": True})
