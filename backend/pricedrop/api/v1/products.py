"""Products API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.config import settings
from pricedrop.dependencies import get_db, get_scraper_service
from pricedrop.schemas import ApiResponse, PriceObservationResponse, ProductResponse
from pricedrop.scrapers.scraper_service import ScraperService, normalize_search_term
from pricedrop.services.product_service import ProductService

router = APIRouter()


@router.get("/cheapest", response_model=ApiResponse)
async def cheapest_products(
    query: Optional[str] = Query(None, description="Search term"),
    limit: int = Query(settings.CHEAPEST_LIMIT, ge=1, le=50, description="Number of products"),
    service: ScraperService = Depends(get_scraper_service),
):
    """Lowest-priced stored products for a term, cheapest first."""
    products = await service.cheapest(normalize_search_term(query), limit=limit)
    return ApiResponse(
        status="success",
        data=[ProductResponse.from_product(p) for p in products],
    )


@router.get("/{product_id}/history", response_model=ApiResponse)
async def get_price_history(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Every recorded price of a product, oldest first."""
    service = ProductService(db)
    observations = await service.get_price_history(product_id)

    return ApiResponse(
        status="success",
        data=[PriceObservationResponse.model_validate(o) for o in observations],
    )
