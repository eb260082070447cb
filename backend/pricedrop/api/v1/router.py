"""API v1 router -- aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from pricedrop.api.v1 import alerts, health, products, scraper, sources

api_v1_router = APIRouter()

api_v1_router.include_router(health.router, tags=["health"])
api_v1_router.include_router(scraper.router, prefix="/scraper", tags=["scraper"])
api_v1_router.include_router(products.router, prefix="/products", tags=["products"])
api_v1_router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
api_v1_router.include_router(sources.router, prefix="/sources", tags=["sources"])
