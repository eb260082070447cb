"""Scraping API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pricedrop.dependencies import get_scraper_service
from pricedrop.schemas import ApiResponse, SearchResponse, SourceScrapeResponse
from pricedrop.scrapers.scraper_service import ScraperService, parse_source_codes

router = APIRouter()


@router.get("/search", response_model=ApiResponse)
async def search(
    query: Optional[str] = Query(None, description="Search term"),
    sources: Optional[str] = Query(None, description="Comma-separated source codes (default: all)"),
    service: ScraperService = Depends(get_scraper_service),
):
    """Scrape every requested source for a term.

    Failing sources are reported in ``errors``; the cheapest products for the
    term are returned alongside the freshly scraped ones.
    """
    result = await service.search(query, parse_source_codes(sources))
    return ApiResponse(status="success", data=SearchResponse.from_result(result))


@router.get("/sources/{code}/search", response_model=ApiResponse)
async def search_source(
    code: str,
    query: Optional[str] = Query(None, description="Search term"),
    service: ScraperService = Depends(get_scraper_service),
):
    """Scrape and persist one source; errors are reported inline."""
    result = await service.scrape_source(query, code.lower())
    return ApiResponse(status="success", data=SourceScrapeResponse.from_result(result))


@router.get("/sources/{code}/raw-search", response_model=ApiResponse)
async def raw_search_source(
    code: str,
    query: Optional[str] = Query(None, description="Search term"),
    service: ScraperService = Depends(get_scraper_service),
):
    """Fetch one source's listings without filtering or persistence."""
    result = await service.scrape_source(query, code.lower(), raw=True)
    return ApiResponse(status="success", data=SourceScrapeResponse.from_result(result, raw=True))
