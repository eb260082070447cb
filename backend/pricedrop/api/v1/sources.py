"""Source catalogue endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.core.exceptions import UnsupportedSourceError
from pricedrop.dependencies import get_db, get_factory, get_registry
from pricedrop.schemas import ApiResponse, SourceResponse
from pricedrop.scrapers.factory import AdapterFactory
from pricedrop.services.source_registry import SourceRegistry

router = APIRouter()


@router.get("", response_model=ApiResponse)
async def list_sources(
    db: AsyncSession = Depends(get_db),
    adapter_factory: AdapterFactory = Depends(get_factory),
    source_registry: SourceRegistry = Depends(get_registry),
):
    """Configured sources merged with their persisted state."""
    persisted = {s.code: s for s in await source_registry.list_sources(db)}

    data = []
    for code in adapter_factory.get_registered_sources():
        config = adapter_factory.get_config(code)
        row = persisted.get(code)
        data.append(
            SourceResponse(
                code=code,
                name=config.name,
                url_base=config.base_url,
                scrape_type=config.scrape_type,
                country=config.country,
                currency=config.currency,
                is_active=row.is_active if row else True,
                id=row.id if row else None,
            )
        )

    return ApiResponse(status="success", data=data)


@router.post("/{code}/deactivate", response_model=ApiResponse)
async def deactivate_source(
    code: str,
    db: AsyncSession = Depends(get_db),
    adapter_factory: AdapterFactory = Depends(get_factory),
    source_registry: SourceRegistry = Depends(get_registry),
):
    """Stop scraping a source. Sources are deactivated, never deleted."""
    code = code.lower()
    config = adapter_factory.get_config(code)
    if config is None:
        raise UnsupportedSourceError(code, adapter_factory.get_registered_sources())

    # The row may not exist yet if the source was never scraped
    await source_registry.get_or_create(db, config)
    record = await source_registry.deactivate(db, code)

    return ApiResponse(
        status="success",
        data={"code": record.code, "is_active": record.is_active},
    )
