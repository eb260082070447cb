"""FastAPI dependency injection providers."""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.db.session import async_session_factory
from pricedrop.scrapers.factory import AdapterFactory, get_adapter_factory
from pricedrop.scrapers.scraper_service import ScraperService
from pricedrop.services.source_registry import SourceRegistry, get_source_registry


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The session is automatically committed on success or rolled back on error.
    Always closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_factory() -> AdapterFactory:
    return get_adapter_factory()


def get_registry() -> SourceRegistry:
    return get_source_registry()


async def get_scraper_service(
    db: AsyncSession = Depends(get_db),
    adapter_factory: AdapterFactory = Depends(get_factory),
    source_registry: SourceRegistry = Depends(get_registry),
) -> ScraperService:
    """Scraper service bound to the request's session."""
    return ScraperService(db, adapter_factory=adapter_factory, source_registry=source_registry)
