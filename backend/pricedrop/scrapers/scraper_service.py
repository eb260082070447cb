"""Scrape orchestration service.

Connects the adapter layer with filtering, deduplication and the product
repository. It handles the end-to-end flow for one source:
fetch -> filter -> dedup -> persist, and the multi-source search built on it.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID
import structlog

from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.config import settings
from pricedrop.core.exceptions import (
    InvalidSearchTermError,
    NoDataError,
    NoRelevantDataError,
    PriceDropException,
    SourceInactiveError,
    UnsupportedSourceError,
)
from pricedrop.models.product import Product
from pricedrop.scrapers.base import RawListing, SourceAdapter, SourceConfig
from pricedrop.scrapers.factory import AdapterFactory, get_adapter_factory
from pricedrop.services.deduplicator import deduplicate_listings
from pricedrop.services.listing_filter import ListingFilter
from pricedrop.services.product_service import ProductService
from pricedrop.services.source_registry import SourceRegistry, get_source_registry

logger = structlog.get_logger(__name__)


def normalize_search_term(search_term: Optional[str]) -> str:
    """Trim, collapse inner whitespace and lowercase a user-supplied term.

    Raises:
        InvalidSearchTermError: If nothing is left after trimming
    """
    term = " ".join((search_term or "").split()).lower()
    if not term:
        raise InvalidSearchTermError()
    return term


def parse_source_codes(raw: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated ``sources`` query parameter.

    Returns None when no codes were given, meaning all configured sources.
    """
    if not raw:
        return None
    codes = [code.strip().lower() for code in raw.split(",") if code.strip()]
    return codes or None


@dataclass
class SourceError:
    """Per-source failure annotation in a multi-source result."""

    source: str
    status: int
    message: str

    @classmethod
    def from_exception(cls, source: str, exc: Exception) -> "SourceError":
        if isinstance(exc, PriceDropException):
            return cls(source=source, status=exc.status_code, message=exc.message)
        return cls(source=source, status=500, message=str(exc) or exc.__class__.__name__)


@dataclass
class SearchResult:
    """Outcome of a multi-source search."""

    search_term: str
    products: List[Product] = field(default_factory=list)
    cheapest: List[Product] = field(default_factory=list)
    errors: List[SourceError] = field(default_factory=list)


@dataclass
class SourceScrapeResult:
    """Outcome of a single-source request with the error reported inline."""

    source: str
    products: List[Product] = field(default_factory=list)
    listings: List[RawListing] = field(default_factory=list)
    error: Optional[SourceError] = None


class ScraperService:
    """Service for orchestrating source adapters and persisting results.

    Dependencies are injectable so tests can supply fake adapters, a fresh
    source registry and a differently seeded filter.
    """

    def __init__(
        self,
        db: AsyncSession,
        adapter_factory: Optional[AdapterFactory] = None,
        source_registry: Optional[SourceRegistry] = None,
        listing_filter: Optional[ListingFilter] = None,
    ):
        """Initialize scraper service.

        Args:
            db: Async database session
            adapter_factory: Source code to adapter mapping (global by default)
            source_registry: Process-scoped Source cache (global by default)
            listing_filter: Relevance and outlier filter
        """
        self.db = db
        self.product_service = ProductService(db)
        self.adapter_factory = adapter_factory or get_adapter_factory()
        self.source_registry = source_registry or get_source_registry()
        self.listing_filter = listing_filter or ListingFilter()
        self.logger = logger.bind(service="scraper_service")

    @property
    def configured_sources(self) -> List[str]:
        return self.adapter_factory.get_registered_sources()

    def _resolve_adapter(self, source_code: str) -> tuple[SourceAdapter, SourceConfig]:
        adapter = self.adapter_factory.create_adapter(source_code)
        if adapter is None:
            raise UnsupportedSourceError(source_code, self.configured_sources)
        return adapter, adapter.config

    async def _ensure_active(self, source_code: str) -> None:
        record = await self.source_registry.get(self.db, source_code)
        if record is not None and not record.is_active:
            raise SourceInactiveError(source_code)

    async def scrape(self, search_term: str, source_code: str) -> List[Product]:
        """Scrape one source for a term and persist the surviving listings.

        Args:
            search_term: Normalized search term
            source_code: Registered source code

        Returns:
            The upserted products, one per surviving listing

        Raises:
            UnsupportedSourceError: Unknown source code
            SourceInactiveError: Source has been deactivated
            FetchError: Adapter network or parse failure
            NoDataError: Adapter returned zero listings
            NoRelevantDataError: Nothing survived filtering and dedup
            PersistenceConflictError: Upsert conflicted twice
        """
        adapter, config = self._resolve_adapter(source_code)
        await self._ensure_active(source_code)

        listings = await adapter.fetch(search_term)
        if not listings:
            raise NoDataError(source_code)

        usable = [listing for listing in listings if listing.is_usable]
        filtered = self.listing_filter.apply(usable, search_term, config.price_quantile)
        unique = deduplicate_listings(filtered)

        self.logger.info(
            "listings_processed",
            source=source_code,
            search_term=search_term,
            fetched=len(listings),
            usable=len(usable),
            filtered=len(filtered),
            unique=len(unique),
        )

        if not unique:
            raise NoRelevantDataError(source_code, search_term)

        source = await self.source_registry.get_or_create(self.db, config)

        # Ids are captured as plain values; a conflict rollback expires instances
        product_ids: List[UUID] = []
        for listing in unique:
            product = await self.product_service.record_listing(source.id, listing)
            product_ids.append(product.id)

        products = await self.product_service.get_products_by_ids(dict.fromkeys(product_ids))

        self.logger.info(
            "source_scraped",
            source=source_code,
            search_term=search_term,
            count=len(products),
        )
        return products

    async def scrape_raw(self, search_term: str, source_code: str) -> List[RawListing]:
        """Fetch listings without filtering, dedup or persistence.

        An empty result is returned as-is, not raised.
        """
        adapter, _ = self._resolve_adapter(source_code)
        await self._ensure_active(source_code)
        return await adapter.fetch(search_term)

    async def cheapest(self, search_term: str, limit: Optional[int] = None) -> List[Product]:
        """The ``limit`` lowest current-price products for a term, ascending."""
        return await self.product_service.get_cheapest(
            search_term,
            limit=limit or settings.CHEAPEST_LIMIT,
        )

    def validate_source_codes(self, source_codes: Optional[List[str]]) -> List[str]:
        """Default to every configured source; reject any unknown code."""
        if not source_codes:
            return self.configured_sources

        for code in source_codes:
            if not self.adapter_factory.has_adapter(code):
                raise UnsupportedSourceError(code, self.configured_sources)
        return list(dict.fromkeys(source_codes))

    async def search(
        self,
        search_term: Optional[str],
        source_codes: Optional[List[str]] = None,
    ) -> SearchResult:
        """Scrape several sources sequentially and report per-source failures.

        Request-level validation happens before any fetch. A failing source
        is annotated in ``errors`` and never aborts the remaining sources.

        Raises:
            InvalidSearchTermError: Blank search term
            UnsupportedSourceError: Any requested code is unknown
        """
        term = normalize_search_term(search_term)
        codes = self.validate_source_codes(source_codes)

        result = SearchResult(search_term=term)
        product_ids: List[UUID] = []
        for code in codes:
            try:
                product_ids.extend(product.id for product in await self.scrape(term, code))
            except Exception as e:
                if not isinstance(e, PriceDropException):
                    await self.db.rollback()
                error = SourceError.from_exception(code, e)
                result.errors.append(error)
                self.logger.warning(
                    "source_scrape_failed",
                    source=code,
                    search_term=term,
                    status=error.status,
                    error=error.message,
                    exc_info=not isinstance(e, PriceDropException),
                )

        # Reloaded since a rollback in a later source expires earlier instances
        result.products = await self.product_service.get_products_by_ids(product_ids)
        result.cheapest = await self.cheapest(term)

        self.logger.info(
            "search_completed",
            search_term=term,
            sources=len(codes),
            products=len(result.products),
            errors=len(result.errors),
        )
        return result

    async def scrape_source(
        self,
        search_term: Optional[str],
        source_code: str,
        raw: bool = False,
    ) -> SourceScrapeResult:
        """Single-source validate or raw fetch with the error reported inline.

        Raises:
            InvalidSearchTermError: Blank search term
        """
        term = normalize_search_term(search_term)
        result = SourceScrapeResult(source=source_code)
        try:
            if raw:
                result.listings = await self.scrape_raw(term, source_code)
            else:
                result.products = await self.scrape(term, source_code)
        except Exception as e:
            result.error = SourceError.from_exception(source_code, e)
            self.logger.warning(
                "source_request_failed",
                source=source_code,
                search_term=term,
                raw=raw,
                status=result.error.status,
                error=result.error.message,
            )
        return result
