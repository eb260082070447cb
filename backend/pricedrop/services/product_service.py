"""Product repository: upserts scraped listings and tracks price history.

Products are keyed by (source_id, url). Every recorded listing updates the
product's current fields and appends one PriceObservation; observations are
never updated or deleted here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import select, and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pricedrop.core.exceptions import NotFoundError, PersistenceConflictError
from pricedrop.models.product import Product
from pricedrop.models.price_observation import PriceObservation
from pricedrop.scrapers.base import RawListing

logger = structlog.get_logger(__name__)

UPSERT_ATTEMPTS = 2  # First write plus one retry after a unique-constraint conflict


class ProductService:
    """Service for managing products and their price observations."""

    def __init__(self, db: AsyncSession):
        """Initialize product service.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(service="product_service")

    async def record_listing(self, source_id: UUID, listing: RawListing) -> Product:
        """Upsert the product for a listing and append a price observation.

        The write is committed per listing. A concurrent insert of the same
        (source, url) surfaces as IntegrityError; the transaction is rolled
        back and the upsert re-applied once against the row that won.

        Args:
            source_id: Persisted Source UUID
            listing: Filtered, deduplicated listing

        Returns:
            The created or updated Product

        Raises:
            PersistenceConflictError: If the retry conflicts as well
        """
        for attempt in range(1, UPSERT_ATTEMPTS + 1):
            try:
                product = await self._apply_listing(source_id, listing)
                await self.db.commit()
                return product
            except IntegrityError as e:
                await self.db.rollback()
                self.logger.warning(
                    "upsert_conflict",
                    source=listing.source,
                    url=listing.url,
                    attempt=attempt,
                    error=str(e.orig),
                )

        raise PersistenceConflictError(listing.source, listing.url)

    async def _apply_listing(self, source_id: UUID, listing: RawListing) -> Product:
        existing = await self.db.execute(
            select(Product).where(and_(
                Product.source_id == source_id,
                Product.url == listing.url,
            ))
        )
        product = existing.scalar_one_or_none()

        if product:
            product.name = listing.name
            product.price = listing.price
            product.currency = listing.currency
            product.image_url = listing.image
            product.brand = listing.brand
            product.seller = listing.seller
            product.sku = listing.sku
            product.ean = listing.ean
            product.category = listing.category
            product.country = listing.country
            product.search_term = listing.search_term
            product.last_seen_at = listing.scraped_at
        else:
            product = Product(
                source_id=source_id,
                url=listing.url,
                name=listing.name,
                price=listing.price,
                currency=listing.currency,
                image_url=listing.image,
                brand=listing.brand,
                seller=listing.seller,
                sku=listing.sku,
                ean=listing.ean,
                category=listing.category,
                country=listing.country,
                search_term=listing.search_term,
                last_seen_at=listing.scraped_at,
            )
            self.db.add(product)

        # Flush to get product.id for the observation
        await self.db.flush()

        self.db.add(
            PriceObservation(
                product_id=product.id,
                price=listing.price,
                currency=listing.currency,
                observed_at=listing.scraped_at,
            )
        )
        await self.db.flush()
        return product

    async def get_product_by_id(self, product_id: UUID) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def get_products_by_ids(self, product_ids: Iterable[UUID]) -> List[Product]:
        """Load products by id, preserving the order of ``product_ids``."""
        ids = list(product_ids)
        if not ids:
            return []

        result = await self.db.execute(
            select(Product)
            .where(Product.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        by_id = {product.id: product for product in result.scalars().unique().all()}
        return [by_id[pid] for pid in ids if pid in by_id]

    async def get_cheapest(self, search_term: str, limit: int = 5) -> List[Product]:
        """Return the ``limit`` lowest-priced products for a search term, ascending."""
        result = await self.db.execute(
            select(Product)
            .where(Product.search_term == search_term)
            .order_by(Product.price.asc(), Product.last_seen_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().unique().all())

    async def get_historical_min_price(self, search_term: str) -> Optional[Decimal]:
        """Lowest price ever observed for a search term, across all sources.

        Returns:
            The minimum observed price, or None if nothing was observed yet
        """
        result = await self.db.execute(
            select(func.min(PriceObservation.price))
            .join(Product, PriceObservation.product_id == Product.id)
            .where(Product.search_term == search_term)
        )
        value = result.scalar_one_or_none()
        return Decimal(value) if value is not None else None

    async def get_price_history(
        self,
        product_id: UUID,
        since: Optional[datetime] = None,
    ) -> List[PriceObservation]:
        """Get price observations for a product, oldest first.

        Args:
            product_id: Product UUID
            since: Only return observations at or after this instant

        Raises:
            NotFoundError: If the product does not exist
        """
        product = await self.get_product_by_id(product_id)
        if product is None:
            raise NotFoundError("Product", str(product_id))

        query = select(PriceObservation).where(PriceObservation.product_id == product_id)
        if since is not None:
            query = query.where(PriceObservation.observed_at >= since)

        result = await self.db.execute(query.order_by(PriceObservation.observed_at.asc()))
        return list(result.scalars().all())
