"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

from decimal import Decimal
from typing import Dict, List, Sequence, Tuple, Type, Union

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from pricedrop.models import Base
from pricedrop.scrapers.base import RawListing, SourceAdapter, SourceConfig
from pricedrop.scrapers.factory import AdapterFactory
from pricedrop.services.source_registry import SourceRegistry

# (name, price, url) or (name, price, url, seller)
ListingRow = Tuple
Step = Union[List[ListingRow], Exception]


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture
async def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(session_factory):
    """Create an in-memory SQLite database session for testing."""
    async with session_factory() as session:
        yield session


# ============================================================================
# FAKE SOURCES
# ============================================================================

def make_listing(
    name: str,
    price,
    url: str,
    source: str = "fake",
    seller: str = None,
    search_term: str = None,
) -> RawListing:
    """Build a RawListing with a Decimal price."""
    return RawListing(
        name=name,
        price=Decimal(str(price)),
        url=url,
        source=source,
        seller=seller,
        search_term=search_term,
    )


class FakeAdapter(SourceAdapter):
    """Adapter replaying scripted steps instead of fetching.

    Each call consumes the next step; the last step repeats. A step is a list
    of listing tuples or an exception to raise from inside the fetch.
    """

    steps: List[Step] = []
    calls: List[str] = []

    async def _fetch_listings(self, search_term: str) -> List[RawListing]:
        cls = type(self)
        cls.calls.append(search_term)
        if not cls.steps:
            return []

        step = cls.steps.pop(0) if len(cls.steps) > 1 else cls.steps[0]
        if isinstance(step, Exception):
            raise step

        listings = []
        for row in step:
            name, price, url = row[:3]
            seller = row[3] if len(row) > 3 else None
            listings.append(
                self._make_listing(search_term, name=name, price=Decimal(str(price)), url=url, seller=seller)
            )
        return listings


class FakeSources:
    """An AdapterFactory populated with scripted fake adapters."""

    def __init__(self):
        self.factory = AdapterFactory()
        self.adapters: Dict[str, Type[FakeAdapter]] = {}

    def add(self, code: str, *steps: Step, price_quantile: float = 0.75) -> Type[FakeAdapter]:
        adapter_class = type(
            f"FakeAdapter_{code}",
            (FakeAdapter,),
            {"steps": list(steps), "calls": []},
        )
        config = SourceConfig(
            code=code,
            name=code.title(),
            base_url=f"https://{code}.example.com/search?q=",
            scrape_type="api",
            price_quantile=price_quantile,
        )
        self.factory.register_adapter(code, adapter_class, config)
        self.adapters[code] = adapter_class
        return adapter_class

    def calls(self, code: str) -> Sequence[str]:
        return self.adapters[code].calls


@pytest.fixture
def fake_sources() -> FakeSources:
    return FakeSources()


@pytest.fixture
def source_registry() -> SourceRegistry:
    """A fresh registry so cached rows never leak between databases."""
    return SourceRegistry()
