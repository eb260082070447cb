"""Tests for scrape orchestration across fake sources."""

from decimal import Decimal

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import FakeSources
from pricedrop.core.exceptions import (
    FetchError,
    InvalidSearchTermError,
    NoDataError,
    NoRelevantDataError,
    SourceInactiveError,
    UnsupportedSourceError,
)
from pricedrop.models import PriceObservation, Product
from pricedrop.scrapers.scraper_service import (
    ScraperService,
    normalize_search_term,
    parse_source_codes,
)
from pricedrop.services.source_registry import SourceRegistry

PHONE_X = [
    ("Phone X 128GB", 1500000, "https://a.example.com/1", "A"),
    ("Phone X Case", 30000, "https://a.example.com/2", "A"),
    ("Phone X 128GB", 1490000, "https://a.example.com/3", "A"),
]


def make_service(db: AsyncSession, fake_sources: FakeSources, registry: SourceRegistry) -> ScraperService:
    return ScraperService(db, adapter_factory=fake_sources.factory, source_registry=registry)


# ============================================================================
# TESTS: HELPERS
# ============================================================================

class TestHelpers:
    """Tests for term and source-code parsing."""

    def test_normalize_search_term(self):
        assert normalize_search_term("  Phone   X  ") == "phone x"

    @pytest.mark.parametrize("term", [None, "", "   "])
    def test_blank_term_rejected(self, term):
        with pytest.raises(InvalidSearchTermError):
            normalize_search_term(term)

    def test_parse_source_codes(self):
        assert parse_source_codes(None) is None
        assert parse_source_codes(" , ") is None
        assert parse_source_codes("Exito, alkosto") == ["exito", "alkosto"]


# ============================================================================
# TESTS: SINGLE SOURCE
# ============================================================================

class TestScrape:
    """Tests for ScraperService.scrape / scrape_raw / cheapest."""

    async def test_scrape_filters_dedups_and_persists(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", PHONE_X)
        service = make_service(test_db, fake_sources, source_registry)

        products = await service.scrape("phone x 128gb", "a")

        assert len(products) == 1
        assert products[0].price == Decimal("1490000")
        assert products[0].url == "https://a.example.com/3"
        assert products[0].source.code == "a"
        assert (await source_registry.get(test_db, "a")) is not None

    async def test_scrape_twice_upserts(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        first = await service.scrape("phone x", "a")
        second = await service.scrape("phone x", "a")

        assert first[0].id == second[0].id
        products = (await test_db.execute(select(func.count()).select_from(Product))).scalar_one()
        observations = (await test_db.execute(select(func.count()).select_from(PriceObservation))).scalar_one()
        assert products == 1
        assert observations == 2

    async def test_empty_result_raises_no_data_but_raw_returns_empty(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [])
        service = make_service(test_db, fake_sources, source_registry)

        with pytest.raises(NoDataError):
            await service.scrape("phone x", "a")

        assert await service.scrape_raw("phone x", "a") == []

    async def test_scrape_raw_skips_filter_and_persistence(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", PHONE_X)
        service = make_service(test_db, fake_sources, source_registry)

        listings = await service.scrape_raw("phone x 128gb", "a")

        assert len(listings) == 3
        count = (await test_db.execute(select(func.count()).select_from(Product))).scalar_one()
        assert count == 0

    async def test_irrelevant_listings_raise_no_relevant_data(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [("Cargador USB", 20000, "https://a.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        with pytest.raises(NoRelevantDataError):
            await service.scrape("phone x 128gb", "a")

    async def test_unusable_listings_are_dropped(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [("Phone X", 0, "https://a.example.com/1"), ("Phone X", 1000, "")])
        service = make_service(test_db, fake_sources, source_registry)

        with pytest.raises(NoRelevantDataError):
            await service.scrape("phone x", "a")

    async def test_unknown_source(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        service = make_service(test_db, fake_sources, source_registry)

        with pytest.raises(UnsupportedSourceError):
            await service.scrape("phone x", "nope")
        with pytest.raises(UnsupportedSourceError):
            await service.scrape_raw("phone x", "nope")

    async def test_fetch_error_propagates(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", httpx.ConnectError("connection refused"))
        service = make_service(test_db, fake_sources, source_registry)

        with pytest.raises(FetchError):
            await service.scrape("phone x", "a")

    async def test_inactive_source_refused(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        await service.scrape("phone x", "a")
        await source_registry.deactivate(test_db, "a")

        with pytest.raises(SourceInactiveError):
            await service.scrape("phone x", "a")
        assert fake_sources.calls("a") == ["phone x"]

    async def test_cheapest(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [("Phone X", 1200, "https://a.example.com/1")])
        fake_sources.add("b", [("Phone X", 900, "https://b.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        await service.scrape("phone x", "a")
        await service.scrape("phone x", "b")

        cheapest = await service.cheapest("phone x", limit=5)
        assert [(p.source.code, p.price) for p in cheapest] == [
            ("b", Decimal("900")),
            ("a", Decimal("1200")),
        ]
        assert len(await service.cheapest("phone x", limit=1)) == 1


# ============================================================================
# TESTS: MULTI SOURCE
# ============================================================================

class TestSearch:
    """Tests for ScraperService.search / scrape_source."""

    async def test_one_source_times_out(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        """Partial success: products from the healthy source plus an error annotation."""
        fake_sources.add("slow", httpx.ReadTimeout("timed out"))
        fake_sources.add("fast", [("Phone X", 1000, "https://fast.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        result = await service.search("Phone X")

        assert result.search_term == "phone x"
        assert [p.url for p in result.products] == ["https://fast.example.com/1"]
        assert [p.url for p in result.cheapest] == ["https://fast.example.com/1"]
        assert len(result.errors) == 1
        assert result.errors[0].source == "slow"
        assert result.errors[0].status == 502

    async def test_sources_visited_in_order_and_restricted(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])
        fake_sources.add("b", [("Phone X", 900, "https://b.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        result = await service.search("phone x", ["b"])

        assert [p.source.code for p in result.products] == ["b"]
        assert fake_sources.calls("a") == []

    async def test_unknown_code_rejected_before_any_fetch(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        with pytest.raises(UnsupportedSourceError):
            await service.search("phone x", ["a", "nope"])
        assert fake_sources.calls("a") == []

    async def test_blank_term_rejected(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        service = make_service(test_db, fake_sources, source_registry)
        with pytest.raises(InvalidSearchTermError):
            await service.search("  ")

    async def test_unexpected_error_annotated_as_500(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry, monkeypatch
    ):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])
        fake_sources.add("b", [("Phone X", 900, "https://b.example.com/1")])
        service = make_service(test_db, fake_sources, source_registry)

        def broken_apply(listings, search_term, price_quantile_floor=0.75):
            if listings and listings[0].source == "a":
                raise RuntimeError("boom")
            return listings

        monkeypatch.setattr(service.listing_filter, "apply", broken_apply)

        result = await service.search("phone x")

        assert [(e.source, e.status) for e in result.errors] == [("a", 500)]
        assert [p.source.code for p in result.products] == ["b"]

    async def test_scrape_source_reports_error_inline(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", [])
        service = make_service(test_db, fake_sources, source_registry)

        result = await service.scrape_source("phone x", "a")

        assert result.products == []
        assert result.error.status == 404

        unknown = await service.scrape_source("phone x", "nope")
        assert unknown.error.status == 400

    async def test_scrape_source_raw(
        self, test_db: AsyncSession, fake_sources: FakeSources, source_registry: SourceRegistry
    ):
        fake_sources.add("a", PHONE_X)
        service = make_service(test_db, fake_sources, source_registry)

        result = await service.scrape_source("phone x 128gb", "a", raw=True)

        assert result.error is None
        assert len(result.listings) == 3
