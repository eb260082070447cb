"""HTTP API tests against the FastAPI app with fake sources."""

from decimal import Decimal
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

from conftest import FakeSources
from pricedrop.dependencies import get_db, get_factory, get_registry
from pricedrop.main import app
from pricedrop.services.source_registry import SourceRegistry


# ============================================================================
# FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def client(session_factory, fake_sources: FakeSources, source_registry: SourceRegistry):
    """ASGI client with the database, adapters and registry overridden."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_factory] = lambda: fake_sources.factory
    app.dependency_overrides[get_registry] = lambda: source_registry

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================================================
# TESTS: SCRAPER ENDPOINTS
# ============================================================================

class TestScraperApi:
    """Tests for /api/v1/scraper."""

    async def test_search_partial_success(self, client: httpx.AsyncClient, fake_sources: FakeSources):
        fake_sources.add("slow", httpx.ReadTimeout("timed out"))
        fake_sources.add("fast", [("Phone X", 1000, "https://fast.example.com/1")])

        response = await client.get("/api/v1/scraper/search", params={"query": "Phone X"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        data = body["data"]
        assert data["search_term"] == "phone x"
        assert [p["source"] for p in data["products"]] == ["fast"]
        assert Decimal(str(data["cheapest"][0]["price"])) == Decimal("1000")
        assert data["errors"] == [
            {"source": "slow", "status": 502, "message": data["errors"][0]["message"]}
        ]

    async def test_search_requires_query(self, client: httpx.AsyncClient, fake_sources: FakeSources):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])

        response = await client.get("/api/v1/scraper/search", params={"query": "   "})

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == "error"
        assert body["error"]["code"] == "InvalidSearchTermError"

    async def test_search_rejects_unknown_source(self, client: httpx.AsyncClient, fake_sources: FakeSources):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])

        response = await client.get(
            "/api/v1/scraper/search", params={"query": "phone x", "sources": "a,nope"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UnsupportedSourceError"
        assert fake_sources.calls("a") == []

    async def test_single_source_error_inline(self, client: httpx.AsyncClient, fake_sources: FakeSources):
        fake_sources.add("a", [])

        response = await client.get("/api/v1/scraper/sources/a/search", params={"query": "phone x"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["source"] == "a"
        assert data["data"] == []
        assert data["error"]["status"] == 404

    async def test_raw_search(self, client: httpx.AsyncClient, fake_sources: FakeSources):
        fake_sources.add(
            "a",
            [
                ("Phone X", 1000, "https://a.example.com/1"),
                ("Phone X Case", 20, "https://a.example.com/2"),
            ],
        )

        response = await client.get("/api/v1/scraper/sources/a/raw-search", params={"query": "phone x"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["error"] is None
        assert {item["url"] for item in data["data"]} == {
            "https://a.example.com/1",
            "https://a.example.com/2",
        }


# ============================================================================
# TESTS: PRODUCT ENDPOINTS
# ============================================================================

class TestProductsApi:
    """Tests for /api/v1/products."""

    async def test_cheapest_and_history(self, client: httpx.AsyncClient, fake_sources: FakeSources):
        fake_sources.add(
            "a",
            [("Phone X", 1200, "https://a.example.com/1")],
            [("Phone X", 1100, "https://a.example.com/1")],
        )
        fake_sources.add("b", [("Phone X", 1150, "https://b.example.com/1")])

        await client.get("/api/v1/scraper/search", params={"query": "phone x"})
        await client.get("/api/v1/scraper/search", params={"query": "phone x", "sources": "a"})

        response = await client.get("/api/v1/products/cheapest", params={"query": "Phone X", "limit": 5})
        assert response.status_code == 200
        products = response.json()["data"]
        assert [p["source"] for p in products] == ["a", "b"]
        assert Decimal(str(products[0]["price"])) == Decimal("1100")

        history = await client.get(f"/api/v1/products/{products[0]['id']}/history")
        assert history.status_code == 200
        assert [Decimal(str(o["price"])) for o in history.json()["data"]] == [
            Decimal("1200"),
            Decimal("1100"),
        ]

    async def test_history_unknown_product(self, client: httpx.AsyncClient):
        response = await client.get(f"/api/v1/products/{uuid4()}/history")
        assert response.status_code == 404


# ============================================================================
# TESTS: ALERT ENDPOINTS
# ============================================================================

class TestAlertsApi:
    """Tests for /api/v1/alerts."""

    async def test_create_list_delete(self, client: httpx.AsyncClient):
        response = await client.post(
            "/api/v1/alerts",
            json={"search_term": "  Phone X ", "price_threshold": "1000000", "email": "ana@example.com"},
        )
        assert response.status_code == 201
        alert = response.json()["data"]
        assert alert["search_term"] == "phone x"
        assert alert["is_active"] is True

        listed = await client.get("/api/v1/alerts")
        assert [a["id"] for a in listed.json()["data"]] == [alert["id"]]

        deleted = await client.delete(f"/api/v1/alerts/{alert['id']}")
        assert deleted.status_code == 200

        listed = await client.get("/api/v1/alerts")
        assert listed.json()["data"] == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"search_term": "phone x", "price_threshold": "0", "email": "ana@example.com"},
            {"search_term": "phone x", "price_threshold": "-5", "email": "ana@example.com"},
            {"search_term": "phone x", "price_threshold": "100", "email": "not-an-email"},
            {"search_term": "", "price_threshold": "100", "email": "ana@example.com"},
        ],
    )
    async def test_create_validation(self, client: httpx.AsyncClient, payload):
        response = await client.post("/api/v1/alerts", json=payload)
        assert response.status_code == 422

    async def test_delete_unknown_alert(self, client: httpx.AsyncClient):
        response = await client.delete(f"/api/v1/alerts/{uuid4()}")
        assert response.status_code == 404


# ============================================================================
# TESTS: SOURCE AND HEALTH ENDPOINTS
# ============================================================================

class TestSourcesApi:
    """Tests for /api/v1/sources and /api/v1/health."""

    async def test_list_and_deactivate(self, client: httpx.AsyncClient, fake_sources: FakeSources):
        fake_sources.add("a", [("Phone X", 1000, "https://a.example.com/1")])
        fake_sources.add("b", [("Phone X", 900, "https://b.example.com/1")])

        listed = await client.get("/api/v1/sources")
        assert [(s["code"], s["is_active"], s["id"]) for s in listed.json()["data"]] == [
            ("a", True, None),
            ("b", True, None),
        ]

        response = await client.post("/api/v1/sources/a/deactivate")
        assert response.status_code == 200
        assert response.json()["data"] == {"code": "a", "is_active": False}

        search = await client.get("/api/v1/scraper/search", params={"query": "phone x"})
        errors = search.json()["data"]["errors"]
        assert [(e["source"], e["status"]) for e in errors] == [("a", 409)]
        assert fake_sources.calls("a") == []

    async def test_deactivate_unknown_source(self, client: httpx.AsyncClient):
        response = await client.post("/api/v1/sources/nope/deactivate")
        assert response.status_code == 400

    async def test_health(self, client: httpx.AsyncClient):
        response = await client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["database"] == "ok"
        assert response.json()["scheduler"] == "stopped"
