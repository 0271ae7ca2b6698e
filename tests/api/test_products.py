"""Tests for product API endpoints."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.infrastructure.memory_store import InMemoryDocumentStore

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def catalog(add_product, store: InMemoryDocumentStore) -> None:
    """A small catalog with flags, denominations and reviews."""
    add_product(
        "steam-001",
        name="Steam Gift Card",
        category="steam",
        hours=1,
        featured=True,
        popular=True,
        rating=4.8,
        reviewCount=2,
        denominations=[Decimal("20.00"), Decimal("50.00")],
        price=Decimal("20.00"),
        faqs=[{"question": "Region?", "answer": "Global"}],
    )
    add_product("steam-002", name="Steam Wallet Code", category="steam", hours=2, popular=True, rating=4.1)
    add_product(
        "steam-003",
        name="Steam Sale Card",
        category="steam",
        hours=3,
        sale=True,
        price=Decimal("15.00"),
        originalPrice=Decimal("20.00"),
    )
    add_product("xbox-001", name="Xbox Card", category="xbox", hours=4, featured=True)

    for index, rating in enumerate([5, 4]):
        store.put(
            "reviews",
            f"steam-001-r{index}",
            {
                "productId": "steam-001",
                "userId": f"user-{index}",
                "userName": "Jordan",
                "rating": rating,
                "date": BASE_TIME + timedelta(days=index + 1),
                "title": "Fast",
                "content": "Delivered in a minute.",
                "helpful": 3,
            },
        )


@pytest.mark.usefixtures("catalog")
class TestGetProduct:
    """Tests for GET /products/{product_id}."""

    def test_get_product(self, client: TestClient) -> None:
        response = client.get("/products/steam-001")
        assert response.status_code == 200

        data = response.json()
        assert data["id"] == "steam-001"
        assert data["category"] == "steam"
        assert Decimal(data["price"]) == Decimal("20.00")
        assert [Decimal(d) for d in data["denominations"]] == [Decimal("20.00"), Decimal("50.00")]
        assert data["faqs"] == [{"question": "Region?", "answer": "Global"}]
        assert data["featured"] is True
        assert data["original_price"] is None

    def test_discount_percent(self, client: TestClient) -> None:
        data = client.get("/products/steam-003").json()
        assert data["discount_percent"] == 25

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/products/missing")
        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "PRODUCT_NOT_FOUND"
        assert data["request_id"]

    def test_malformed_record(self, client: TestClient, store: InMemoryDocumentStore) -> None:
        store.put("products", "broken", {"name": "Broken", "category": "steam"})
        response = client.get("/products/broken")
        assert response.status_code == 500
        assert response.json()["error_code"] == "INVALID_RECORD"

    def test_store_unavailable(self, client: TestClient, store: InMemoryDocumentStore) -> None:
        """Store failures are retryable 503s."""
        store.set_available(False)
        response = client.get("/products/steam-001")
        assert response.status_code == 503
        assert response.headers["Retry-After"] == "7"
        assert response.json()["error_code"] == "STORE_UNAVAILABLE"

    def test_request_id_echoed(self, client: TestClient) -> None:
        response = client.get("/products/steam-001", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_unexpected_error_carries_request_id(
        self, client: TestClient, store: InMemoryDocumentStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Unhandled errors become INTERNAL_ERROR and keep the correlation ID."""

        async def broken_get(collection: str, doc_id: str) -> None:
            raise RuntimeError("driver bug")

        monkeypatch.setattr(store, "get", broken_get)
        response = client.get("/products/steam-001", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.headers["X-Request-ID"] == "req-500"
        data = response.json()
        assert data["error_code"] == "INTERNAL_ERROR"
        assert data["request_id"] == "req-500"


@pytest.mark.usefixtures("catalog")
class TestListings:
    """Tests for featured, popular and sale listings."""

    def test_featured(self, client: TestClient) -> None:
        data = client.get("/products/featured").json()
        assert [p["id"] for p in data["items"]] == ["xbox-001", "steam-001"]
        assert data["count"] == 2

    def test_popular(self, client: TestClient) -> None:
        data = client.get("/products/popular").json()
        assert [p["id"] for p in data["items"]] == ["steam-001", "steam-002"]

    def test_sale(self, client: TestClient) -> None:
        data = client.get("/products/sale").json()
        assert [p["id"] for p in data["items"]] == ["steam-003"]

    def test_limit(self, client: TestClient) -> None:
        data = client.get("/products/featured", params={"limit": 1}).json()
        assert data["count"] == 1

    def test_invalid_limit(self, client: TestClient) -> None:
        assert client.get("/products/featured", params={"limit": 0}).status_code == 422


@pytest.mark.usefixtures("catalog")
class TestSearch:
    """Tests for GET /products/search."""

    def test_search(self, client: TestClient) -> None:
        data = client.get("/products/search", params={"q": "STEAM"}).json()
        assert [p["id"] for p in data["items"]] == ["steam-001", "steam-002", "steam-003"]

    def test_search_limit(self, client: TestClient) -> None:
        data = client.get("/products/search", params={"q": "card", "limit": 2}).json()
        assert [p["id"] for p in data["items"]] == ["steam-001", "steam-003"]

    def test_search_requires_term(self, client: TestClient) -> None:
        assert client.get("/products/search").status_code == 422


@pytest.mark.usefixtures("catalog")
class TestRelatedAndReviews:
    """Tests for related products and reviews."""

    def test_related(self, client: TestClient) -> None:
        data = client.get("/products/steam-001/related").json()
        assert [p["id"] for p in data["items"]] == ["steam-003", "steam-002"]

    def test_related_missing_product(self, client: TestClient) -> None:
        assert client.get("/products/missing/related").status_code == 404

    def test_reviews(self, client: TestClient) -> None:
        data = client.get("/products/steam-001/reviews").json()
        assert [r["id"] for r in data["items"]] == ["steam-001-r1", "steam-001-r0"]
        assert data["summary"]["average"] == 4.5
        assert data["summary"]["total"] == 2
        assert [b["stars"] for b in data["summary"]["distribution"]] == [5, 4, 3, 2, 1]

    def test_no_reviews(self, client: TestClient) -> None:
        data = client.get("/products/xbox-001/reviews").json()
        assert data == {"items": [], "summary": None}
