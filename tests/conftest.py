"""Shared fixtures for catalog tests."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest

from storefront.catalog.reviews import ReviewService
from storefront.catalog.service import CatalogService
from storefront.infrastructure.memory_store import InMemoryDocumentStore

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Create an empty in-memory store."""
    return InMemoryDocumentStore()


@pytest.fixture
def service(store: InMemoryDocumentStore) -> CatalogService:
    """Create catalog service over the store."""
    return CatalogService(store)


@pytest.fixture
def review_service(store: InMemoryDocumentStore) -> ReviewService:
    """Create review service over the store."""
    return ReviewService(store)


@pytest.fixture
def product_data() -> Callable[..., dict[str, Any]]:
    """Build product document fields with sensible defaults."""

    def _build(
        name: str = "Steam Gift Card",
        category: str = "games",
        hours: int = 0,
        **fields: Any,
    ) -> dict[str, Any]:
        created_at = BASE_TIME + timedelta(hours=hours)
        data: dict[str, Any] = {
            "name": name,
            "description": "Digital code delivered by email.",
            "price": Decimal("10.00"),
            "image": "https://cdn.example.com/card.png",
            "category": category,
            "popular": False,
            "sale": False,
            "featured": False,
            "createdAt": created_at,
            "updatedAt": created_at,
        }
        data.update(fields)
        return data

    return _build


@pytest.fixture
def add_product(
    store: InMemoryDocumentStore,
    product_data: Callable[..., dict[str, Any]],
) -> Callable[..., str]:
    """Store a product document and return its ID."""

    def _add(product_id: str, **fields: Any) -> str:
        store.put("products", product_id, product_data(**fields))
        return product_id

    return _add
