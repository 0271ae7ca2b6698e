"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from storefront.infrastructure.config import Settings
from storefront.infrastructure.memory_store import InMemoryDocumentStore
from storefront.main import create_app


@pytest.fixture
def settings() -> Settings:
    """Create settings for an unseeded in-memory catalog."""
    return Settings(
        store_backend="memory",
        seed_on_startup=False,
        store_retry_after_seconds=7,
        log_level="WARNING",
    )


@pytest.fixture
def client(store: InMemoryDocumentStore, settings: Settings) -> TestClient:
    """Create test client over the shared in-memory store."""
    return TestClient(create_app(store=store, settings=settings))
