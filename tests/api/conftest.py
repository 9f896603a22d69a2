"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from storefront.catalog.store import InMemoryCatalogStore, set_catalog_store
from storefront.main import app
from storefront.recommendation.history import InMemoryHistoryStore, set_history_store


@pytest.fixture
def client(catalog: InMemoryCatalogStore, history: InMemoryHistoryStore) -> TestClient:
    """Create test client over the fixture catalog."""
    set_catalog_store(catalog)
    set_history_store(history)
    return TestClient(app)
