"""Tests for API middleware."""

import pytest
from fastapi.testclient import TestClient

from storefront.catalog.store import set_catalog_store
from storefront.main import app


class BrokenCatalog:
    """Catalog raising an unexpected error."""

    async def find_products(self, clauses=()):
        raise RuntimeError("boom")

    async def get_product(self, product_id):
        raise RuntimeError("boom")

    async def get_products(self, product_ids):
        raise RuntimeError("boom")


@pytest.fixture
def lenient_client(client: TestClient) -> TestClient:
    """Client that returns server errors instead of raising them."""
    return TestClient(app, raise_server_exceptions=False)


class TestRequestContextMiddleware:
    """Tests for request ID correlation middleware."""

    def test_generates_request_id_if_not_provided(self, client: TestClient) -> None:
        """Should generate request ID if not in request headers."""
        response = client.get("/health")
        assert response.status_code == 200
        assert "X-Request-ID" in response.headers
        # UUID format
        assert len(response.headers["X-Request-ID"]) == 36

    def test_uses_provided_request_id(self, client: TestClient) -> None:
        """Should use request ID from request headers."""
        custom_id = "custom-request-id-12345"
        response = client.get("/search", headers={"X-Request-ID": custom_id})
        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == custom_id

    def test_error_body_carries_request_id(self, client: TestClient) -> None:
        """Error responses echo the request ID."""
        response = client.get("/recommendations/nope", headers={"X-Request-ID": "req-42"})
        assert response.status_code == 404
        assert response.json()["request_id"] == "req-42"


class TestErrorHandlerMiddleware:
    """Tests for unexpected failures."""

    def test_unexpected_error_is_500(self, lenient_client: TestClient) -> None:
        """Unexpected exceptions become the standard internal error body."""
        set_catalog_store(BrokenCatalog())
        response = lenient_client.get("/search", params={"q": "serum"})

        assert response.status_code == 500
        data = response.json()
        assert data["error_code"] == "INTERNAL_ERROR"
        assert "boom" not in data["message"]

    def test_validation_errors_use_envelope(self, client: TestClient) -> None:
        """Malformed requests get the standard body with field details."""
        response = client.post("/recommendations/track-interaction", json={})

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["details"]

    def test_unknown_route_uses_envelope(self, client: TestClient) -> None:
        """Unknown paths return 404 in the standard body."""
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error_code"] == "ERROR"
