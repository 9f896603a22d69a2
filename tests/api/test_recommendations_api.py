"""Tests for recommendation endpoints."""

from datetime import datetime, timezone

from fastapi.testclient import TestClient

from storefront.application.tracking_service import get_event_log
from storefront.domain.entities import Interaction, InteractionAction
from storefront.domain.exceptions import HistoryUnavailableError
from storefront.recommendation.history import InMemoryHistoryStore, set_history_store


class DownHistory(InMemoryHistoryStore):
    """History source whose per-user reads always fail."""

    async def interactions_for_user(self, user_id, actions=None, limit=None):
        raise HistoryUnavailableError("connection refused", operation="interactions_for_user")


class TestGetRecommendations:
    """Tests for GET /recommendations/{type}."""

    def test_similar(self, client: TestClient) -> None:
        """Similar serums never include the subject."""
        response = client.get("/recommendations/similar", params={"productId": "srm-1"})
        assert response.status_code == 200
        data = response.json()

        assert {p["id"] for p in data["products"]} == {"srm-2", "tnr-1"}
        assert data["type"] == "similar"
        assert data["reason"] == "유사한 상품"
        assert data["basedOn"] == "product:srm-1"
        assert data["fallbackPath"] == []

    def test_bestsellers_with_limit_and_exclude(self, client: TestClient) -> None:
        """Exclusions are removed before truncation."""
        response = client.get(
            "/recommendations/bestsellers", params={"limit": "2", "exclude": "srm-2, edt-1"}
        )
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["products"]] == ["cln-1", "srm-1"]

    def test_personalized_fallback_is_reported(self, client: TestClient) -> None:
        """A user without history gets a fallback result, not an error."""
        response = client.get("/recommendations/personalized", params={"userId": "new-user"})
        assert response.status_code == 200
        data = response.json()
        assert data["fallbackPath"][0] == "personalized"
        assert data["type"] != "personalized"
        assert data["products"]

    def test_garbage_limit_uses_default(self, client: TestClient) -> None:
        """Non-numeric limits fall back to the default."""
        response = client.get("/recommendations/category", params={"limit": "lots"})
        assert response.status_code == 200
        assert len(response.json()["products"]) == 7

    def test_unknown_type_is_404(self, client: TestClient) -> None:
        """Unknown types are rejected with the standard error body."""
        response = client.get("/recommendations/cheapest")
        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "UNKNOWN_RECOMMENDATION_TYPE"
        assert data["details"]["type"] == "cheapest"
        assert "skin-type" in data["details"]["known_types"]

    def test_purchase_history(self, client: TestClient, history: InMemoryHistoryStore) -> None:
        """Purchased products are never recommended back."""
        history.record_many(
            [
                Interaction(
                    "u1",
                    "srm-1",
                    InteractionAction.PURCHASE,
                    occurred_at=datetime.now(timezone.utc),
                    order_id="o1",
                )
            ]
        )
        response = client.get("/recommendations/purchase-history", params={"userId": "u1"})
        assert response.status_code == 200
        data = response.json()
        ids = {p["id"] for p in data["products"]}
        assert ids == {"srm-2", "cln-1", "tnr-1"}
        assert data["type"] == "purchase-history"

    def test_history_down_is_503(self, client: TestClient) -> None:
        """Unavailable history is not reported as a user without history."""
        set_history_store(DownHistory())
        response = client.get("/recommendations/personalized", params={"userId": "u1"})

        assert response.status_code == 503
        data = response.json()
        assert data["error_code"] == "DATA_SOURCE_UNAVAILABLE"
        assert data["details"]["source"] == "history"
        assert data["details"]["operation"] == "interactions_for_user"


class TestTracking:
    """Tests for the tracking endpoints."""

    def test_track_impression(self, client: TestClient) -> None:
        """Impressions are accepted and recorded."""
        response = client.post(
            "/recommendations/track",
            json={"recommendationType": "trending", "productIds": ["srm-1", "tnr-1"], "userId": "u1"},
        )
        assert response.status_code == 202
        assert response.json() == {"status": "accepted"}

        impression = get_event_log().impressions[0]
        assert impression.product_ids == ("srm-1", "tnr-1")
        assert impression.user_id == "u1"

    def test_track_interaction(self, client: TestClient, history: InMemoryHistoryStore) -> None:
        """Interactions become history."""
        response = client.post(
            "/recommendations/track-interaction",
            json={
                "productId": "lip-1",
                "action": "click",
                "recommendationType": "similar",
                "userId": "u1",
            },
        )
        assert response.status_code == 202
        assert len(history) == 1

    def test_bad_action_still_accepted(self, client: TestClient, history: InMemoryHistoryStore) -> None:
        """Tracking failures never reach the caller."""
        response = client.post(
            "/recommendations/track-interaction",
            json={"productId": "lip-1", "action": "teleport", "userId": "u1"},
        )
        assert response.status_code == 202
        assert len(history) == 0

    def test_missing_fields_rejected(self, client: TestClient) -> None:
        """Malformed tracking bodies fail validation."""
        response = client.post("/recommendations/track-interaction", json={"action": "view"})
        assert response.status_code == 422
