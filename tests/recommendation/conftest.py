"""Fixtures for recommendation tests."""

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from storefront.catalog.store import InMemoryCatalogStore
from storefront.domain.entities import Interaction, InteractionAction
from storefront.infrastructure.config import Settings
from storefront.recommendation.engine import RecommendationEngine
from storefront.recommendation.history import InMemoryHistoryStore
from storefront.search.ranking import Ranker


@pytest.fixture
def engine(
    catalog: InMemoryCatalogStore,
    history: InMemoryHistoryStore,
    ranker: Ranker,
    config: Settings,
) -> RecommendationEngine:
    """Engine over the fixture catalog and an empty history."""
    return RecommendationEngine(catalog, history, ranker, config)


@pytest.fixture
def interact(history: InMemoryHistoryStore, now: datetime) -> Callable[..., Interaction]:
    """Record an interaction ``days`` before the frozen time."""

    def record(
        user_id: str,
        product_id: str,
        action: InteractionAction,
        days: float = 1.0,
        order_id: str | None = None,
    ) -> Interaction:
        interaction = Interaction(
            user_id=user_id,
            product_id=product_id,
            action=action,
            occurred_at=now - timedelta(days=days),
            order_id=order_id,
        )
        history.record_many([interaction])
        return interaction

    return record
