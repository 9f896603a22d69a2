"""Recommendation module.

Typed recommendation strategies, the fallback-chain engine and the user
history source they read.
"""

from storefront.recommendation.engine import FALLBACKS, RecommendationEngine, resolve_type
from storefront.recommendation.history import (
    HistorySource,
    InMemoryHistoryStore,
    get_history_store,
    set_history_store,
)
from storefront.recommendation.strategies import Generation, RecommendationStrategy

__all__ = [
    "FALLBACKS",
    "Generation",
    "HistorySource",
    "InMemoryHistoryStore",
    "RecommendationEngine",
    "RecommendationStrategy",
    "get_history_store",
    "resolve_type",
    "set_history_store",
]
