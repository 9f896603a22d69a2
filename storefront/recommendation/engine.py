"""Recommendation engine.

Dispatches a request to its strategy and walks the fallback chain until
a stage yields candidates that survive the exclusion set. Missing
signals (no history, no declared skin type, no co-purchases) are never
errors.
"""

from dataclasses import replace

import structlog

from storefront.catalog.store import CatalogStore
from storefront.domain.entities import InteractionAction
from storefront.domain.exceptions import UnknownRecommendationTypeError
from storefront.domain.value_objects import (
    RecommendationRequest,
    RecommendationResult,
    RecommendationType,
)
from storefront.infrastructure.config import Settings
from storefront.recommendation.history import HistorySource
from storefront.recommendation.strategies import (
    STRATEGY_CLASSES,
    RecommendationStrategy,
    StrategyContext,
)
from storefront.search.filters import SkinTypeMatcher
from storefront.search.pagination import paginate
from storefront.search.ranking import Ranker

logger = structlog.get_logger()

# Next stage for each type; types not listed are terminal.
FALLBACKS: dict[RecommendationType, RecommendationType] = {
    RecommendationType.PERSONALIZED: RecommendationType.TRENDING,
    RecommendationType.SKIN_TYPE: RecommendationType.TRENDING,
    RecommendationType.BROWSING_HISTORY: RecommendationType.TRENDING,
    RecommendationType.PURCHASE_HISTORY: RecommendationType.TRENDING,
    RecommendationType.SIMILAR: RecommendationType.TRENDING,
    RecommendationType.FREQUENTLY_BOUGHT_TOGETHER: RecommendationType.COMPLEMENTARY,
    RecommendationType.COMPLEMENTARY: RecommendationType.TRENDING,
    RecommendationType.TRENDING: RecommendationType.CATEGORY,
}

# Types whose output never repeats what the user already bought.
OWNED_EXCLUDING_TYPES = frozenset(
    {
        RecommendationType.PERSONALIZED,
        RecommendationType.BROWSING_HISTORY,
        RecommendationType.PURCHASE_HISTORY,
    }
)

# Types anchored on a subject product, which is never recommended back.
PRODUCT_ANCHORED_TYPES = frozenset(
    {
        RecommendationType.SIMILAR,
        RecommendationType.COMPLEMENTARY,
        RecommendationType.FREQUENTLY_BOUGHT_TOGETHER,
    }
)


def resolve_type(type_tag: str) -> RecommendationType:
    """Parse a recommendation type tag.

    Args:
        type_tag: Tag such as "skin-type".

    Returns:
        Recommendation type.

    Raises:
        UnknownRecommendationTypeError: If the tag is not a known type.
    """
    try:
        return RecommendationType(type_tag.strip().lower())
    except ValueError:
        raise UnknownRecommendationTypeError(
            type_tag, [t.value for t in RecommendationType]
        ) from None


class RecommendationEngine:
    """Dispatcher over the closed set of recommendation strategies.

    Example usage:
        engine = RecommendationEngine(catalog, history, ranker, settings)
        result = await engine.recommend(
            RecommendationRequest(type=RecommendationType.SIMILAR, product_id="prd-srm-001")
        )
    """

    def __init__(
        self,
        catalog: CatalogStore,
        history: HistorySource,
        ranker: Ranker,
        config: Settings,
    ) -> None:
        """Initialize engine.

        Args:
            catalog: Catalog store.
            history: User history source.
            ranker: Ranker providing popularity/recency primitives and the clock.
            config: Application settings.
        """
        self.history = history
        self.config = config
        context = StrategyContext(
            catalog=catalog,
            history=history,
            ranker=ranker,
            skin_types=SkinTypeMatcher(config.skin_type_ingredients),
            config=config,
        )
        self.strategies: dict[RecommendationType, RecommendationStrategy] = {
            type_: cls(context) for type_, cls in STRATEGY_CLASSES.items()
        }

    def clamp_limit(self, limit: int) -> int:
        """Clamp a requested count to [1, recommendation_max_limit]."""
        return min(max(1, limit), self.config.recommendation_max_limit)

    async def exclusions(self, request: RecommendationRequest) -> frozenset[str]:
        """Caller exclusions plus automatic ones.

        Args:
            request: Recommendation request.

        Returns:
            Product ids that must not appear in the output.
        """
        excluded = set(request.exclude)
        if request.type in PRODUCT_ANCHORED_TYPES and request.product_id:
            excluded.add(request.product_id)
        if request.type in OWNED_EXCLUDING_TYPES and request.user_id:
            purchases = await self.history.interactions_for_user(
                request.user_id, actions=[InteractionAction.PURCHASE]
            )
            excluded.update(i.product_id for i in purchases)
        return frozenset(excluded)

    async def recommend(self, request: RecommendationRequest) -> RecommendationResult:
        """Produce recommendations, falling back when a stage has no signal.

        Args:
            request: Recommendation request.

        Returns:
            Result naming the type that produced the candidates and the
            fallback path taken. Empty only when every stage is empty.
        """
        excluded = await self.exclusions(request)
        limit = self.clamp_limit(request.limit)

        stage = request
        path: list[RecommendationType] = []
        visited: set[RecommendationType] = set()

        while True:
            visited.add(stage.type)
            generation = await self.strategies[stage.type].generate(stage)
            candidates = [c for c in generation.candidates if c.product_id not in excluded]
            if candidates:
                break

            next_type = FALLBACKS.get(stage.type)
            if next_type is None or next_type in visited:
                break

            logger.info(
                "Recommendation fallback",
                requested_type=request.type.value,
                from_type=stage.type.value,
                to_type=next_type.value,
            )
            path.append(stage.type)
            stage = replace(
                stage,
                type=next_type,
                category=generation.fallback_category or stage.category,
            )

        page = paginate(candidates, page=1, page_size=limit)

        return RecommendationResult(
            requested_type=request.type,
            type=stage.type,
            candidates=page.items,
            reason=generation.reason,
            based_on=generation.based_on,
            confidence=generation.confidence if candidates else None,
            fallback_path=tuple(path),
        )
