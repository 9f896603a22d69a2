"""Recommendation strategies.

Each strategy gathers its own signal and scores candidates with the
ranker's popularity and recency primitives. A strategy that finds no
signal returns an empty generation; the engine then walks the fallback
chain.
"""

import math
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from storefront.catalog.clauses import Clause, FieldEquals
from storefront.catalog.store import CatalogStore
from storefront.domain.entities import (
    ACTION_WEIGHTS,
    BROWSING_ACTIONS,
    COMMITMENT_ACTIONS,
    Interaction,
    InteractionAction,
    Product,
)
from storefront.domain.value_objects import (
    Query,
    RankedCandidate,
    RecommendationRequest,
    RecommendationType,
    SortMode,
)
from storefront.infrastructure.config import Settings
from storefront.recommendation.history import HistorySource
from storefront.search.filters import SkinTypeMatcher
from storefront.search.ranking import Ranker

REASONS: dict[RecommendationType, str] = {
    RecommendationType.PERSONALIZED: "개인 맞춤 추천",
    RecommendationType.SIMILAR: "유사한 상품",
    RecommendationType.TRENDING: "인기 상품",
    RecommendationType.SKIN_TYPE: "피부 타입별 추천",
    RecommendationType.BROWSING_HISTORY: "최근 관심 상품 기반",
    RecommendationType.PURCHASE_HISTORY: "구매 이력 기반",
    RecommendationType.COMPLEMENTARY: "함께 사용하면 좋은 상품",
    RecommendationType.FREQUENTLY_BOUGHT_TOGETHER: "함께 구매한 상품",
    RecommendationType.CATEGORY: "카테고리 추천",
    RecommendationType.NEW_ARRIVALS: "신상품",
    RecommendationType.BESTSELLERS: "베스트셀러",
}

# Bonus for products that declare the skin type over ingredient-only matches.
DECLARED_SKIN_TYPE_BONUS = 0.5
SAME_BRAND_BONUS = 0.2
SAME_SUB_CATEGORY_MATCH = 1.0
SAME_CATEGORY_MATCH = 0.5


@dataclass
class Generation:
    """Candidates produced by one strategy.

    Attributes:
        candidates: Ranked candidates (empty means "no signal").
        reason: Human-readable reason.
        based_on: Signal the candidates are based on.
        confidence: Signal strength (0..1).
        fallback_category: Category the next fallback stage should use.
    """

    candidates: list[RankedCandidate] = field(default_factory=list)
    reason: str | None = None
    based_on: str | None = None
    confidence: float | None = None
    fallback_category: str | None = None


@dataclass
class StrategyContext:
    """Collaborators shared by every strategy."""

    catalog: CatalogStore
    history: HistorySource
    ranker: Ranker
    skin_types: SkinTypeMatcher
    config: Settings

    def now(self) -> datetime:
        return self.ranker.clock()


class RecommendationStrategy(ABC):
    """Base class for recommendation strategies."""

    type: RecommendationType

    def __init__(self, context: StrategyContext) -> None:
        self.context = context
        self.catalog = context.catalog
        self.history = context.history
        self.ranker = context.ranker
        self.config = context.config

    @abstractmethod
    async def generate(self, request: RecommendationRequest) -> Generation:
        """Produce ranked candidates for the request."""

    def result(
        self,
        candidates: list[RankedCandidate],
        based_on: str | None = None,
        confidence: float | None = None,
        fallback_category: str | None = None,
    ) -> Generation:
        return Generation(
            candidates=candidates,
            reason=REASONS[self.type],
            based_on=based_on,
            confidence=round(confidence, 3) if confidence is not None else None,
            fallback_category=fallback_category,
        )

    async def products_in(self, category: str | None) -> list[Product]:
        """Active products, optionally limited to one category."""
        clauses: list[Clause] = []
        if category:
            clauses.append(FieldEquals("category", category))
        return await self.catalog.find_products(clauses)


# ============================================================================
# Catalog-wide Strategies
# ============================================================================


class TrendingStrategy(RecommendationStrategy):
    """Products published or interacted with inside the trending window.

    Scored by interaction velocity: weighted interactions in the window
    divided by the days the product has been live within it, so old
    products with large lifetime totals do not dominate.
    """

    type = RecommendationType.TRENDING

    async def generate(self, request: RecommendationRequest) -> Generation:
        now = self.context.now()
        window_days = self.config.trending_window_days
        since = now - timedelta(days=window_days)

        weighted: Counter[str] = Counter()
        for interaction in await self.history.interactions_since(since):
            weighted[interaction.product_id] += ACTION_WEIGHTS.get(interaction.action, 0.0)

        scored = []
        for product in await self.products_in(request.category):
            recent = product.reference_time >= since
            if not recent and product.id not in weighted:
                continue
            age_days = (now - product.reference_time).total_seconds() / 86400
            live_days = min(max(age_days, 1.0), float(window_days))
            velocity = weighted.get(product.id, 0.0) / live_days
            score = velocity + self.config.trending_popularity_weight * self.ranker.popularity(
                product
            )
            scored.append((product, score))

        total = sum(weighted.values())
        return self.result(
            self.ranker.rank_by_score(scored),
            based_on=f"최근 {window_days}일 인기도",
            confidence=min(1.0, 0.3 + total / 100),
            fallback_category=request.category,
        )


class CategoryStrategy(RecommendationStrategy):
    """Every product in the category, ordered by browse relevance.

    Without a category the whole catalog is used.
    """

    type = RecommendationType.CATEGORY

    async def generate(self, request: RecommendationRequest) -> Generation:
        products = await self.products_in(request.category)
        return self.result(
            self.ranker.rank(products, SortMode.RELEVANCE, Query()),
            based_on=request.category or "전체 상품",
            confidence=0.3,
        )


class NewArrivalsStrategy(RecommendationStrategy):
    """New-flagged or recently published products, newest first."""

    type = RecommendationType.NEW_ARRIVALS

    async def generate(self, request: RecommendationRequest) -> Generation:
        since = self.context.now() - timedelta(days=self.config.new_arrival_days)
        scored = [
            (p, p.reference_time.timestamp())
            for p in await self.products_in(request.category)
            if p.is_new or p.reference_time >= since
        ]
        return self.result(
            self.ranker.rank_by_score(scored),
            based_on=f"최근 {self.config.new_arrival_days}일 신상품",
            confidence=0.5,
        )


class BestsellersStrategy(RecommendationStrategy):
    """Bestseller ordering within the optional category."""

    type = RecommendationType.BESTSELLERS

    async def generate(self, request: RecommendationRequest) -> Generation:
        products = await self.products_in(request.category)
        return self.result(
            self.ranker.rank(products, SortMode.BESTSELLER),
            based_on=request.category or "전체 상품",
            confidence=0.5,
        )


# ============================================================================
# Product-anchored Strategies
# ============================================================================


class SimilarStrategy(RecommendationStrategy):
    """Same-category products sharing an ingredient or attribute token.

    Scored by overlap count, then popularity.
    """

    type = RecommendationType.SIMILAR

    async def generate(self, request: RecommendationRequest) -> Generation:
        if not request.product_id:
            return self.result([])
        subject = await self.catalog.get_product(request.product_id)
        if subject is None:
            return self.result([], fallback_category=request.category)

        tokens = subject.attribute_tokens
        scored = []
        for product in await self.products_in(subject.category):
            if product.id == subject.id:
                continue
            overlap = len(tokens & product.attribute_tokens)
            if overlap:
                scored.append((product, overlap + self.ranker.popularity(product)))

        return self.result(
            self.ranker.rank_by_score(scored),
            based_on=f"product:{subject.id}",
            confidence=min(1.0, len(tokens) / 5) if scored else None,
            fallback_category=subject.category,
        )


class ComplementaryStrategy(RecommendationStrategy):
    """Products from sub-categories that complete the subject's routine."""

    type = RecommendationType.COMPLEMENTARY

    async def generate(self, request: RecommendationRequest) -> Generation:
        if not request.product_id:
            return self.result([])
        subject = await self.catalog.get_product(request.product_id)
        if subject is None:
            return self.result([], fallback_category=request.category)

        targets = self.config.complementary_sub_categories.get(subject.sub_category or "", [])
        scored = []
        for target in targets:
            for product in await self.catalog.find_products([FieldEquals("sub_category", target)]):
                if product.id == subject.id:
                    continue
                score = self.ranker.popularity(product)
                if product.brand == subject.brand:
                    score += SAME_BRAND_BONUS
                scored.append((product, score))

        return self.result(
            self.ranker.rank_by_score(scored),
            based_on=f"product:{subject.id}",
            confidence=0.6,
            fallback_category=subject.category,
        )


class FrequentlyBoughtTogetherStrategy(RecommendationStrategy):
    """Products co-occurring with the subject in purchase baskets.

    Score is the share of the subject's baskets that also contain the
    candidate.
    """

    type = RecommendationType.FREQUENTLY_BOUGHT_TOGETHER

    async def generate(self, request: RecommendationRequest) -> Generation:
        if not request.product_id:
            return self.result([])

        baskets = await self.history.baskets_containing(request.product_id)
        co_occurrences: Counter[str] = Counter()
        for basket in baskets:
            co_occurrences.update(pid for pid in basket if pid != request.product_id)
        if not co_occurrences:
            return self.result([], fallback_category=request.category)

        products = await self.catalog.get_products(co_occurrences)
        scored = [(p, co_occurrences[p.id] / len(baskets)) for p in products]
        return self.result(
            self.ranker.rank_by_score(scored),
            based_on=f"product:{request.product_id}",
            confidence=min(1.0, len(baskets) / 10),
            fallback_category=request.category,
        )


# ============================================================================
# User-anchored Strategies
# ============================================================================


class HistoryStrategy(RecommendationStrategy):
    """Shared scoring for strategies driven by a user's history.

    Candidates share a category with one of the user's most recent items.
    Affinity combines the action strength, how recent the triggering event
    is, and whether the sub-category matches. Items the user already
    interacted with are never candidates.
    """

    actions: frozenset[InteractionAction] | None = None

    async def recent_interactions(self, user_id: str) -> list[Interaction]:
        return await self.history.interactions_for_user(
            user_id, actions=self.actions, limit=self.config.history_depth
        )

    async def affinities(
        self,
        interactions: Sequence[Interaction],
        signal_weight: float,
        seen: Iterable[str],
    ) -> dict[str, tuple[Product, float]]:
        """Score candidates against the most recent distinct history items.

        Args:
            interactions: History, newest first.
            signal_weight: Weight of this kind of signal.
            seen: Product ids that can never be candidates.

        Returns:
            Mapping of product id to (product, affinity).
        """
        anchors: dict[str, Interaction] = {}
        for interaction in interactions:
            if interaction.product_id not in anchors:
                anchors[interaction.product_id] = interaction
            if len(anchors) >= self.config.history_recent_items:
                break
        if not anchors:
            return {}

        anchor_products = await self.catalog.get_products(anchors)
        excluded = set(seen)
        now = self.context.now()
        scores: dict[str, tuple[Product, float]] = {}

        for category in sorted({p.category for p in anchor_products}):
            for candidate in await self.products_in(category):
                if candidate.id in excluded:
                    continue
                best = 0.0
                for anchor in anchor_products:
                    if anchor.category != candidate.category:
                        continue
                    event = anchors[anchor.id]
                    age_days = max(0.0, (now - event.occurred_at).total_seconds() / 86400)
                    decay = 0.5 ** (age_days / self.config.history_half_life_days)
                    match = (
                        SAME_SUB_CATEGORY_MATCH
                        if anchor.sub_category and anchor.sub_category == candidate.sub_category
                        else SAME_CATEGORY_MATCH
                    )
                    best = max(
                        best,
                        signal_weight * ACTION_WEIGHTS.get(event.action, 0.0) * decay * match,
                    )
                if best > 0:
                    scores[candidate.id] = (candidate, best)
        return scores

    def finish(
        self,
        affinities: dict[str, tuple[Product, float]],
        based_on: str,
        anchor_count: int,
    ) -> Generation:
        popularity_weight = self.ranker.weights.popularity
        scored = [
            (product, affinity + popularity_weight * self.ranker.popularity(product))
            for product, affinity in affinities.values()
        ]
        return self.result(
            self.ranker.rank_by_score(scored),
            based_on=based_on,
            confidence=min(1.0, anchor_count / self.config.history_recent_items),
        )


class BrowsingHistoryStrategy(HistoryStrategy):
    """Products related to what the user recently browsed."""

    type = RecommendationType.BROWSING_HISTORY
    actions = BROWSING_ACTIONS

    async def generate(self, request: RecommendationRequest) -> Generation:
        if not request.user_id:
            return self.result([])
        interactions = await self.recent_interactions(request.user_id)
        affinities = await self.affinities(
            interactions,
            self.config.browsing_signal_weight,
            seen={i.product_id for i in interactions},
        )
        anchors = len({i.product_id for i in interactions})
        return self.finish(affinities, "browsing_history", anchors)


class PurchaseHistoryStrategy(HistoryStrategy):
    """Products related to what the user recently bought."""

    type = RecommendationType.PURCHASE_HISTORY
    actions = frozenset({InteractionAction.PURCHASE})

    async def generate(self, request: RecommendationRequest) -> Generation:
        if not request.user_id:
            return self.result([])
        interactions = await self.recent_interactions(request.user_id)
        affinities = await self.affinities(
            interactions,
            self.config.purchase_signal_weight,
            seen={i.product_id for i in interactions},
        )
        anchors = len({i.product_id for i in interactions})
        return self.finish(affinities, "purchase_history", anchors)


class PersonalizedStrategy(HistoryStrategy):
    """Hybrid of content affinity and user-to-user collaborative filtering.

    Content affinity unions browsing- and purchase-based candidates, with
    purchases weighted higher. The collaborative signal finds users who
    touched the same products and recommends what they bought, carted or
    wishlisted. A candidate reached by several signals sums them.
    """

    type = RecommendationType.PERSONALIZED

    async def generate(self, request: RecommendationRequest) -> Generation:
        if not request.user_id:
            return self.result([])
        interactions = await self.recent_interactions(request.user_id)
        if not interactions:
            return self.result([], fallback_category=request.category)

        seen = {i.product_id for i in interactions}
        purchases = [i for i in interactions if i.action == InteractionAction.PURCHASE]
        browsing = [i for i in interactions if i.action in BROWSING_ACTIONS]

        combined: dict[str, tuple[Product, float]] = {}
        signals = [
            await self.affinities(purchases, self.config.purchase_signal_weight, seen),
            await self.affinities(browsing, self.config.browsing_signal_weight, seen),
            await self.collaborative(request.user_id, seen),
        ]
        for signal in signals:
            for product_id, (product, affinity) in signal.items():
                previous = combined.get(product_id, (product, 0.0))[1]
                combined[product_id] = (product, previous + affinity)

        generation = self.finish(combined, "personalized", len(seen))
        generation.fallback_category = request.category
        return generation

    async def collaborative(
        self, user_id: str, seen: set[str]
    ) -> dict[str, tuple[Product, float]]:
        """Score products committed to by users with overlapping history.

        Neighbour similarity is the summed action weight of their
        interactions with the user's products. A candidate scores
        ``sum(similarity * action weight) / sqrt(count)``, normalised so
        the best candidate gets ``collaborative_signal_weight``.

        Args:
            user_id: The user being served.
            seen: Products the user already interacted with.

        Returns:
            Mapping of product id to (product, affinity).
        """
        similarity: Counter[str] = Counter()
        for interaction in await self.history.interactions_for_products(seen):
            if interaction.user_id != user_id:
                similarity[interaction.user_id] += ACTION_WEIGHTS.get(interaction.action, 0.0)
        neighbours = dict(
            sorted(similarity.items(), key=lambda item: (-item[1], item[0]))[
                : self.config.collaborative_neighbors
            ]
        )
        if not neighbours:
            return {}

        totals: Counter[str] = Counter()
        counts: Counter[str] = Counter()
        for interaction in await self.history.interactions_for_users(
            neighbours, actions=COMMITMENT_ACTIONS
        ):
            if interaction.product_id in seen:
                continue
            totals[interaction.product_id] += neighbours[interaction.user_id] * ACTION_WEIGHTS.get(
                interaction.action, 0.0
            )
            counts[interaction.product_id] += 1
        if not totals:
            return {}

        scores = {pid: total / math.sqrt(counts[pid]) for pid, total in totals.items()}
        best = max(scores.values())
        return {
            product.id: (
                product,
                self.config.collaborative_signal_weight * scores[product.id] / best,
            )
            for product in await self.catalog.get_products(scores)
        }


class SkinTypeStrategy(RecommendationStrategy):
    """Products compatible with the user's declared skin type."""

    type = RecommendationType.SKIN_TYPE

    async def generate(self, request: RecommendationRequest) -> Generation:
        if not request.user_id:
            return self.result([], fallback_category=request.category)
        profile = await self.history.get_profile(request.user_id)
        if profile is None or not profile.skin_type:
            return self.result([], fallback_category=request.category)

        skin_type = profile.skin_type.upper()
        scored = []
        for product in await self.products_in(request.category):
            if not self.context.skin_types.is_compatible(product, skin_type):
                continue
            score = self.ranker.popularity(product)
            if skin_type in {s.upper() for s in product.skin_types}:
                score += DECLARED_SKIN_TYPE_BONUS
            scored.append((product, score))

        return self.result(
            self.ranker.rank_by_score(scored),
            based_on=f"skin_type:{skin_type}",
            confidence=0.7,
            fallback_category=request.category,
        )


STRATEGY_CLASSES: dict[RecommendationType, type[RecommendationStrategy]] = {
    RecommendationType.PERSONALIZED: PersonalizedStrategy,
    RecommendationType.SIMILAR: SimilarStrategy,
    RecommendationType.TRENDING: TrendingStrategy,
    RecommendationType.SKIN_TYPE: SkinTypeStrategy,
    RecommendationType.BROWSING_HISTORY: BrowsingHistoryStrategy,
    RecommendationType.PURCHASE_HISTORY: PurchaseHistoryStrategy,
    RecommendationType.CATEGORY: CategoryStrategy,
    RecommendationType.COMPLEMENTARY: ComplementaryStrategy,
    RecommendationType.FREQUENTLY_BOUGHT_TOGETHER: FrequentlyBoughtTogetherStrategy,
    RecommendationType.NEW_ARRIVALS: NewArrivalsStrategy,
    RecommendationType.BESTSELLERS: BestsellersStrategy,
}
