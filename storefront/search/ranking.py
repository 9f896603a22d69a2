"""Result ordering.

Every sort mode yields a total order: ties are always broken by product
id ascending, so the same candidates in the same state always come back
in the same order.
"""

import math
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from storefront.domain.entities import Product
from storefront.domain.value_objects import Query, RankedCandidate, SignalBreakdown, SortMode
from storefront.infrastructure.config import Settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RankingWeights:
    """Relevance weights and scoring constants.

    Attributes:
        text: Weight of text-match strength.
        recency: Weight of recency decay.
        popularity: Weight of popularity.
        exact_match: Text score for a whole-word term match in the name.
        name_match: Text score for a substring match in the name.
        other_match: Text score for a match in description or brand only.
        half_life_days: Age at which recency halves.
        recency_floor: Lower bound of the recency signal.
        saturation: Raw popularity that maps to 0.5.
        wishlist_weight: Weight of wishlist count inside raw popularity.
    """

    text: float = 0.6
    recency: float = 0.15
    popularity: float = 0.25
    exact_match: float = 1.0
    name_match: float = 0.6
    other_match: float = 0.25
    half_life_days: float = 30.0
    recency_floor: float = 0.1
    saturation: float = 10.0
    wishlist_weight: float = 0.5

    @classmethod
    def from_settings(cls, config: Settings) -> "RankingWeights":
        """Build weights from application settings."""
        return cls(
            text=config.ranking_text_weight,
            recency=config.ranking_recency_weight,
            popularity=config.ranking_popularity_weight,
            exact_match=config.text_match_exact,
            name_match=config.text_match_name,
            other_match=config.text_match_other,
            half_life_days=config.recency_half_life_days,
            recency_floor=config.recency_floor,
            saturation=config.popularity_saturation,
            wishlist_weight=config.popularity_wishlist_weight,
        )


class Ranker:
    """Orders candidates by sort mode.

    Example usage:
        ranker = Ranker(RankingWeights.from_settings(settings))
        ranked = ranker.rank(products, SortMode.RELEVANCE, query)
    """

    def __init__(self, weights: RankingWeights | None = None, clock: Clock | None = None) -> None:
        """Initialize ranker.

        Args:
            weights: Relevance weights (defaults if omitted).
            clock: Source of "now" for recency.
        """
        self.weights = weights or RankingWeights()
        self.clock = clock or utc_now

    # ========================================================================
    # Signals
    # ========================================================================

    def text_match(self, product: Product, query: Query) -> float:
        """Text-match strength of a product for the query term.

        Args:
            product: Product to score.
            query: Canonical query.

        Returns:
            0 when the term is empty; otherwise the exact-match score for a
            whole-word full-term match in the name, else the mean of the
            per-token match levels.
        """
        if not query.tokens:
            return 0.0

        name = product.name.lower()
        if re.search(rf"(?<!\w){re.escape(query.term)}(?!\w)", name):
            return self.weights.exact_match

        other = f"{product.description}\n{product.brand}".lower()
        levels = []
        for token in query.tokens:
            if token in name:
                levels.append(self.weights.name_match)
            elif token in other:
                levels.append(self.weights.other_match)
            else:
                levels.append(0.0)
        return sum(levels) / len(levels)

    def recency(self, product: Product, now: datetime | None = None) -> float:
        """Recency decay in [floor, 1].

        Args:
            product: Product to score.
            now: Reference instant (defaults to the clock).

        Returns:
            Exponential decay of age since publish, bounded below.
        """
        now = now or self.clock()
        age_days = max(0.0, (now - product.reference_time).total_seconds() / 86400)
        floor = self.weights.recency_floor
        return floor + (1.0 - floor) * 0.5 ** (age_days / self.weights.half_life_days)

    def popularity(self, product: Product) -> float:
        """Saturating popularity in [0, 1).

        Wishlist count and ``average * log(1 + count)`` are combined so a
        single five-star review cannot outweigh hundreds of good ones.
        """
        raw = self.weights.wishlist_weight * math.log1p(max(0, product.wishlist_count))
        if product.rating.is_rated:
            raw += product.rating.average * math.log1p(product.rating.count)
        return raw / (raw + self.weights.saturation)

    def breakdown(self, product: Product, query: Query, now: datetime) -> SignalBreakdown:
        """Relevance signals for one product."""
        return SignalBreakdown(
            text_match=self.text_match(product, query),
            recency=self.recency(product, now),
            popularity=self.popularity(product),
        )

    def relevance(self, breakdown: SignalBreakdown) -> float:
        """Weighted sum of relevance signals."""
        return (
            self.weights.text * breakdown.text_match
            + self.weights.recency * breakdown.recency
            + self.weights.popularity * breakdown.popularity
        )

    # ========================================================================
    # Ordering
    # ========================================================================

    def rank(
        self,
        products: Iterable[Product],
        sort_by: SortMode = SortMode.RELEVANCE,
        query: Query | None = None,
    ) -> list[RankedCandidate]:
        """Rank products by sort mode.

        Args:
            products: Candidate products.
            sort_by: Sort mode.
            query: Query for relevance text matching.

        Returns:
            Totally ordered candidates.
        """
        products = list(products)

        if sort_by == SortMode.RELEVANCE:
            query = query or Query()
            now = self.clock()
            scored = []
            for product in products:
                breakdown = self.breakdown(product, query, now)
                scored.append(RankedCandidate(product, self.relevance(breakdown), breakdown))
            return sorted(scored, key=lambda c: (-c.score, c.product.id))

        if sort_by == SortMode.PRICE_ASC:
            ordered = sorted(products, key=lambda p: (p.price, p.id))
            return [RankedCandidate(p, float(p.price)) for p in ordered]

        if sort_by == SortMode.PRICE_DESC:
            ordered = sorted(products, key=lambda p: (-p.price, p.id))
            return [RankedCandidate(p, float(p.price)) for p in ordered]

        if sort_by == SortMode.NEWEST:
            ordered = sorted(products, key=lambda p: (-p.created_at.timestamp(), p.id))
            return [RankedCandidate(p, p.created_at.timestamp()) for p in ordered]

        if sort_by == SortMode.RATING:
            ordered = sorted(
                products,
                key=lambda p: (not p.rating.is_rated, -p.rating.average, p.id),
            )
            return [RankedCandidate(p, p.rating.average) for p in ordered]

        if sort_by == SortMode.BESTSELLER:
            ordered = sorted(
                products,
                key=lambda p: (not p.is_bestseller, -p.wishlist_count, p.id),
            )
            return [
                RankedCandidate(p, float(p.is_bestseller) + self.popularity(p))
                for p in ordered
            ]

        raise ValueError(f"Unsupported sort mode: {sort_by}")

    def rank_by_score(self, scored: Sequence[tuple[Product, float]]) -> list[RankedCandidate]:
        """Order precomputed scores descending, ties by id.

        Args:
            scored: (product, score) pairs.

        Returns:
            Ranked candidates.
        """
        ordered = sorted(scored, key=lambda item: (-item[1], item[0].id))
        return [RankedCandidate(product, score) for product, score in ordered]
