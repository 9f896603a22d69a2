"""Query service facade.

Single entry point for product search and recommendations. Composes the
normalizer, filter/facet evaluator, ranker and paginator for search,
and the recommendation engine for recommendations.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from storefront.application.tracking_service import EventLog, get_event_log
from storefront.catalog.clauses import TextClause
from storefront.catalog.store import CatalogStore, get_catalog_store
from storefront.domain.entities import Product
from storefront.domain.value_objects import (
    FacetSummary,
    Query,
    RecommendationRequest,
    RecommendationResult,
    RelaxedQuery,
    ResultEnvelope,
    SearchFilters,
)
from storefront.infrastructure.config import Settings, settings
from storefront.recommendation.engine import RecommendationEngine
from storefront.recommendation.history import HistorySource, get_history_store
from storefront.search.filters import FilterEvaluator
from storefront.search.normalizer import QueryNormalizer
from storefront.search.pagination import paginate
from storefront.search.ranking import Clock, Ranker, RankingWeights

logger = structlog.get_logger()

POPULAR_SEARCHES_TITLE = "인기 검색어"
RECENT_SEARCHES_TITLE = "최근 검색어"
ALL_PRODUCTS_LABEL = "전체 상품"

AUTOCOMPLETE_MIN_LENGTH = 2
AUTOCOMPLETE_FIELDS = ("name", "category", "brand")
SUGGESTIONS_POPULAR_LIMIT = 5
SUGGESTIONS_AUTOCOMPLETE_LIMIT = 8

# Order in which structured filters are relaxed, loosest first.
RELAXATION_ORDER = (
    "price",
    "is_bestseller",
    "is_new",
    "featured",
    "skin_type",
    "brand",
    "sub_category",
    "category",
)


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class TermList:
    """Titled list of search terms."""

    terms: list[str] = field(default_factory=list)
    title: str = ""


@dataclass
class SearchSuggestions:
    """Suggestions for a search box.

    Attributes:
        suggestions: Suggested terms.
        type: "popular" or "autocomplete".
        query: Echoed query for autocomplete suggestions.
    """

    suggestions: list[str] = field(default_factory=list)
    type: str = "popular"
    query: str | None = None


# ============================================================================
# Query Service
# ============================================================================


class QueryService:
    """Search and recommendation facade.

    Data sources are injected; omitted ones come from the module-level
    stores.

    Example usage:
        service = get_query_service(request_id="req-1")
        envelope = await service.search(q="세럼", filters={"maxPrice": "70000"})
    """

    def __init__(
        self,
        catalog: CatalogStore | None = None,
        history: HistorySource | None = None,
        event_log: EventLog | None = None,
        config: Settings | None = None,
        clock: Clock | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            catalog: Catalog store.
            history: User history source.
            event_log: Search event log (popular/recent searches).
            config: Application settings.
            clock: Source of "now" for recency-based scoring.
            request_id: Request ID for correlation.
        """
        self.catalog = catalog if catalog is not None else get_catalog_store()
        self.history = history if history is not None else get_history_store()
        self.event_log = event_log if event_log is not None else get_event_log()
        self.config = config if config is not None else settings
        self.request_id = request_id

        self.normalizer = QueryNormalizer(self.config)
        self.filters = FilterEvaluator(self.config)
        self.ranker = Ranker(RankingWeights.from_settings(self.config), clock=clock)
        self.engine = RecommendationEngine(self.catalog, self.history, self.ranker, self.config)

    # ========================================================================
    # Search
    # ========================================================================

    async def search(
        self,
        q: str | None = None,
        filters: Mapping[str, Any] | None = None,
        sort_by: str | None = None,
        page: Any = None,
        limit: Any = None,
    ) -> ResultEnvelope:
        """Search products.

        Args:
            q: Free-text term.
            filters: Raw filter map.
            sort_by: Sort mode name.
            page: Requested page.
            limit: Requested page size.

        Returns:
            Result envelope. Zero matches is a valid envelope with
            suggestions, never an error.

        Raises:
            CatalogUnavailableError: If the catalog cannot be read.
        """
        query = self.normalizer.normalize(q, filters, sort_by, page, limit)
        return await self.execute(query)

    async def execute(self, query: Query) -> ResultEnvelope:
        """Run a canonical query.

        Args:
            query: Canonical query.

        Returns:
            Result envelope.
        """
        candidates = await self.catalog.find_products(self.filters.pushdown_clauses(query))
        outcome = self.filters.evaluate(query, candidates)
        ranked = self.ranker.rank(outcome.products, query.sort_by, query)
        page = paginate(ranked, query.page, query.page_size)

        relaxed: list[RelaxedQuery] = []
        if page.meta.total_count <= self.config.low_result_threshold:
            relaxed = await self.relax(query)

        logger.info(
            "Search executed",
            term=query.term,
            filters=query.filters.applied(),
            sort_by=query.sort_by.value,
            page=query.page,
            total_count=page.meta.total_count,
            suggestion_count=len(relaxed),
            request_id=self.request_id,
        )

        return ResultEnvelope(
            query=query,
            page=page,
            facets=outcome.facets,
            suggestions=tuple(dict.fromkeys(r.label for r in relaxed)),
            relaxed_queries=tuple(relaxed),
        )

    async def relax(self, query: Query) -> list[RelaxedQuery]:
        """Find alternate queries that return results.

        Tries, in order: dropping one token (least frequent first),
        dropping one structured filter, and product names sharing a
        prefix with the term. Store round-trips are capped by
        ``suggestion_max_attempts``.

        Args:
            query: Query that returned too few results.

        Returns:
            Up to ``suggestion_limit`` relaxed queries.
        """
        limit = self.config.suggestion_limit
        budget = self.config.suggestion_max_attempts
        attempts = 0
        results: list[RelaxedQuery] = []
        cache: dict[tuple[str, ...], list[Product]] = {}

        async def text_matches(tokens: tuple[str, ...]) -> list[Product]:
            nonlocal attempts
            if tokens not in cache:
                attempts += 1
                cache[tokens] = await self.catalog.find_products([TextClause(tokens)])
            return cache[tokens]

        def add(term: str, filters: SearchFilters, dropped: str, total: int) -> None:
            results.append(
                RelaxedQuery(
                    label=self._label(term, filters),
                    term=term,
                    filters=filters,
                    dropped=dropped,
                    total_count=total,
                )
            )

        words = self._original_words(query)

        # Drop one token, least frequent first
        if len(query.tokens) > 1:
            frequency: dict[str, int] = {}
            for token in query.tokens:
                if attempts >= budget:
                    break
                frequency[token] = len(await text_matches((token,)))
            ordered = sorted(frequency, key=lambda t: (frequency[t], query.tokens.index(t)))
            for token in ordered:
                if len(results) >= limit or attempts >= budget:
                    break
                remaining = tuple(t for t in query.tokens if t != token)
                total = len(self.filters.apply(query.filters, await text_matches(remaining)))
                if total:
                    term = " ".join(words[t] for t in remaining)
                    add(term, query.filters, f"token:{token}", total)

        # Drop one structured filter
        applied = [
            dim for dim in RELAXATION_ORDER if dim in self._applied_dimensions(query.filters)
        ]
        for dimension in applied:
            if len(results) >= limit or attempts >= budget:
                break
            relaxed_filters = query.filters.without(dimension)
            total = len(self.filters.apply(relaxed_filters, await text_matches(query.tokens)))
            if total:
                add(query.original_term, relaxed_filters, f"filter:{dimension}", total)

        # Product names sharing a prefix with the term
        if query.has_term and len(results) < limit and attempts < budget:
            prefix = query.term[: max(AUTOCOMPLETE_MIN_LENGTH, len(query.term) // 2)]
            attempts += 1
            matches = await self.catalog.find_products([TextClause((prefix,), fields=("name",))])
            names: dict[str, int] = {}
            for product in matches:
                names[product.name] = names.get(product.name, 0) + 1
            for name in sorted(names):
                if len(results) >= limit:
                    break
                if name.lower() == query.term:
                    continue
                add(name, SearchFilters(), "prefix", names[name])

        return results[:limit]

    def _label(self, term: str, filters: SearchFilters) -> str:
        """Suggestion text: the relaxed term, else the most specific filter value."""
        if term:
            return term
        for value in (filters.sub_category, filters.category, filters.brand):
            if value:
                return value
        return ALL_PRODUCTS_LABEL

    @staticmethod
    def _applied_dimensions(filters: SearchFilters) -> set[str]:
        applied = filters.applied()
        dimensions = set(applied)
        if "min_price" in applied or "max_price" in applied:
            dimensions.add("price")
        return dimensions

    @staticmethod
    def _original_words(query: Query) -> dict[str, str]:
        """Map each token to its first original-case spelling."""
        words: dict[str, str] = {}
        for word in query.original_term.split():
            words.setdefault(word.lower(), word)
        return {token: words.get(token, token) for token in query.tokens}

    # ========================================================================
    # Search Helpers
    # ========================================================================

    async def autocomplete(self, q: str | None, limit: int | None = None) -> list[str]:
        """Names, categories and brands containing the typed text.

        Args:
            q: Typed text.
            limit: Maximum suggestions (clamped to the configured range).

        Returns:
            Distinct suggestions; empty for fewer than two characters.
        """
        text = (q or "").strip().lower()
        if len(text) < AUTOCOMPLETE_MIN_LENGTH:
            return []
        if limit is None:
            limit = self.config.autocomplete_default_limit
        limit = min(max(1, limit), self.config.autocomplete_max_limit)

        products = await self.catalog.find_products(
            [TextClause((text,), fields=AUTOCOMPLETE_FIELDS)]
        )
        by_popularity = sorted(products, key=lambda p: (-self.ranker.popularity(p), p.name))

        suggestions: list[str] = []
        for values in (
            [p.name for p in by_popularity],
            sorted({p.category for p in products}),
            sorted({p.brand for p in products}),
        ):
            for value in values:
                if text in value.lower() and value not in suggestions:
                    suggestions.append(value)
        return suggestions[:limit]

    async def popular_searches(self, limit: int = 10) -> TermList:
        """Most searched terms, padded with the configured defaults."""
        limit = max(1, limit)
        terms = self.event_log.popular_terms(limit)
        for term in self.config.popular_searches:
            if len(terms) >= limit:
                break
            if term not in terms:
                terms.append(term)
        return TermList(terms=terms[:limit], title=POPULAR_SEARCHES_TITLE)

    async def search_suggestions(self, q: str | None) -> SearchSuggestions:
        """Popular searches for short input, autocomplete otherwise."""
        text = (q or "").strip()
        if len(text) < AUTOCOMPLETE_MIN_LENGTH:
            popular = await self.popular_searches(SUGGESTIONS_POPULAR_LIMIT)
            return SearchSuggestions(suggestions=popular.terms, type="popular")
        return SearchSuggestions(
            suggestions=await self.autocomplete(text, SUGGESTIONS_AUTOCOMPLETE_LIMIT),
            type="autocomplete",
            query=text,
        )

    async def recent_searches(self, user_id: str | None, limit: int = 10) -> TermList:
        """A user's recent distinct search terms."""
        if not user_id:
            return TermList(terms=[], title=RECENT_SEARCHES_TITLE)
        return TermList(
            terms=self.event_log.recent_terms(user_id, max(1, limit)),
            title=RECENT_SEARCHES_TITLE,
        )

    async def available_filters(self) -> FacetSummary:
        """Facet summary with no query applied."""
        products = await self.catalog.find_products()
        return self.filters.facet_summary(products)

    # ========================================================================
    # Recommendations
    # ========================================================================

    async def recommend(self, request: RecommendationRequest) -> RecommendationResult:
        """Recommend products.

        Args:
            request: Recommendation request.

        Returns:
            Recommendation result; ``result.products`` is the product
            sequence.

        Raises:
            DataSourceUnavailableError: If the catalog or history cannot be read.
        """
        result = await self.engine.recommend(request)

        logger.info(
            "Recommendations generated",
            requested_type=request.type.value,
            type=result.type.value,
            fallback_path=[t.value for t in result.fallback_path],
            count=len(result.candidates),
            user_id=request.user_id,
            product_id=request.product_id,
            request_id=self.request_id,
        )
        return result

    async def recommend_products(self, request: RecommendationRequest) -> Sequence[Product]:
        """Recommended products only."""
        return (await self.recommend(request)).products


# ============================================================================
# Service Factory
# ============================================================================


def get_query_service(request_id: str | None = None) -> QueryService:
    """Get query service instance.

    Args:
        request_id: Request ID for correlation.

    Returns:
        QueryService instance.
    """
    return QueryService(request_id=request_id)


__all__ = [
    "QueryService",
    "SearchSuggestions",
    "TermList",
    "get_query_service",
]
