"""Tests for the query service facade."""

import pytest

from storefront.application.query_service import QueryService
from storefront.application.tracking_service import SearchEvent
from storefront.catalog.store import InMemoryCatalogStore
from storefront.domain.entities import Interaction, InteractionAction, UserProfile
from storefront.domain.exceptions import CatalogUnavailableError
from storefront.domain.value_objects import (
    PriceRange,
    RecommendationRequest,
    RecommendationType,
    SearchFilters,
)
from storefront.infrastructure.config import Settings


class CountingCatalog:
    """Catalog wrapper counting store round-trips."""

    def __init__(self, inner: InMemoryCatalogStore) -> None:
        self.inner = inner
        self.calls = 0

    async def find_products(self, clauses=()):
        self.calls += 1
        return await self.inner.find_products(clauses)

    async def get_product(self, product_id):
        self.calls += 1
        return await self.inner.get_product(product_id)

    async def get_products(self, product_ids):
        self.calls += 1
        return await self.inner.get_products(product_ids)


class FailingCatalog:
    """Catalog that is always down."""

    async def find_products(self, clauses=()):
        raise CatalogUnavailableError("connection refused", operation="find_products")

    async def get_product(self, product_id):
        raise CatalogUnavailableError("connection refused", operation="get_product")

    async def get_products(self, product_ids):
        raise CatalogUnavailableError("connection refused", operation="get_products")


def make_service(catalog, history, event_log, clock, **overrides) -> QueryService:
    return QueryService(
        catalog=catalog,
        history=history,
        event_log=event_log,
        config=Settings(**overrides),
        clock=clock,
    )


class TestSearch:
    """Tests for QueryService.search."""

    @pytest.mark.asyncio
    async def test_serums_by_price(self, service: QueryService) -> None:
        """Skincare serums sorted cheapest first."""
        envelope = await service.search(q="serum", filters={"category": "스킨케어"}, sort_by="price_asc")

        assert [p.name for p in envelope.products] == ["Vitamin C Serum", "Retinol Serum"]
        assert envelope.total_count == 2
        assert envelope.page.meta.total_pages == 1
        assert envelope.suggestions == ()

    @pytest.mark.asyncio
    async def test_relevance_search(self, service: QueryService) -> None:
        """Name matches outrank a description-only match."""
        envelope = await service.search(q="Serum")
        assert envelope.products[-1].id == "bse-1"
        assert envelope.query.original_term == "Serum"
        assert "drf-1" not in [p.id for p in envelope.products]

    @pytest.mark.asyncio
    async def test_browse_without_term(self, service: QueryService) -> None:
        """No term lists every active product."""
        envelope = await service.search()
        assert envelope.total_count == 7

    @pytest.mark.asyncio
    async def test_zero_results_suggest_dropping_price(self, service: QueryService) -> None:
        """No perfume over 100000 suggests the perfume category instead."""
        envelope = await service.search(filters={"category": "향수", "minPrice": "100000"})

        assert envelope.products == []
        assert envelope.total_count == 0
        assert "향수" in envelope.suggestions
        relaxed = envelope.relaxed_queries[0]
        assert relaxed.dropped == "filter:price"
        assert relaxed.filters == SearchFilters(category="향수")
        assert relaxed.total_count == 1
        assert envelope.facets.price_range == PriceRange(min=95000, max=95000)

    @pytest.mark.asyncio
    async def test_zero_results_suggest_dropping_tokens(self, service: QueryService) -> None:
        """Each remaining token is suggested with its original casing."""
        envelope = await service.search(q="Vitamin Retinol")

        assert envelope.products == []
        assert envelope.suggestions == ("Retinol", "Vitamin", "Vitamin C Serum")
        assert [r.dropped for r in envelope.relaxed_queries] == [
            "token:vitamin",
            "token:retinol",
            "prefix",
        ]

    @pytest.mark.asyncio
    async def test_nothing_to_suggest(self, service: QueryService) -> None:
        """An unmatched term with no near miss yields no suggestions."""
        envelope = await service.search(q="zzzz")
        assert envelope.products == []
        assert envelope.suggestions == ()

    @pytest.mark.asyncio
    async def test_suggestion_limit(self, catalog, history, event_log, clock) -> None:
        """At most suggestion_limit relaxed queries."""
        service = make_service(catalog, history, event_log, clock, suggestion_limit=1)
        envelope = await service.search(q="Vitamin Retinol")
        assert envelope.suggestions == ("Retinol",)

    @pytest.mark.asyncio
    async def test_suggestion_attempts_are_bounded(
        self, catalog, history, event_log, clock
    ) -> None:
        """Relaxation never exceeds the store round-trip budget."""
        counting = CountingCatalog(catalog)
        service = make_service(counting, history, event_log, clock, suggestion_max_attempts=1)

        await service.search(q="Vitamin Retinol", filters={"brand": "MICOZ"})
        # One call for the search itself, at most one for relaxation
        assert counting.calls <= 2

    @pytest.mark.asyncio
    async def test_page_beyond_range(self, service: QueryService) -> None:
        """Out-of-range pages are empty with correct metadata."""
        envelope = await service.search(page="99", limit="5")
        assert envelope.products == []
        assert envelope.page.meta.total_count == 7
        assert envelope.page.meta.total_pages == 2
        assert not envelope.page.meta.has_next_page

    @pytest.mark.asyncio
    async def test_facets_ignore_own_dimension(self, service: QueryService) -> None:
        """Category facet keeps other categories while filtered."""
        envelope = await service.search(filters={"category": "스킨케어"})
        assert set(envelope.facets.categories) == {"스킨케어", "메이크업", "향수"}

    @pytest.mark.asyncio
    async def test_catalog_failure_propagates(self, history, event_log, clock) -> None:
        """An unavailable catalog is an error, not an empty result."""
        service = make_service(FailingCatalog(), history, event_log, clock)
        with pytest.raises(CatalogUnavailableError):
            await service.search(q="serum")

    @pytest.mark.asyncio
    async def test_empty_catalog_is_not_an_error(self, history, event_log, clock) -> None:
        """An empty store yields an empty envelope."""
        service = make_service(InMemoryCatalogStore(), history, event_log, clock)
        envelope = await service.search(q="serum")
        assert envelope.products == []
        assert envelope.page.meta.total_pages == 0


class TestSearchHelpers:
    """Tests for autocomplete and search term lists."""

    @pytest.mark.asyncio
    async def test_autocomplete_names_by_popularity(self, service: QueryService) -> None:
        """Matching names, most popular first."""
        assert await service.autocomplete("se") == ["Retinol Serum", "Vitamin C Serum"]

    @pytest.mark.asyncio
    async def test_autocomplete_categories(self, service: QueryService) -> None:
        """Categories containing the text are suggested."""
        assert await service.autocomplete("스킨") == ["스킨케어"]

    @pytest.mark.asyncio
    async def test_autocomplete_short_input(self, service: QueryService) -> None:
        """Fewer than two characters suggest nothing."""
        assert await service.autocomplete("s") == []
        assert await service.autocomplete("  ") == []
        assert await service.autocomplete(None) == []

    @pytest.mark.asyncio
    async def test_autocomplete_limit(self, service: QueryService) -> None:
        """Limit truncates suggestions."""
        assert await service.autocomplete("se", limit=1) == ["Retinol Serum"]

    @pytest.mark.asyncio
    async def test_popular_searches_padded_with_defaults(
        self, service: QueryService, event_log, config: Settings
    ) -> None:
        """Tracked terms lead; defaults fill the rest."""
        event_log.record_search(SearchEvent(term="립스틱", result_count=3))
        event_log.record_search(SearchEvent(term="립스틱", result_count=2))
        event_log.record_search(SearchEvent(term="없는상품", result_count=0))

        popular = await service.popular_searches(limit=3)
        assert popular.terms[0] == "립스틱"
        assert "없는상품" not in popular.terms
        assert len(popular.terms) == 3
        assert popular.title == "인기 검색어"
        assert popular.terms[1] in config.popular_searches

    @pytest.mark.asyncio
    async def test_search_suggestions(self, service: QueryService) -> None:
        """Short input gets popular terms; longer input gets autocomplete."""
        popular = await service.search_suggestions("")
        assert popular.type == "popular"
        assert len(popular.suggestions) == 5
        assert popular.query is None

        completed = await service.search_suggestions("se")
        assert completed.type == "autocomplete"
        assert completed.query == "se"
        assert completed.suggestions == ["Retinol Serum", "Vitamin C Serum"]

    @pytest.mark.asyncio
    async def test_recent_searches(self, service: QueryService, event_log) -> None:
        """Distinct terms, most recent first, per user."""
        for term, user in [("세럼", "u1"), ("토너", "u1"), ("세럼", "u1"), ("향수", "u2")]:
            event_log.record_search(SearchEvent(term=term, result_count=1, user_id=user))

        recent = await service.recent_searches("u1")
        assert recent.terms == ["세럼", "토너"]
        assert recent.title == "최근 검색어"
        assert (await service.recent_searches(None)).terms == []

    @pytest.mark.asyncio
    async def test_available_filters(self, service: QueryService) -> None:
        """Facets over the whole active catalog."""
        facets = await service.available_filters()
        assert facets.categories == ["스킨케어", "메이크업", "향수"]
        assert facets.price_range == PriceRange(min=18000, max=95000)


class TestRecommend:
    """Tests for the recommendation entry points."""

    @pytest.mark.asyncio
    async def test_recommend(self, service: QueryService) -> None:
        """Recommendations carry their reason."""
        result = await service.recommend(
            RecommendationRequest(type=RecommendationType.NEW_ARRIVALS)
        )
        assert [p.id for p in result.products] == ["tnr-1", "srm-1", "lip-1"]
        assert result.reason == "신상품"

    @pytest.mark.asyncio
    async def test_recommend_products(self, service: QueryService, history) -> None:
        """The products-only entry point returns the product sequence."""
        history.set_profile(UserProfile("u1", skin_type="SENSITIVE"))
        products = await service.recommend_products(
            RecommendationRequest(type=RecommendationType.SKIN_TYPE, user_id="u1")
        )
        assert {p.id for p in products} == {"tnr-1", "cln-1"}

    @pytest.mark.asyncio
    async def test_tracked_interactions_feed_recommendations(
        self, service: QueryService, history, now
    ) -> None:
        """Browsing a lipstick personalizes toward makeup."""
        await history.record(Interaction("u1", "lip-1", InteractionAction.VIEW, occurred_at=now))
        result = await service.recommend(
            RecommendationRequest(type=RecommendationType.BROWSING_HISTORY, user_id="u1")
        )
        assert [p.id for p in result.products] == ["bse-1"]
