"""Search API endpoints.

Query parameters are accepted as raw strings: malformed values are
normalized by the query service, never rejected.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from storefront.api.schemas import (
    AutocompleteResponse,
    AvailableFiltersResponse,
    ErrorResponse,
    PopularSearchesResponse,
    RecentSearchesResponse,
    SearchResponse,
    SearchSuggestionsResponse,
    facets_to_schema,
    pagination_to_schema,
    product_to_schema,
    relaxed_to_schema,
)
from storefront.application.query_service import QueryService, get_query_service
from storefront.application.tracking_service import TrackingService, get_tracking_service
from storefront.search.normalizer import parse_int

router = APIRouter(prefix="/search", tags=["Search"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> QueryService:
    """Get query service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_query_service(request_id=request_id)


def get_tracker(request: Request) -> TrackingService:
    """Get tracking service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return get_tracking_service(request_id=request_id)


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=SearchResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Search products",
    description="Free-text and faceted product search with sorting and pagination.",
)
async def search_products(
    service: Annotated[QueryService, Depends(get_service)],
    tracker: Annotated[TrackingService, Depends(get_tracker)],
    background_tasks: BackgroundTasks,
    q: str | None = None,
    category: str | None = None,
    sub_category: Annotated[str | None, Query(alias="subCategory")] = None,
    brand: str | None = None,
    min_price: Annotated[str | None, Query(alias="minPrice")] = None,
    max_price: Annotated[str | None, Query(alias="maxPrice")] = None,
    skin_type: Annotated[str | None, Query(alias="skinType")] = None,
    is_bestseller: Annotated[str | None, Query(alias="isBestseller")] = None,
    is_new: Annotated[str | None, Query(alias="isNew")] = None,
    featured: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    page: str | None = None,
    limit: str | None = None,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> SearchResponse:
    """Search products.

    Args:
        service: Query service.
        tracker: Tracking service.
        background_tasks: Scheduler for search tracking.
        q: Free-text term.
        category: Category filter.
        sub_category: Sub-category filter.
        brand: Brand filter.
        min_price: Inclusive lower price bound.
        max_price: Inclusive upper price bound.
        skin_type: Skin type filter.
        is_bestseller: Only bestsellers when true.
        is_new: Only new arrivals when true.
        featured: Only featured products when true.
        sort_by: Sort mode.
        page: Page number.
        limit: Page size.
        user_id: Searching user, recorded for recent searches.

    Returns:
        One page of results with facets and suggestions.
    """
    envelope = await service.search(
        q=q,
        filters={
            "category": category,
            "sub_category": sub_category,
            "brand": brand,
            "min_price": min_price,
            "max_price": max_price,
            "skin_type": skin_type,
            "is_bestseller": is_bestseller,
            "is_new": is_new,
            "featured": featured,
        },
        sort_by=sort_by,
        page=page,
        limit=limit,
    )

    if envelope.query.original_term:
        background_tasks.add_task(
            tracker.track_search,
            term=envelope.query.original_term,
            result_count=envelope.total_count,
            user_id=user_id,
            filters=envelope.query.filters.applied(),
        )

    return SearchResponse(
        products=[product_to_schema(p) for p in envelope.products],
        suggestions=list(envelope.suggestions),
        filters=facets_to_schema(envelope.facets),
        pagination=pagination_to_schema(envelope.page.meta),
        search_query=envelope.query.original_term,
        relaxed_queries=[relaxed_to_schema(r) for r in envelope.relaxed_queries],
    )


@router.get(
    "/autocomplete",
    response_model=AutocompleteResponse,
    summary="Autocomplete",
    description="Product names, categories and brands containing the typed text.",
)
async def autocomplete(
    service: Annotated[QueryService, Depends(get_service)],
    q: str | None = None,
    limit: str | None = None,
) -> AutocompleteResponse:
    """Suggest completions; empty for fewer than two characters."""
    suggestions = await service.autocomplete(q, parse_int(limit))
    return AutocompleteResponse(suggestions=suggestions)


@router.get(
    "/popular",
    response_model=PopularSearchesResponse,
    summary="Popular searches",
)
async def popular_searches(
    service: Annotated[QueryService, Depends(get_service)],
    limit: str | None = None,
) -> PopularSearchesResponse:
    """List the most searched terms."""
    result = await service.popular_searches(parse_int(limit) or 10)
    return PopularSearchesResponse(popular_searches=result.terms, title=result.title)


@router.get(
    "/filters",
    response_model=AvailableFiltersResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Available filters",
)
async def available_filters(
    service: Annotated[QueryService, Depends(get_service)],
) -> AvailableFiltersResponse:
    """Facet summary over the whole catalog."""
    facets = await service.available_filters()
    return AvailableFiltersResponse(filters=facets_to_schema(facets))


@router.get(
    "/suggestions",
    response_model=SearchSuggestionsResponse,
    response_model_exclude_none=True,
    summary="Search box suggestions",
    description="Popular searches for short input, autocomplete otherwise.",
)
async def search_suggestions(
    service: Annotated[QueryService, Depends(get_service)],
    q: str | None = None,
) -> SearchSuggestionsResponse:
    """Suggest terms for the search box."""
    result = await service.search_suggestions(q)
    return SearchSuggestionsResponse(
        suggestions=result.suggestions,
        type=result.type,
        query=result.query,
    )


@router.get(
    "/recent",
    response_model=RecentSearchesResponse,
    summary="Recent searches",
)
async def recent_searches(
    service: Annotated[QueryService, Depends(get_service)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    limit: str | None = None,
) -> RecentSearchesResponse:
    """List a user's recent search terms."""
    result = await service.recent_searches(user_id, parse_int(limit) or 10)
    return RecentSearchesResponse(recent_searches=result.terms, title=result.title)
