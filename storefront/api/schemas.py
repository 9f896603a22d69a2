"""API schemas for the storefront query API.

Pydantic models for request/response validation and serialization.
JSON field names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.domain.entities import Product
from storefront.domain.value_objects import (
    FacetSummary,
    PaginationMeta,
    RecommendationResult,
    RelaxedQuery,
)


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Any = Field(default_factory=list, description="Additional error details")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class ProductSchema(CamelModel):
    """Product representation."""

    id: str
    name: str
    description: str = ""
    short_description: str = ""
    price: int = Field(..., description="Price in KRW")
    compare_at_price: int | None = None
    category: str
    sub_category: str | None = None
    brand: str
    slug: str = ""
    images: list[str] = Field(default_factory=list)
    ingredients: list[str] = Field(default_factory=list)
    skin_types: list[str] = Field(default_factory=list)
    featured: bool = False
    is_new: bool = False
    is_bestseller: bool = False
    inventory: int = 0
    average_rating: float = 0.0
    review_count: int = 0
    wishlist_count: int = 0
    created_at: datetime
    published_at: datetime | None = None


class PriceRangeSchema(BaseModel):
    """Inclusive price range."""

    min: int
    max: int


class FacetCountSchema(BaseModel):
    """Facet value with its product count."""

    value: str
    count: int


class FiltersSchema(CamelModel):
    """Facet summary."""

    categories: list[str] = Field(default_factory=list)
    brands: list[str] = Field(default_factory=list)
    price_range: PriceRangeSchema
    category_counts: list[FacetCountSchema] = Field(default_factory=list)
    brand_counts: list[FacetCountSchema] = Field(default_factory=list)


class PaginationSchema(CamelModel):
    """Pagination metadata."""

    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


# ============================================================================
# Search Schemas
# ============================================================================


class RelaxedQuerySchema(CamelModel):
    """Alternate query that returns results."""

    label: str
    term: str
    filters: dict[str, Any] = Field(default_factory=dict)
    dropped: str
    total_count: int


class SearchResponse(CamelModel):
    """Search results for one page."""

    products: list[ProductSchema]
    suggestions: list[str] = Field(default_factory=list)
    filters: FiltersSchema
    pagination: PaginationSchema
    search_query: str = ""
    relaxed_queries: list[RelaxedQuerySchema] = Field(default_factory=list)


class AutocompleteResponse(CamelModel):
    """Autocomplete suggestions."""

    suggestions: list[str] = Field(default_factory=list)


class PopularSearchesResponse(CamelModel):
    """Popular search terms."""

    popular_searches: list[str] = Field(default_factory=list)
    title: str


class RecentSearchesResponse(CamelModel):
    """A user's recent search terms."""

    recent_searches: list[str] = Field(default_factory=list)
    title: str


class AvailableFiltersResponse(CamelModel):
    """Facet summary with no query applied."""

    filters: FiltersSchema


class SearchSuggestionsResponse(CamelModel):
    """Search box suggestions."""

    suggestions: list[str] = Field(default_factory=list)
    type: str
    query: str | None = None


# ============================================================================
# Recommendation Schemas
# ============================================================================


class RecommendationResponse(CamelModel):
    """Recommended products."""

    products: list[ProductSchema]
    reason: str | None = None
    based_on: str | None = None
    confidence: float | None = None
    type: str = Field(..., description="Type that produced the products")
    fallback_path: list[str] = Field(default_factory=list)


class TrackRecommendationRequest(CamelModel):
    """Recommendation impression event."""

    recommendation_type: str
    product_ids: list[str] = Field(default_factory=list)
    user_id: str | None = None
    context: dict[str, Any] | None = None
    timestamp: datetime | None = None


class TrackInteractionRequest(CamelModel):
    """Interaction with a recommended product."""

    product_id: str
    action: str = Field(..., description="view, click, add_to_cart, purchase or wishlist")
    recommendation_type: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    order_id: str | None = None
    metadata: dict[str, Any] | None = None
    timestamp: datetime | None = None


class TrackResponse(BaseModel):
    """Acknowledgement of a tracking event."""

    status: str = "accepted"


# ============================================================================
# Converters
# ============================================================================


def product_to_schema(product: Product) -> ProductSchema:
    """Convert Product entity to response schema."""
    return ProductSchema(**product.to_dict())


def facets_to_schema(facets: FacetSummary) -> FiltersSchema:
    """Convert facet summary to response schema."""
    return FiltersSchema(
        categories=facets.categories,
        brands=facets.brands,
        price_range=PriceRangeSchema(min=facets.price_range.min, max=facets.price_range.max),
        category_counts=[FacetCountSchema(value=v, count=c) for v, c in facets.category_counts],
        brand_counts=[FacetCountSchema(value=v, count=c) for v, c in facets.brand_counts],
    )


def pagination_to_schema(meta: PaginationMeta) -> PaginationSchema:
    """Convert pagination metadata to response schema."""
    return PaginationSchema(
        current_page=meta.current_page,
        total_pages=meta.total_pages,
        total_count=meta.total_count,
        limit=meta.page_size,
        has_next_page=meta.has_next_page,
        has_prev_page=meta.has_prev_page,
    )


def relaxed_to_schema(relaxed: RelaxedQuery) -> RelaxedQuerySchema:
    """Convert relaxed query to response schema."""
    return RelaxedQuerySchema(
        label=relaxed.label,
        term=relaxed.term,
        filters={to_camel(k): v for k, v in relaxed.filters.applied().items()},
        dropped=relaxed.dropped,
        total_count=relaxed.total_count,
    )


def recommendation_to_schema(result: RecommendationResult) -> RecommendationResponse:
    """Convert recommendation result to response schema."""
    return RecommendationResponse(
        products=[product_to_schema(p) for p in result.products],
        reason=result.reason,
        based_on=result.based_on,
        confidence=result.confidence,
        type=result.type.value,
        fallback_path=[t.value for t in result.fallback_path],
    )
