"""Domain layer module.

Records, value objects and exceptions shared by the catalog, search
and recommendation packages.
"""

from storefront.domain.entities import (
    ACTION_WEIGHTS,
    BROWSING_ACTIONS,
    Interaction,
    InteractionAction,
    Product,
    ProductStatus,
    Rating,
    SkinType,
    UserProfile,
)
from storefront.domain.exceptions import (
    CatalogUnavailableError,
    DataSourceUnavailableError,
    DomainError,
    HistoryUnavailableError,
    UnknownRecommendationTypeError,
)
from storefront.domain.value_objects import (
    FacetSummary,
    Page,
    PaginationMeta,
    PriceRange,
    Query,
    RankedCandidate,
    RecommendationRequest,
    RecommendationResult,
    RecommendationType,
    RelaxedQuery,
    ResultEnvelope,
    SearchFilters,
    SignalBreakdown,
    SortMode,
)

__all__ = [
    # Entities
    "ACTION_WEIGHTS",
    "BROWSING_ACTIONS",
    "Interaction",
    "InteractionAction",
    "Product",
    "ProductStatus",
    "Rating",
    "SkinType",
    "UserProfile",
    # Exceptions
    "CatalogUnavailableError",
    "DataSourceUnavailableError",
    "DomainError",
    "HistoryUnavailableError",
    "UnknownRecommendationTypeError",
    # Value objects
    "FacetSummary",
    "Page",
    "PaginationMeta",
    "PriceRange",
    "Query",
    "RankedCandidate",
    "RecommendationRequest",
    "RecommendationResult",
    "RecommendationType",
    "RelaxedQuery",
    "ResultEnvelope",
    "SearchFilters",
    "SignalBreakdown",
    "SortMode",
]
