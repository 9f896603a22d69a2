"""Value objects for the query layer.

Canonical queries, ranked candidates, pagination metadata, facet
summaries and the result envelopes handed back to callers. All of them
are immutable once constructed.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from storefront.domain.base import ValueObject
from storefront.domain.entities import Product


# ============================================================================
# Queries
# ============================================================================


class SortMode(str, Enum):
    """Supported result orderings."""

    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NEWEST = "newest"
    RATING = "rating"
    BESTSELLER = "bestseller"


@dataclass(frozen=True)
class SearchFilters(ValueObject):
    """Structured filter set.

    Flags are only applied when True; None/False means "not filtered".
    """

    category: str | None = None
    sub_category: str | None = None
    brand: str | None = None
    min_price: int | None = None
    max_price: int | None = None
    skin_type: str | None = None
    is_bestseller: bool = False
    is_new: bool = False
    featured: bool = False

    @property
    def is_empty(self) -> bool:
        """Whether no filter is applied."""
        return self == SearchFilters()

    def without(self, *dimensions: str) -> "SearchFilters":
        """Copy with the given dimensions cleared.

        Args:
            dimensions: Field names to clear ("price" clears both bounds).

        Returns:
            New filter set.
        """
        changes: dict[str, Any] = {}
        for dimension in dimensions:
            if dimension == "price":
                changes["min_price"] = None
                changes["max_price"] = None
            elif dimension in ("is_bestseller", "is_new", "featured"):
                changes[dimension] = False
            else:
                changes[dimension] = None
        return replace(self, **changes)

    def applied(self) -> dict[str, Any]:
        """Applied filters as a plain dict (absent ones omitted)."""
        result: dict[str, Any] = {}
        for name in (
            "category",
            "sub_category",
            "brand",
            "min_price",
            "max_price",
            "skin_type",
        ):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        for flag in ("is_bestseller", "is_new", "featured"):
            if getattr(self, flag):
                result[flag] = True
        return result


@dataclass(frozen=True)
class Query(ValueObject):
    """Canonical search query produced by the normalizer.

    Attributes:
        term: Trimmed, lower-cased free text used for matching.
        original_term: Trimmed free text with original casing.
        tokens: Distinct whitespace tokens of ``term``.
        filters: Structured filters.
        sort_by: Ordering.
        page: 1-indexed page number.
        page_size: Items per page.
    """

    term: str = ""
    original_term: str = ""
    tokens: tuple[str, ...] = ()
    filters: SearchFilters = field(default_factory=SearchFilters)
    sort_by: SortMode = SortMode.RELEVANCE
    page: int = 1
    page_size: int = 20

    @property
    def has_term(self) -> bool:
        """Whether a free-text term is present."""
        return bool(self.tokens)

    @property
    def offset(self) -> int:
        """Offset of the first item of the requested page."""
        return (self.page - 1) * self.page_size


# ============================================================================
# Ranking
# ============================================================================


@dataclass(frozen=True)
class SignalBreakdown(ValueObject):
    """Relevance signals behind a score, kept for explainability."""

    text_match: float
    recency: float
    popularity: float


@dataclass(frozen=True)
class RankedCandidate:
    """A product with its computed score."""

    product: Product
    score: float
    breakdown: SignalBreakdown | None = None

    @property
    def product_id(self) -> str:
        """Identifier of the ranked product."""
        return self.product.id


# ============================================================================
# Pagination
# ============================================================================


@dataclass(frozen=True)
class PaginationMeta(ValueObject):
    """Pagination metadata for one page."""

    current_page: int
    total_pages: int
    total_count: int
    page_size: int

    @property
    def has_next_page(self) -> bool:
        """Check if there's a next page."""
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        """Check if there's a previous page."""
        return self.current_page > 1


@dataclass(frozen=True)
class Page:
    """A slice of a ranked sequence plus its metadata."""

    items: tuple[RankedCandidate, ...]
    meta: PaginationMeta

    @property
    def products(self) -> list[Product]:
        """Products on this page, in rank order."""
        return [candidate.product for candidate in self.items]


# ============================================================================
# Facets and Envelopes
# ============================================================================


@dataclass(frozen=True)
class PriceRange(ValueObject):
    """Inclusive price range in minor units."""

    min: int
    max: int


@dataclass(frozen=True)
class FacetSummary:
    """Available refinement values with counts.

    Categories and brands are ordered by count descending, then name.
    """

    category_counts: tuple[tuple[str, int], ...] = ()
    brand_counts: tuple[tuple[str, int], ...] = ()
    price_range: PriceRange = field(default_factory=lambda: PriceRange(min=0, max=0))

    @property
    def categories(self) -> list[str]:
        """Category names."""
        return [name for name, _ in self.category_counts]

    @property
    def brands(self) -> list[str]:
        """Brand names."""
        return [name for name, _ in self.brand_counts]


@dataclass(frozen=True)
class RelaxedQuery:
    """An alternate query that returns results when the original did not.

    Attributes:
        label: Suggestion text shown to the user.
        term: Relaxed free-text term (original casing).
        filters: Remaining filters.
        dropped: What was removed ("token:<t>", "filter:<name>", "prefix").
        total_count: Results the relaxed query returns.
    """

    label: str
    term: str
    filters: SearchFilters
    dropped: str
    total_count: int


@dataclass(frozen=True)
class ResultEnvelope:
    """Search response for one request. Never persisted."""

    query: Query
    page: Page
    facets: FacetSummary
    suggestions: tuple[str, ...] = ()
    relaxed_queries: tuple[RelaxedQuery, ...] = ()

    @property
    def products(self) -> list[Product]:
        """Products on the requested page."""
        return self.page.products

    @property
    def total_count(self) -> int:
        """Total number of matching products."""
        return self.page.meta.total_count


# ============================================================================
# Recommendations
# ============================================================================


class RecommendationType(str, Enum):
    """Closed set of recommendation strategies."""

    PERSONALIZED = "personalized"
    SIMILAR = "similar"
    TRENDING = "trending"
    SKIN_TYPE = "skin-type"
    BROWSING_HISTORY = "browsing-history"
    PURCHASE_HISTORY = "purchase-history"
    CATEGORY = "category"
    COMPLEMENTARY = "complementary"
    FREQUENTLY_BOUGHT_TOGETHER = "frequently-bought-together"
    NEW_ARRIVALS = "new-arrivals"
    BESTSELLERS = "bestsellers"


@dataclass(frozen=True)
class RecommendationRequest(ValueObject):
    """Parameters of one recommendation call."""

    type: RecommendationType
    user_id: str | None = None
    product_id: str | None = None
    category: str | None = None
    limit: int = 10
    exclude: frozenset[str] = frozenset()


@dataclass(frozen=True)
class RecommendationResult:
    """Recommendation output.

    Attributes:
        requested_type: Type the caller asked for.
        type: Type that produced the candidates (differs after fallback).
        candidates: Ranked, truncated, exclusion-filtered candidates.
        reason: Human-readable reason.
        based_on: What signal the result is based on.
        confidence: Strength of the signal (0..1).
        fallback_path: Types tried before ``type``.
    """

    requested_type: RecommendationType
    type: RecommendationType
    candidates: tuple[RankedCandidate, ...] = ()
    reason: str | None = None
    based_on: str | None = None
    confidence: float | None = None
    fallback_path: tuple[RecommendationType, ...] = ()

    @property
    def products(self) -> list[Product]:
        """Recommended products in rank order."""
        return [candidate.product for candidate in self.candidates]

    @property
    def used_fallback(self) -> bool:
        """Whether a fallback strategy produced the result."""
        return self.type != self.requested_type
