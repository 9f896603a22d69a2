"""Structured filtering and facet computation.

Filters combine with AND. Facets for a dimension are counted over the
candidates filtered by every other dimension, so a shopper can always
see the alternatives to the value they picked.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from storefront.catalog.clauses import Clause, TextClause
from storefront.domain.entities import Product
from storefront.domain.value_objects import FacetSummary, PriceRange, Query, SearchFilters
from storefront.infrastructure.config import Settings

FILTER_DIMENSIONS = (
    "category",
    "sub_category",
    "brand",
    "price",
    "skin_type",
    "is_bestseller",
    "is_new",
    "featured",
)


@dataclass(frozen=True)
class FilterOutcome:
    """Filtered products plus facets over the same candidates."""

    products: list[Product]
    facets: FacetSummary


class SkinTypeMatcher:
    """Decides whether a product suits a skin type.

    A product suits a skin type when it declares it. Products that declare
    no skin types are judged by ingredients: at least one favourable
    ingredient and none to avoid.
    """

    def __init__(self, mapping: dict[str, dict[str, list[str]]]) -> None:
        self.favor = {
            key.upper(): {i.lower() for i in value.get("favor", [])}
            for key, value in mapping.items()
        }
        self.avoid = {
            key.upper(): {i.lower() for i in value.get("avoid", [])}
            for key, value in mapping.items()
        }

    def is_compatible(self, product: Product, skin_type: str) -> bool:
        skin_type = skin_type.upper()
        if product.skin_types:
            return skin_type in {s.upper() for s in product.skin_types}
        ingredients = {i.lower() for i in product.ingredients}
        if ingredients & self.avoid.get(skin_type, set()):
            return False
        return bool(ingredients & self.favor.get(skin_type, set()))


class FilterEvaluator:
    """Applies structured filters and computes facet summaries.

    Example usage:
        evaluator = FilterEvaluator(settings)
        candidates = await store.find_products(evaluator.pushdown_clauses(query))
        outcome = evaluator.evaluate(query, candidates)
    """

    def __init__(self, config: Settings) -> None:
        """Initialize evaluator.

        Args:
            config: Application settings (skin-type ingredient mapping).
        """
        self.skin_types = SkinTypeMatcher(config.skin_type_ingredients)

    def pushdown_clauses(self, query: Query) -> list[Clause]:
        """Clauses the catalog store evaluates before structured filtering.

        Args:
            query: Canonical query.

        Returns:
            Text clause for the query tokens (matches everything when empty).
        """
        return [TextClause(query.tokens)]

    def matches(
        self,
        product: Product,
        filters: SearchFilters,
        skip: Iterable[str] = (),
    ) -> bool:
        """Check a product against every filter dimension not skipped.

        Args:
            product: Product to check.
            filters: Filter set.
            skip: Dimensions to ignore.

        Returns:
            True if all applied predicates hold.
        """
        skipped = set(skip)

        if "category" not in skipped and filters.category is not None:
            if product.category != filters.category:
                return False
        if "sub_category" not in skipped and filters.sub_category is not None:
            if product.sub_category != filters.sub_category:
                return False
        if "brand" not in skipped and filters.brand is not None:
            if product.brand != filters.brand:
                return False
        if "price" not in skipped:
            if filters.min_price is not None and product.price < filters.min_price:
                return False
            if filters.max_price is not None and product.price > filters.max_price:
                return False
        if "skin_type" not in skipped and filters.skin_type is not None:
            if not self.skin_types.is_compatible(product, filters.skin_type):
                return False
        for flag in ("is_bestseller", "is_new", "featured"):
            if flag not in skipped and getattr(filters, flag) and not getattr(product, flag):
                return False
        return True

    def apply(self, filters: SearchFilters, products: Iterable[Product]) -> list[Product]:
        """Keep products matching every filter, preserving order."""
        return [p for p in products if self.matches(p, filters)]

    def evaluate(self, query: Query, candidates: Sequence[Product]) -> FilterOutcome:
        """Filter text-matched candidates and compute facets.

        Args:
            query: Canonical query.
            candidates: Products that already satisfy the text clause.

        Returns:
            Filter outcome (possibly empty).
        """
        filters = query.filters
        products = self.apply(filters, candidates)

        facets = FacetSummary(
            category_counts=self._counts(
                p.category for p in candidates if self.matches(p, filters, skip=("category",))
            ),
            brand_counts=self._counts(
                p.brand for p in candidates if self.matches(p, filters, skip=("brand",))
            ),
            price_range=self._price_range(
                p for p in candidates if self.matches(p, filters, skip=("price",))
            ),
        )
        return FilterOutcome(products=products, facets=facets)

    def facet_summary(self, products: Sequence[Product]) -> FacetSummary:
        """Facets over an unfiltered product set."""
        return FacetSummary(
            category_counts=self._counts(p.category for p in products),
            brand_counts=self._counts(p.brand for p in products),
            price_range=self._price_range(products),
        )

    @staticmethod
    def _counts(values: Iterable[str]) -> tuple[tuple[str, int], ...]:
        counter = Counter(v for v in values if v)
        return tuple(sorted(counter.items(), key=lambda item: (-item[1], item[0])))

    @staticmethod
    def _price_range(products: Iterable[Product]) -> PriceRange:
        prices = [p.price for p in products]
        if not prices:
            return PriceRange(min=0, max=0)
        return PriceRange(min=min(prices), max=max(prices))
