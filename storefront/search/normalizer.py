"""Query normalization.

Turns raw request parameters into a canonical ``Query``. Normalization
never fails: malformed values are coerced to defaults or dropped.
"""

from collections.abc import Mapping
from typing import Any

from storefront.domain.value_objects import Query, SearchFilters, SortMode
from storefront.infrastructure.config import Settings

TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


def parse_int(value: Any) -> int | None:
    """Coerce a raw value to int.

    Args:
        value: Raw value (string, number or None).

    Returns:
        Integer value, or None when absent or non-numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            return None


def parse_bool(value: Any) -> bool:
    """Check whether a raw flag value means "apply this filter"."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def parse_text(value: Any) -> str | None:
    """Trim a raw text value; blank means absent."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def tokenize(term: str) -> tuple[str, ...]:
    """Split a lower-cased term into distinct tokens, keeping order."""
    return tuple(dict.fromkeys(term.split()))


class QueryNormalizer:
    """Builds canonical queries from raw parameters.

    Example usage:
        normalizer = QueryNormalizer(settings)
        query = normalizer.normalize("  Vitamin C ", {"minPrice": "50000"})
    """

    def __init__(self, config: Settings) -> None:
        """Initialize normalizer.

        Args:
            config: Application settings (page size bounds).
        """
        self.default_page_size = config.default_page_size
        self.max_page_size = config.max_page_size

    def normalize(
        self,
        q: str | None = None,
        raw_filters: Mapping[str, Any] | None = None,
        sort_by: str | None = None,
        page: Any = None,
        limit: Any = None,
    ) -> Query:
        """Normalize raw search parameters.

        Args:
            q: Free-text term.
            raw_filters: Raw filter map. Keys may be camelCase or snake_case.
            sort_by: Sort mode name.
            page: Requested page (1-indexed).
            limit: Requested page size.

        Returns:
            Canonical query.
        """
        original_term = " ".join((q or "").split())
        term = original_term.lower()

        return Query(
            term=term,
            original_term=original_term,
            tokens=tokenize(term),
            filters=self.normalize_filters(raw_filters or {}),
            sort_by=self.normalize_sort(sort_by),
            page=self.normalize_page(page),
            page_size=self.normalize_page_size(limit),
        )

    def normalize_filters(self, raw: Mapping[str, Any]) -> SearchFilters:
        """Normalize the structured filter map.

        Args:
            raw: Raw filter map.

        Returns:
            Filter set with inverted price bounds swapped.
        """

        def pick(*keys: str) -> Any:
            for key in keys:
                if raw.get(key) is not None:
                    return raw[key]
            return None

        min_price = parse_int(pick("min_price", "minPrice"))
        max_price = parse_int(pick("max_price", "maxPrice"))
        if min_price is not None and max_price is not None and min_price > max_price:
            min_price, max_price = max_price, min_price

        skin_type = parse_text(pick("skin_type", "skinType"))

        return SearchFilters(
            category=parse_text(pick("category")),
            sub_category=parse_text(pick("sub_category", "subCategory")),
            brand=parse_text(pick("brand")),
            min_price=min_price,
            max_price=max_price,
            skin_type=skin_type.upper() if skin_type else None,
            is_bestseller=parse_bool(pick("is_bestseller", "isBestseller")),
            is_new=parse_bool(pick("is_new", "isNew")),
            featured=parse_bool(pick("featured")),
        )

    def normalize_sort(self, sort_by: str | None) -> SortMode:
        """Map a sort name to a mode; unknown names mean relevance."""
        if not sort_by:
            return SortMode.RELEVANCE
        try:
            return SortMode(sort_by.strip().lower())
        except ValueError:
            return SortMode.RELEVANCE

    def normalize_page(self, page: Any) -> int:
        """Clamp the page to at least 1."""
        value = parse_int(page)
        if value is None:
            return 1
        return max(1, value)

    def normalize_page_size(self, limit: Any) -> int:
        """Clamp the page size to [1, max_page_size]."""
        value = parse_int(limit)
        if value is None:
            return self.default_page_size
        return min(max(1, value), self.max_page_size)
