"""Pushdown clauses understood by every catalog store.

A clause can be evaluated against an in-memory product or translated
into a SQL condition by the database repository, so predicates never
require loading the whole catalog first.
"""

from dataclasses import dataclass
from typing import Protocol

from storefront.domain.entities import Product

SEARCHABLE_FIELDS = ("name", "description", "brand")


class Clause(Protocol):
    """A predicate over products."""

    def matches(self, product: Product) -> bool:
        """Check whether the product satisfies the clause."""
        ...


@dataclass(frozen=True)
class TextClause:
    """Every token is a case-insensitive substring of at least one field.

    This is a deliberately simple matching policy, not a full-text index.

    Attributes:
        tokens: Lower-cased tokens.
        fields: Product attributes searched.
    """

    tokens: tuple[str, ...]
    fields: tuple[str, ...] = SEARCHABLE_FIELDS

    def matches(self, product: Product) -> bool:
        """Check whether all tokens occur in the product's fields."""
        if not self.tokens:
            return True
        haystacks = [(getattr(product, f) or "").lower() for f in self.fields]
        return all(
            any(token in haystack for haystack in haystacks) for token in self.tokens
        )


@dataclass(frozen=True)
class FieldEquals:
    """Exact equality on a product attribute."""

    field: str
    value: str | int | bool

    def matches(self, product: Product) -> bool:
        """Check attribute equality."""
        return getattr(product, self.field) == self.value


@dataclass(frozen=True)
class IdIn:
    """Product identifier membership."""

    ids: frozenset[str]

    def matches(self, product: Product) -> bool:
        """Check identifier membership."""
        return product.id in self.ids
