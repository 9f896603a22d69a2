"""Shared base for immutable domain values."""

from abc import ABC
from dataclasses import dataclass


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable value compared by its fields.

    Filters, queries, ratings and recommendation results all derive from
    this; two instances with equal fields are interchangeable.
    """
