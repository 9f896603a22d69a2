"""Domain exceptions.

Errors that callers must be able to tell apart from an empty result.
Malformed input, empty results and missing personalization signals are
never errors; they are normalized, returned empty, or handled by the
recommendation fallback chain.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the API layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Data Source Errors
# ============================================================================


class DataSourceUnavailableError(DomainError):
    """Raised when an upstream data source cannot be read.

    This is the only true failure of the query layer: "search is down"
    must not look like "no matches".
    """

    source = "data_source"

    def __init__(self, reason: str, operation: str | None = None) -> None:
        """Initialize data source error.

        Args:
            reason: Underlying failure description.
            operation: Store operation that failed.
        """
        super().__init__(
            f"{self.source} unavailable: {reason}",
            details={"source": self.source, "operation": operation, "reason": reason},
        )
        self.reason = reason
        self.operation = operation


class CatalogUnavailableError(DataSourceUnavailableError):
    """Raised when the catalog store fails."""

    source = "catalog"


class HistoryUnavailableError(DataSourceUnavailableError):
    """Raised when the user history source fails."""

    source = "history"


# ============================================================================
# Recommendation Errors
# ============================================================================


class UnknownRecommendationTypeError(DomainError):
    """Raised when a recommendation type tag is not one of the known types."""

    def __init__(self, type_tag: str, known: list[str]) -> None:
        """Initialize unknown type error.

        Args:
            type_tag: The requested type tag.
            known: Known type tags.
        """
        super().__init__(
            f"Unknown recommendation type '{type_tag}'",
            details={"type": type_tag, "known_types": known},
        )
