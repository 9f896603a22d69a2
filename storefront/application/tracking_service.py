"""Best-effort analytics ingestion.

Search events, recommendation impressions and recommendation
interactions are recorded here. Tracking never affects a user-facing
result: every failure is logged and swallowed.
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from storefront.domain.entities import Interaction, InteractionAction
from storefront.infrastructure.config import settings
from storefront.recommendation.history import HistorySource, get_history_store

logger = structlog.get_logger()


# ============================================================================
# Event Log
# ============================================================================


@dataclass(frozen=True)
class SearchEvent:
    """One executed search."""

    term: str
    result_count: int
    user_id: str | None = None
    filters: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class RecommendationImpression:
    """Products shown for one recommendation type."""

    recommendation_type: str
    product_ids: tuple[str, ...]
    user_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventLog:
    """In-memory log of search events and recommendation impressions.

    Both logs keep only the newest ``max_events`` entries. Popular-term
    counts are maintained as events enter and leave the window, keyed
    case-insensitively and displayed with the first spelling seen.
    """

    def __init__(self, max_events: int | None = None) -> None:
        if max_events is None:
            max_events = settings.event_log_max_events
        self.searches: deque[SearchEvent] = deque(maxlen=max_events)
        self.impressions: deque[RecommendationImpression] = deque(maxlen=max_events)
        self._term_counts: Counter[str] = Counter()
        self._spellings: dict[str, str] = {}

    def record_search(self, event: SearchEvent) -> None:
        if len(self.searches) == self.searches.maxlen:
            self._uncount(self.searches[0])
        self.searches.append(event)
        if event.term and event.result_count > 0:
            key = event.term.lower()
            self._term_counts[key] += 1
            self._spellings.setdefault(key, event.term)

    def record_impression(self, impression: RecommendationImpression) -> None:
        self.impressions.append(impression)

    def _uncount(self, event: SearchEvent) -> None:
        if not event.term or event.result_count <= 0:
            return
        key = event.term.lower()
        self._term_counts[key] -= 1
        if self._term_counts[key] <= 0:
            del self._term_counts[key]
            del self._spellings[key]

    def popular_terms(self, limit: int) -> list[str]:
        """Most frequent search terms that returned results.

        Args:
            limit: Maximum number of terms.

        Returns:
            Terms ordered by frequency, then first occurrence.
        """
        return [self._spellings[key] for key, _ in self._term_counts.most_common(limit)]

    def recent_terms(self, user_id: str, limit: int) -> list[str]:
        """A user's distinct search terms, most recent first."""
        terms: list[str] = []
        seen: set[str] = set()
        for event in reversed(self.searches):
            if event.user_id != user_id or not event.term or event.term.lower() in seen:
                continue
            seen.add(event.term.lower())
            terms.append(event.term)
            if len(terms) >= limit:
                break
        return terms


# Global log instance
_event_log: EventLog | None = None


def get_event_log() -> EventLog:
    """Get event log singleton."""
    global _event_log
    if _event_log is None:
        _event_log = EventLog()
    return _event_log


def reset_event_log() -> None:
    """Drop the global log (tests)."""
    global _event_log
    _event_log = None


# ============================================================================
# Tracking Service
# ============================================================================


class TrackingService:
    """Records analytics events without ever raising.

    Each method returns True when the event was recorded and False when
    it was rejected or failed.
    """

    def __init__(
        self,
        history: HistorySource | None = None,
        event_log: EventLog | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            history: User history source.
            event_log: Search/impression log.
            request_id: Request ID for correlation.
        """
        self.history = history if history is not None else get_history_store()
        self.event_log = event_log if event_log is not None else get_event_log()
        self.request_id = request_id

    async def track_search(
        self,
        term: str,
        result_count: int,
        user_id: str | None = None,
        filters: dict[str, Any] | None = None,
    ) -> bool:
        """Record an executed search.

        Args:
            term: Original-case search term.
            result_count: Total matches.
            user_id: Searching user, if known.
            filters: Applied filters.

        Returns:
            Whether the event was recorded.
        """
        try:
            self.event_log.record_search(
                SearchEvent(
                    term=term.strip(),
                    result_count=result_count,
                    user_id=user_id,
                    filters=filters or {},
                )
            )
            return True
        except Exception as e:
            logger.warning(
                "Failed to track search",
                term=term,
                error=str(e),
                request_id=self.request_id,
            )
            return False

    async def track_recommendation(
        self,
        recommendation_type: str,
        product_ids: list[str],
        user_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> bool:
        """Record a recommendation impression.

        Args:
            recommendation_type: Type tag shown.
            product_ids: Products shown, in order.
            user_id: Viewing user, if known.
            context: Free-form context (product id, category, ...).

        Returns:
            Whether the impression was recorded.
        """
        try:
            self.event_log.record_impression(
                RecommendationImpression(
                    recommendation_type=recommendation_type,
                    product_ids=tuple(product_ids),
                    user_id=user_id,
                    context=context or {},
                )
            )
            logger.info(
                "Recommendation impression tracked",
                recommendation_type=recommendation_type,
                product_count=len(product_ids),
                user_id=user_id,
                request_id=self.request_id,
            )
            return True
        except Exception as e:
            logger.warning(
                "Failed to track recommendation",
                recommendation_type=recommendation_type,
                error=str(e),
                request_id=self.request_id,
            )
            return False

    async def track_interaction(
        self,
        product_id: str,
        action: str,
        user_id: str | None = None,
        recommendation_type: str | None = None,
        session_id: str | None = None,
        order_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Record a user interaction with a recommended product.

        Anonymous interactions and unknown actions are logged and dropped.

        Args:
            product_id: Product interacted with.
            action: Action name ("view", "click", "add_to_cart", "purchase", "wishlist").
            user_id: Acting user.
            recommendation_type: Recommendation the product came from.
            session_id: Browsing session.
            order_id: Order grouping purchases.
            metadata: Free-form context.

        Returns:
            Whether an interaction was stored in the history source.
        """
        try:
            parsed = InteractionAction.parse(action)
            if parsed is None:
                logger.warning(
                    "Unknown interaction action",
                    action=action,
                    product_id=product_id,
                    request_id=self.request_id,
                )
                return False
            if not user_id:
                logger.info(
                    "Anonymous interaction ignored",
                    action=parsed.value,
                    product_id=product_id,
                    request_id=self.request_id,
                )
                return False

            details = dict(metadata or {})
            if recommendation_type:
                details["recommendation_type"] = recommendation_type

            await self.history.record(
                Interaction(
                    user_id=user_id,
                    product_id=product_id,
                    action=parsed,
                    session_id=session_id,
                    order_id=order_id,
                    metadata=details,
                )
            )
            logger.info(
                "Interaction tracked",
                action=parsed.value,
                product_id=product_id,
                user_id=user_id,
                recommendation_type=recommendation_type,
                request_id=self.request_id,
            )
            return True
        except Exception as e:
            logger.warning(
                "Failed to track interaction",
                action=action,
                product_id=product_id,
                error=str(e),
                request_id=self.request_id,
            )
            return False


def get_tracking_service(request_id: str | None = None) -> TrackingService:
    """Get tracking service instance.

    Args:
        request_id: Request ID for correlation.

    Returns:
        TrackingService instance.
    """
    return TrackingService(request_id=request_id)
