"""User history source.

Interactions (views, clicks, cart adds, wishlists, purchases) and
profiles feed the personalized recommendation strategies. The
recommendation engine only reads; the tracking service appends.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

import structlog

from storefront.domain.entities import Interaction, InteractionAction, UserProfile

logger = structlog.get_logger()


class HistorySource(Protocol):
    """Read/append access to user interactions and profiles.

    Implementations backed by external storage raise
    ``HistoryUnavailableError`` when the storage cannot be reached.
    """

    async def record(self, interaction: Interaction) -> None:
        """Append an interaction."""
        ...

    async def interactions_for_user(
        self,
        user_id: str,
        actions: Iterable[InteractionAction] | None = None,
        limit: int | None = None,
    ) -> list[Interaction]:
        """Return a user's interactions, newest first."""
        ...

    async def interactions_since(self, since: datetime) -> list[Interaction]:
        """Return every interaction at or after ``since``."""
        ...

    async def interactions_for_products(
        self, product_ids: Iterable[str]
    ) -> list[Interaction]:
        """Return every user's interactions with any of the products."""
        ...

    async def interactions_for_users(
        self,
        user_ids: Iterable[str],
        actions: Iterable[InteractionAction] | None = None,
    ) -> list[Interaction]:
        """Return the interactions of several users in recording order."""
        ...

    async def baskets_containing(self, product_id: str) -> list[frozenset[str]]:
        """Return purchase baskets (grouped by order) that include the product."""
        ...

    async def get_profile(self, user_id: str) -> UserProfile | None:
        """Return a user's profile, if any."""
        ...


class InMemoryHistoryStore:
    """In-memory history source."""

    def __init__(self) -> None:
        self._interactions: list[Interaction] = []
        self._by_user: dict[str, list[Interaction]] = defaultdict(list)
        self._profiles: dict[str, UserProfile] = {}

    def __len__(self) -> int:
        return len(self._interactions)

    async def record(self, interaction: Interaction) -> None:
        """Append an interaction.

        Args:
            interaction: Interaction to store.
        """
        self._interactions.append(interaction)
        self._by_user[interaction.user_id].append(interaction)

    def record_many(self, interactions: Iterable[Interaction]) -> None:
        """Append interactions synchronously (fixtures and seeding)."""
        for interaction in interactions:
            self._interactions.append(interaction)
            self._by_user[interaction.user_id].append(interaction)

    async def interactions_for_user(
        self,
        user_id: str,
        actions: Iterable[InteractionAction] | None = None,
        limit: int | None = None,
    ) -> list[Interaction]:
        """Return a user's interactions, newest first.

        Args:
            user_id: User ID.
            actions: Only these actions (all when None).
            limit: Maximum number returned.

        Returns:
            Interactions ordered by time descending.
        """
        wanted = set(actions) if actions is not None else None
        interactions = [
            i for i in self._by_user.get(user_id, []) if wanted is None or i.action in wanted
        ]
        interactions.sort(key=lambda i: i.occurred_at, reverse=True)
        if limit is not None:
            interactions = interactions[:limit]
        return interactions

    async def interactions_since(self, since: datetime) -> list[Interaction]:
        """Return every interaction at or after ``since``."""
        return [i for i in self._interactions if i.occurred_at >= since]

    async def interactions_for_products(
        self, product_ids: Iterable[str]
    ) -> list[Interaction]:
        """Return every user's interactions with any of the products."""
        wanted = set(product_ids)
        return [i for i in self._interactions if i.product_id in wanted]

    async def interactions_for_users(
        self,
        user_ids: Iterable[str],
        actions: Iterable[InteractionAction] | None = None,
    ) -> list[Interaction]:
        """Return the interactions of several users in recording order.

        Args:
            user_ids: Users to read.
            actions: Only these actions (all when None).

        Returns:
            Matching interactions.
        """
        users = set(user_ids)
        wanted = set(actions) if actions is not None else None
        return [
            i
            for i in self._interactions
            if i.user_id in users and (wanted is None or i.action in wanted)
        ]

    async def baskets_containing(self, product_id: str) -> list[frozenset[str]]:
        """Return purchase baskets that include the product.

        Purchases without an order id form single-item baskets and never
        contribute co-occurrences.

        Args:
            product_id: Subject product.

        Returns:
            One set of product ids per order.
        """
        baskets: dict[str, set[str]] = defaultdict(set)
        for interaction in self._interactions:
            if interaction.action == InteractionAction.PURCHASE and interaction.order_id:
                baskets[interaction.order_id].add(interaction.product_id)
        return [
            frozenset(items) for _, items in sorted(baskets.items()) if product_id in items
        ]

    async def get_profile(self, user_id: str) -> UserProfile | None:
        """Get a user's profile."""
        return self._profiles.get(user_id)

    def set_profile(self, profile: UserProfile) -> None:
        """Create or replace a user's profile."""
        self._profiles[profile.user_id] = profile


# Global store instance
_history_store: HistorySource | None = None


def get_history_store() -> HistorySource:
    """Get or create the history store.

    Returns:
        The database store when ``catalog_backend`` is "database",
        otherwise a process-local in-memory store.
    """
    global _history_store
    if _history_store is None:
        from storefront.infrastructure.config import settings

        if settings.catalog_backend == "database":
            from storefront.infrastructure.database import get_session_factory
            from storefront.recommendation.repository import SqlHistoryStore

            _history_store = SqlHistoryStore(get_session_factory())
        else:
            _history_store = InMemoryHistoryStore()
        logger.info("History store initialized", backend=settings.catalog_backend)
    return _history_store


def set_history_store(store: HistorySource | None) -> None:
    """Replace the global store (None resets to lazy creation)."""
    global _history_store
    _history_store = store
