"""Database-backed user history.

Used with the database backend so that interactions survive restarts
and are shared between API workers. Every driver failure surfaces as
``HistoryUnavailableError``.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.domain.entities import Interaction, InteractionAction, UserProfile
from storefront.domain.exceptions import HistoryUnavailableError
from storefront.recommendation.models import InteractionRecord, UserProfileRecord

logger = structlog.get_logger()


class SqlHistoryStore:
    """History source over the user_interactions and user_profiles tables.

    Example usage:
        history = SqlHistoryStore(get_session_factory())
        recent = await history.interactions_for_user("user-1", limit=50)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def record(self, interaction: Interaction) -> None:
        """Insert an interaction.

        Raises:
            HistoryUnavailableError: On database failure.
        """
        try:
            async with self.session_factory() as session:
                session.add(InteractionRecord.from_entity(interaction))
                await session.commit()
        except SQLAlchemyError as e:
            raise self._unavailable(e, "record") from e

    async def interactions_for_user(
        self,
        user_id: str,
        actions: Iterable[InteractionAction] | None = None,
        limit: int | None = None,
    ) -> list[Interaction]:
        """Return a user's interactions, newest first."""
        conditions = [InteractionRecord.user_id == user_id]
        if actions is not None:
            conditions.append(InteractionRecord.action.in_(sorted(a.value for a in actions)))
        query = (
            select(InteractionRecord)
            .where(and_(*conditions))
            .order_by(InteractionRecord.occurred_at.desc(), InteractionRecord.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return await self._fetch(query, "interactions_for_user")

    async def interactions_since(self, since: datetime) -> list[Interaction]:
        """Return every interaction at or after ``since``."""
        query = (
            select(InteractionRecord)
            .where(InteractionRecord.occurred_at >= since)
            .order_by(InteractionRecord.id)
        )
        return await self._fetch(query, "interactions_since")

    async def interactions_for_products(
        self, product_ids: Iterable[str]
    ) -> list[Interaction]:
        """Return every user's interactions with any of the products."""
        wanted = sorted(set(product_ids))
        if not wanted:
            return []
        query = (
            select(InteractionRecord)
            .where(InteractionRecord.product_id.in_(wanted))
            .order_by(InteractionRecord.id)
        )
        return await self._fetch(query, "interactions_for_products")

    async def interactions_for_users(
        self,
        user_ids: Iterable[str],
        actions: Iterable[InteractionAction] | None = None,
    ) -> list[Interaction]:
        """Return the interactions of several users in recording order."""
        users = sorted(set(user_ids))
        if not users:
            return []
        conditions = [InteractionRecord.user_id.in_(users)]
        if actions is not None:
            conditions.append(InteractionRecord.action.in_(sorted(a.value for a in actions)))
        query = select(InteractionRecord).where(and_(*conditions)).order_by(InteractionRecord.id)
        return await self._fetch(query, "interactions_for_users")

    async def baskets_containing(self, product_id: str) -> list[frozenset[str]]:
        """Return purchase baskets (grouped by order id) that include the product.

        Args:
            product_id: Subject product.

        Returns:
            One set of product ids per order, in order id order.
        """
        purchased = InteractionAction.PURCHASE.value
        orders = (
            select(InteractionRecord.order_id)
            .where(
                InteractionRecord.product_id == product_id,
                InteractionRecord.action == purchased,
                InteractionRecord.order_id.is_not(None),
            )
            .scalar_subquery()
        )
        query = (
            select(InteractionRecord)
            .where(
                InteractionRecord.action == purchased,
                InteractionRecord.order_id.in_(orders),
            )
            .order_by(InteractionRecord.order_id, InteractionRecord.id)
        )
        baskets: dict[str, set[str]] = defaultdict(set)
        for record in await self._fetch_records(query, "baskets_containing"):
            baskets[record.order_id].add(record.product_id)
        return [frozenset(items) for _, items in sorted(baskets.items())]

    async def get_profile(self, user_id: str) -> UserProfile | None:
        """Get a user's profile."""
        query = select(UserProfileRecord).where(UserProfileRecord.user_id == user_id)
        records = await self._fetch_records(query, "get_profile")
        return records[0].to_entity() if records else None

    async def save_profile(self, profile: UserProfile) -> None:
        """Create or replace a user's profile."""
        try:
            async with self.session_factory() as session:
                await session.merge(
                    UserProfileRecord(user_id=profile.user_id, skin_type=profile.skin_type)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise self._unavailable(e, "save_profile") from e

    async def _fetch(self, query: Any, operation: str) -> list[Interaction]:
        return [record.to_entity() for record in await self._fetch_records(query, operation)]

    async def _fetch_records(self, query: Any, operation: str) -> list[Any]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise self._unavailable(e, operation) from e

    def _unavailable(self, error: SQLAlchemyError, operation: str) -> HistoryUnavailableError:
        logger.error("History query failed", operation=operation, error=str(error))
        return HistoryUnavailableError(str(error), operation=operation)
