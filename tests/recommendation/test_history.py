"""Tests for the in-memory history store."""

from datetime import timedelta

import pytest

from storefront.domain.entities import Interaction, InteractionAction, UserProfile
from storefront.recommendation.history import (
    InMemoryHistoryStore,
    get_history_store,
    set_history_store,
)


class TestInMemoryHistoryStore:
    """Tests for InMemoryHistoryStore."""

    @pytest.mark.asyncio
    async def test_record_and_read_newest_first(self, history, now) -> None:
        """Interactions come back newest first."""
        await history.record(
            Interaction("u1", "a", InteractionAction.VIEW, occurred_at=now - timedelta(days=3))
        )
        await history.record(
            Interaction("u1", "b", InteractionAction.CLICK, occurred_at=now - timedelta(days=1))
        )
        await history.record(Interaction("u2", "c", InteractionAction.VIEW, occurred_at=now))

        interactions = await history.interactions_for_user("u1")
        assert [i.product_id for i in interactions] == ["b", "a"]
        assert len(history) == 3

    @pytest.mark.asyncio
    async def test_filter_by_action_and_limit(self, interact, history) -> None:
        """Action filter and limit are applied together."""
        interact("u1", "a", InteractionAction.PURCHASE, days=5, order_id="o1")
        interact("u1", "b", InteractionAction.VIEW, days=4)
        interact("u1", "c", InteractionAction.PURCHASE, days=1, order_id="o2")

        purchases = await history.interactions_for_user(
            "u1", actions=[InteractionAction.PURCHASE], limit=1
        )
        assert [i.product_id for i in purchases] == ["c"]

    @pytest.mark.asyncio
    async def test_unknown_user_has_no_history(self, history) -> None:
        """Missing history is empty, not an error."""
        assert await history.interactions_for_user("nobody") == []
        assert await history.get_profile("nobody") is None

    @pytest.mark.asyncio
    async def test_interactions_since(self, interact, history, now) -> None:
        """Only interactions inside the window are returned."""
        interact("u1", "a", InteractionAction.VIEW, days=40)
        interact("u2", "b", InteractionAction.VIEW, days=2)

        recent = await history.interactions_since(now - timedelta(days=30))
        assert [i.product_id for i in recent] == ["b"]

    @pytest.mark.asyncio
    async def test_baskets_group_purchases_by_order(self, interact, history) -> None:
        """Baskets are per order; purchases without an order are ignored."""
        interact("u1", "a", InteractionAction.PURCHASE, order_id="o1")
        interact("u1", "b", InteractionAction.PURCHASE, order_id="o1")
        interact("u2", "a", InteractionAction.PURCHASE, order_id="o2")
        interact("u2", "c", InteractionAction.PURCHASE, order_id="o2")
        interact("u3", "a", InteractionAction.PURCHASE)
        interact("u3", "d", InteractionAction.ADD_TO_CART, order_id="o3")

        baskets = await history.baskets_containing("a")
        assert baskets == [frozenset({"a", "b"}), frozenset({"a", "c"})]
        assert await history.baskets_containing("d") == []

    @pytest.mark.asyncio
    async def test_profiles(self, history) -> None:
        """Profiles can be set and replaced."""
        history.set_profile(UserProfile("u1", skin_type="DRY"))
        history.set_profile(UserProfile("u1", skin_type="OILY"))
        profile = await history.get_profile("u1")
        assert profile is not None
        assert profile.skin_type == "OILY"


class TestHistorySingleton:
    """Tests for the module-level store."""

    def test_lazy_creation(self) -> None:
        """The default store is created on first use and reused."""
        store = get_history_store()
        assert isinstance(store, InMemoryHistoryStore)
        assert get_history_store() is store

    def test_replace(self) -> None:
        """set_history_store swaps the global instance."""
        custom = InMemoryHistoryStore()
        set_history_store(custom)
        assert get_history_store() is custom
