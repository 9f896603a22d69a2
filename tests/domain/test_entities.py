"""Tests for domain entities."""

from dataclasses import FrozenInstanceError
from datetime import timedelta

import pytest

from storefront.domain.entities import (
    ACTION_WEIGHTS,
    BROWSING_ACTIONS,
    InteractionAction,
    ProductStatus,
    Rating,
)


class TestProduct:
    """Tests for Product."""

    def test_only_active_products_are_active(self, make_product) -> None:
        """Drafts and archived products are not candidates."""
        assert make_product("a").is_active
        assert not make_product("b", status=ProductStatus.DRAFT).is_active
        assert not make_product("c", status=ProductStatus.ARCHIVED).is_active

    def test_reference_time_prefers_published(self, make_product, now) -> None:
        """Recency is measured from publication when available."""
        created = now - timedelta(days=10)
        published = now - timedelta(days=3)
        assert make_product("a", created_at=created, published_at=published).reference_time == published
        assert make_product("b", created_at=created, published_at=None).reference_time == created

    def test_attribute_tokens(self, make_product) -> None:
        """Ingredients, skin types and sub-category become tokens."""
        product = make_product(
            "a",
            ingredients=(" 히알루론산 ", ""),
            skin_types=("dry",),
            sub_category="세럼",
        )
        assert product.attribute_tokens == frozenset(
            {"ingredient:히알루론산", "skin:DRY", "sub:세럼"}
        )

    def test_to_dict(self, make_product) -> None:
        """Dictionary form flattens the rating."""
        data = make_product("a", rating=Rating(average=4.56, count=12), images=("x.jpg",)).to_dict()
        assert data["average_rating"] == 4.6
        assert data["review_count"] == 12
        assert data["images"] == ["x.jpg"]

    def test_immutable(self, make_product) -> None:
        """Products cannot be modified."""
        product = make_product("a")
        with pytest.raises(FrozenInstanceError):
            product.price = 1  # type: ignore[misc]


class TestRating:
    """Tests for Rating."""

    def test_unrated(self) -> None:
        """Zero reviews means unrated, whatever the average."""
        assert not Rating().is_rated
        assert not Rating(average=5.0, count=0).is_rated
        assert Rating(average=3.0, count=1).is_rated


class TestInteractionAction:
    """Tests for InteractionAction."""

    def test_parse(self) -> None:
        """Tracking spellings map to actions."""
        assert InteractionAction.parse("view") == InteractionAction.VIEW
        assert InteractionAction.parse(" Add_To_Cart ") == InteractionAction.ADD_TO_CART
        assert InteractionAction.parse("wishlist") == InteractionAction.ADD_TO_WISHLIST
        assert InteractionAction.parse("purchase") == InteractionAction.PURCHASE
        assert InteractionAction.parse("teleport") is None

    def test_weights(self) -> None:
        """Purchases are the strongest signal and every action is weighted."""
        assert set(ACTION_WEIGHTS) == set(InteractionAction)
        assert max(ACTION_WEIGHTS, key=ACTION_WEIGHTS.__getitem__) == InteractionAction.PURCHASE
        assert InteractionAction.PURCHASE not in BROWSING_ACTIONS
