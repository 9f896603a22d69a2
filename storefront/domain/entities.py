"""Catalog and user-history records read by the query layer.

Products are read-only to this service; interactions and profiles are
owned by the history source and only appended to by tracking.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from storefront.domain.base import ValueObject


class ProductStatus(str, Enum):
    """Publication status of a product."""

    ACTIVE = "ACTIVE"
    DRAFT = "DRAFT"
    ARCHIVED = "ARCHIVED"


class SkinType(str, Enum):
    """Declared skin types."""

    OILY = "OILY"
    DRY = "DRY"
    COMBINATION = "COMBINATION"
    SENSITIVE = "SENSITIVE"
    NORMAL = "NORMAL"


class InteractionAction(str, Enum):
    """User actions recorded in the history source."""

    VIEW = "VIEW"
    CLICK = "CLICK"
    ADD_TO_CART = "ADD_TO_CART"
    ADD_TO_WISHLIST = "ADD_TO_WISHLIST"
    PURCHASE = "PURCHASE"

    @classmethod
    def parse(cls, value: str) -> "InteractionAction | None":
        """Parse a tracking action name (e.g. "add_to_cart", "wishlist").

        Args:
            value: Raw action string.

        Returns:
            Matching action or None.
        """
        normalized = value.strip().upper()
        if normalized == "WISHLIST":
            normalized = "ADD_TO_WISHLIST"
        try:
            return cls(normalized)
        except ValueError:
            return None


BROWSING_ACTIONS = frozenset(
    {
        InteractionAction.VIEW,
        InteractionAction.CLICK,
        InteractionAction.ADD_TO_CART,
        InteractionAction.ADD_TO_WISHLIST,
    }
)

# Actions that show intent to own a product rather than just look at it.
COMMITMENT_ACTIONS = frozenset(
    {
        InteractionAction.PURCHASE,
        InteractionAction.ADD_TO_CART,
        InteractionAction.ADD_TO_WISHLIST,
    }
)

# Relative strength of each action as an interest signal.
ACTION_WEIGHTS: dict[InteractionAction, float] = {
    InteractionAction.PURCHASE: 1.0,
    InteractionAction.ADD_TO_CART: 0.8,
    InteractionAction.ADD_TO_WISHLIST: 0.6,
    InteractionAction.CLICK: 0.4,
    InteractionAction.VIEW: 0.3,
}


@dataclass(frozen=True)
class Rating(ValueObject):
    """Aggregate review rating.

    Attributes:
        average: Average rating (0.0-5.0).
        count: Number of reviews.
    """

    average: float = 0.0
    count: int = 0

    @property
    def is_rated(self) -> bool:
        """Whether at least one review exists."""
        return self.count > 0


@dataclass(frozen=True)
class Product:
    """Product record as seen by the query layer.

    Attributes:
        id: Opaque product identifier.
        name: Display name.
        description: Long description.
        short_description: One-line description.
        price: Price in minor currency units.
        compare_at_price: Optional original price (same unit, any relation to price).
        category: Top-level category.
        sub_category: Optional sub-category.
        brand: Brand name.
        inventory: Units in stock.
        is_new: New arrival flag.
        is_bestseller: Bestseller flag.
        featured: Featured flag.
        rating: Aggregate review rating.
        wishlist_count: Number of wishlist entries.
        created_at: Creation timestamp.
        published_at: Publish timestamp, if published.
        slug: URL slug.
        images: Image URLs.
        ingredients: Key ingredients.
        skin_types: Explicitly declared compatible skin types.
        status: Publication status.
    """

    id: str
    name: str
    price: int
    category: str
    brand: str
    description: str = ""
    short_description: str = ""
    compare_at_price: int | None = None
    sub_category: str | None = None
    inventory: int = 0
    is_new: bool = False
    is_bestseller: bool = False
    featured: bool = False
    rating: Rating = field(default_factory=Rating)
    wishlist_count: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    published_at: datetime | None = None
    slug: str = ""
    images: tuple[str, ...] = ()
    ingredients: tuple[str, ...] = ()
    skin_types: tuple[str, ...] = ()
    status: ProductStatus = ProductStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        """Whether the product can appear in results."""
        return self.status == ProductStatus.ACTIVE

    @property
    def reference_time(self) -> datetime:
        """Timestamp recency is measured from."""
        return self.published_at or self.created_at

    @property
    def attribute_tokens(self) -> frozenset[str]:
        """Ingredient and attribute tokens used for similarity."""
        tokens = {f"ingredient:{i.strip().lower()}" for i in self.ingredients if i.strip()}
        tokens.update(f"skin:{s.upper()}" for s in self.skin_types)
        if self.sub_category:
            tokens.add(f"sub:{self.sub_category}")
        return frozenset(tokens)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "short_description": self.short_description,
            "price": self.price,
            "compare_at_price": self.compare_at_price,
            "category": self.category,
            "sub_category": self.sub_category,
            "brand": self.brand,
            "slug": self.slug,
            "images": list(self.images),
            "ingredients": list(self.ingredients),
            "skin_types": list(self.skin_types),
            "featured": self.featured,
            "is_new": self.is_new,
            "is_bestseller": self.is_bestseller,
            "inventory": self.inventory,
            "average_rating": round(self.rating.average, 1),
            "review_count": self.rating.count,
            "wishlist_count": self.wishlist_count,
            "created_at": self.created_at,
            "published_at": self.published_at,
        }


@dataclass(frozen=True)
class Interaction:
    """A single user interaction with a product.

    Attributes:
        user_id: Acting user.
        product_id: Product interacted with.
        action: Kind of interaction.
        occurred_at: When it happened.
        session_id: Optional browsing session.
        order_id: Order the purchase belongs to (groups baskets).
        metadata: Free-form context.
    """

    user_id: str
    product_id: str
    action: InteractionAction
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    order_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class UserProfile:
    """Profile attributes used for personalization."""

    user_id: str
    skin_type: str | None = None
