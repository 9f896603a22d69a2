"""SQLAlchemy models for the product catalog.

Defines the products table read by the database-backed catalog store.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront.domain.entities import Product, ProductStatus, Rating
from storefront.infrastructure.database import Base, as_utc


class ProductRecord(Base):
    """Product row in the catalog.

    Attributes:
        id: Unique product identifier.
        name: Display name.
        description: Long description.
        short_description: One-line description.
        price: Price in minor currency units.
        compare_at_price: Optional original price.
        category: Top-level category.
        sub_category: Optional sub-category.
        brand: Brand name.
        slug: URL slug.
        images: Image URLs (JSON list).
        ingredients: Key ingredients (JSON list).
        skin_types: Declared compatible skin types (JSON list).
        inventory: Units in stock.
        is_new: New arrival flag.
        is_bestseller: Bestseller flag.
        featured: Featured flag.
        average_rating: Average rating (0.0-5.0).
        review_count: Number of reviews.
        wishlist_count: Number of wishlist entries.
        status: Publication status.
        created_at: Creation timestamp.
        published_at: Publish timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    short_description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    price: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    compare_at_price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    sub_category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    brand: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    ingredients: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    skin_types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    inventory: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_new: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_bestseller: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wishlist_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProductStatus.ACTIVE.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductRecord(id={self.id}, name={self.name[:30]})>"

    @classmethod
    def from_entity(cls, product: Product) -> "ProductRecord":
        """Build a row from a domain product.

        Args:
            product: Domain product.

        Returns:
            Unsaved record.
        """
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            short_description=product.short_description,
            price=product.price,
            compare_at_price=product.compare_at_price,
            category=product.category,
            sub_category=product.sub_category,
            brand=product.brand,
            slug=product.slug,
            images=list(product.images),
            ingredients=list(product.ingredients),
            skin_types=list(product.skin_types),
            inventory=product.inventory,
            is_new=product.is_new,
            is_bestseller=product.is_bestseller,
            featured=product.featured,
            average_rating=product.rating.average,
            review_count=product.rating.count,
            wishlist_count=product.wishlist_count,
            status=product.status.value,
            created_at=product.created_at,
            published_at=product.published_at,
        )

    def to_entity(self) -> Product:
        """Convert to domain product.

        Returns:
            Immutable product.
        """
        return Product(
            id=self.id,
            name=self.name,
            description=self.description or "",
            short_description=self.short_description or "",
            price=self.price,
            compare_at_price=self.compare_at_price,
            category=self.category,
            sub_category=self.sub_category,
            brand=self.brand,
            slug=self.slug or "",
            images=tuple(self.images or ()),
            ingredients=tuple(self.ingredients or ()),
            skin_types=tuple(self.skin_types or ()),
            inventory=self.inventory,
            is_new=self.is_new,
            is_bestseller=self.is_bestseller,
            featured=self.featured,
            rating=Rating(average=float(self.average_rating), count=self.review_count),
            wishlist_count=self.wishlist_count,
            status=ProductStatus(self.status),
            created_at=as_utc(self.created_at),  # type: ignore[arg-type]
            published_at=as_utc(self.published_at),
        )
