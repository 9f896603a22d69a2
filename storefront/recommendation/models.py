"""SQLAlchemy models for user history.

Interactions and profiles persisted for the database backend.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from storefront.domain.entities import Interaction, InteractionAction, UserProfile
from storefront.infrastructure.database import Base, as_utc


class InteractionRecord(Base):
    """One user interaction with a product.

    Attributes:
        id: Insertion sequence, used to keep equal timestamps stable.
        user_id: Acting user.
        product_id: Product interacted with.
        action: InteractionAction value.
        occurred_at: Event time.
        session_id: Browsing session.
        order_id: Order grouping purchases into baskets.
        details: Free-form context (``metadata`` column).
    """

    __tablename__ = "user_interactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    details: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<InteractionRecord(user={self.user_id}, product={self.product_id}, {self.action})>"

    @classmethod
    def from_entity(cls, interaction: Interaction) -> "InteractionRecord":
        return cls(
            user_id=interaction.user_id,
            product_id=interaction.product_id,
            action=interaction.action.value,
            occurred_at=interaction.occurred_at,
            session_id=interaction.session_id,
            order_id=interaction.order_id,
            details=dict(interaction.metadata),
        )

    def to_entity(self) -> Interaction:
        return Interaction(
            user_id=self.user_id,
            product_id=self.product_id,
            action=InteractionAction(self.action),
            occurred_at=as_utc(self.occurred_at),  # type: ignore[arg-type]
            session_id=self.session_id,
            order_id=self.order_id,
            metadata=dict(self.details or {}),
        )


class UserProfileRecord(Base):
    """Personalization attributes of a user."""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    skin_type: Mapped[str | None] = mapped_column(String(32), nullable=True)

    def to_entity(self) -> UserProfile:
        return UserProfile(user_id=self.user_id, skin_type=self.skin_type)
