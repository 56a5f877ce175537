"""
provider/models.py

Defines SQLAlchemy models specific to the Provider module:
- ProviderProfile: Business details and the rating aggregate of a provider.

The aggregate (`rating`, `reviews_count`) is written only by the review
aggregator, in the same transaction that inserts the review.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundiconnect.database.base import Base

if TYPE_CHECKING:
    from fundiconnect.database.models import User


# ------------------------------------------------------
# ProviderProfile Model
# ------------------------------------------------------
class ProviderProfile(Base):
    """
    Profile information for users with the 'PROVIDER' role,
    including the running mean of all review ratings received.
    """

    __tablename__ = "provider_profiles"
    __table_args__ = (
        CheckConstraint("reviews_count >= 0", name="ck_provider_profiles_reviews_count"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the provider profile",
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_provider_profiles_user_id"),
        unique=True,
        nullable=False,
        comment="Reference to the associated user",
    )
    business_name: Mapped[str] = mapped_column(
        String(200), nullable=False, comment="Public business name of the provider"
    )

    # Rating aggregate
    rating: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default="0",
        comment="Running mean of all committed review ratings",
    )
    reviews_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Number of reviews folded into the running mean",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        comment="Timestamp when the profile was last updated",
    )

    user: Mapped["User"] = relationship("User", back_populates="provider_profile")
