"""
backend/fundiconnect/database/models.py

Core SQLAlchemy ORM Models

Defines:
- User: Platform user accounts with role-based access (identity is issued elsewhere)

Imports every domain model so a single import registers all tables:
- ProviderProfile (rating aggregate)
- Job, Quote, Review
- Chat, Notification
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fundiconnect.database.base import Base
from fundiconnect.database.enums import UserRole
from fundiconnect.provider.models import ProviderProfile
from fundiconnect.job.models import Job
from fundiconnect.quote.models import Quote
from fundiconnect.review.models import Review
from fundiconnect.messaging.models import Chat
from fundiconnect.notification.models import Notification

__all__ = ["User", "ProviderProfile", "Job", "Quote", "Review", "Chat", "Notification"]


# ---------------------------------------------------
# User Model: Platform User
# ---------------------------------------------------
class User(Base):
    __tablename__ = "users"

    # -------------------------------------
    # Fields
    # -------------------------------------
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the user",
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, comment="User's email address"
    )
    full_name: Mapped[str | None] = mapped_column(
        String(200), nullable=True, comment="User's display name"
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        comment="User role (CLIENT, PROVIDER, ADMIN)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        comment="Timestamp when the user was created",
    )

    # -------------------------------------
    # Relationships
    # -------------------------------------

    # One-to-One: A user has a provider profile if role is PROVIDER
    provider_profile: Mapped[Optional["ProviderProfile"]] = relationship(
        "ProviderProfile", back_populates="user", uselist=False
    )
