"""
notification/models.py

Defines the Notification model and NotificationType enum.
Notifications are written after lifecycle changes commit; they are never part
of the lifecycle transaction itself.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from fundiconnect.database.base import Base
from fundiconnect.database.enums import enum_values


class NotificationType(str, enum.Enum):
    NEW_QUOTE_RECEIVED = "new_quote_received"
    QUOTE_STATUS_CHANGED = "quote_status_changed"
    JOB_STATUS_CHANGED = "job_status_changed"
    NEW_REVIEW = "new_review"
    NEW_MESSAGE = "new_message"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the notification",
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_notifications_user_id"),
        nullable=False,
        index=True,
        comment="Recipient of the notification",
    )
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type", values_callable=enum_values),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_entity_id: Mapped[str | None] = mapped_column(
        String(80), nullable=True, comment="Job, quote, review or chat id"
    )
    link: Mapped[str | None] = mapped_column(String(255), nullable=True, comment="Deep link path")
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
