"""
backend/fundiconnect/messaging/models.py

Messaging Models

Defines SQLAlchemy models for the messaging system:
- Chat: A conversation between exactly two users. Its id is derived from the
  two participant ids, so each pair has at most one chat.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from fundiconnect.database.base import Base


# ---------------------------------------------------
# Chat Model
# ---------------------------------------------------
class Chat(Base):
    """
    Represents a conversation between two users.
    """

    __tablename__ = "chats"

    id: Mapped[str] = mapped_column(
        String(80),
        primary_key=True,
        comment="Sorted participant ids joined by '_'",
    )
    participant_a: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_chats_participant_a"),
        nullable=False,
        comment="Participant with the lower id",
    )
    participant_b: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_chats_participant_b"),
        nullable=False,
        comment="Participant with the higher id",
    )
    job_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("jobs.id", name="fk_chats_job_id"),
        nullable=True,
        comment="Job whose accepted quote opened the chat, if any",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when the chat was created",
    )
