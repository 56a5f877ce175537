"""
quote/models.py

Defines the Quote model and QuoteStatus enum.
- A provider's priced response to a job
- `client_id` is copied from the job row when the quote is created and is the
  field accept/reject authorization checks against
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, Float, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from fundiconnect.database.base import Base
from fundiconnect.database.enums import enum_values


# ENUM: Quote Status
class QuoteStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# MODEL: Quote
class Quote(Base):
    __tablename__ = "quotes"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_quotes_amount_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the quote",
    )
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("jobs.id", name="fk_quotes_job_id"),
        nullable=False,
        index=True,
        comment="Job this quote is for",
    )
    provider_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_quotes_provider_id"),
        nullable=False,
        index=True,
        comment="Provider who submitted the quote",
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_quotes_client_id"),
        nullable=False,
        comment="Owner of the job, copied from the job at creation",
    )

    amount: Mapped[float] = mapped_column(Float, nullable=False, comment="Quoted price")
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, comment="ISO currency code, e.g. KES"
    )
    message_to_client: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Provider's message accompanying the quote"
    )
    status: Mapped[QuoteStatus] = mapped_column(
        Enum(QuoteStatus, name="quote_status", values_callable=enum_values),
        default=QuoteStatus.PENDING,
        nullable=False,
        comment="pending until the client accepts or rejects it",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when the quote was submitted",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when the quote status last changed",
    )
