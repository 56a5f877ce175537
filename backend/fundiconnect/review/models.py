"""
review/models.py

Defines the Review model for storing job-related feedback.
- At most one review per (job, client) pair, enforced by a unique constraint.
- Three 1-5 sub-ratings; `rating` is their arithmetic mean.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import CheckConstraint

from fundiconnect.database.base import Base


class Review(Base):
    """
    Review submitted by a client about a provider for a specific job.
    """

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("job_id", "client_id", name="uq_reviews_job_client"),
        CheckConstraint("quality_rating BETWEEN 1 AND 5", name="quality_rating_range"),
        CheckConstraint("timeliness_rating BETWEEN 1 AND 5", name="timeliness_rating_range"),
        CheckConstraint(
            "professionalism_rating BETWEEN 1 AND 5", name="professionalism_rating_range"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the review",
    )

    # Foreign Keys
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("jobs.id", name="fk_reviews_job_id"),
        nullable=False,
        comment="ID of the reviewed job",
    )
    provider_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_reviews_provider_id"),
        nullable=False,
        index=True,
        comment="User ID of the provider being reviewed",
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_reviews_client_id"),
        nullable=False,
        comment="User ID of the client who submitted the review",
    )

    # Review content
    quality_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    timeliness_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    professionalism_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Mean of the three sub-ratings"
    )
    comment: Mapped[str] = mapped_column(Text, nullable=False, comment="Review text")

    # Timestamp
    review_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="Timestamp when the review was created",
    )
