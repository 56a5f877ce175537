"""
job/models.py

Defines the Job model and associated enums.
- Represents service requests posted by clients and quoted on by providers
- Tracks status transitions, provider assignment, and lifecycle timestamps
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from fundiconnect.database.base import Base
from fundiconnect.database.enums import enum_values


# ENUM: Job Status
class JobStatus(str, enum.Enum):
    OPEN = "open"
    PENDING_QUOTES = "pending_quotes"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


# ENUM: Job Urgency
class JobUrgency(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Statuses in which a job takes new quotes and can have one accepted
QUOTABLE_STATUSES = frozenset({JobStatus.OPEN, JobStatus.PENDING_QUOTES})

# Statuses that carry an assigned provider
PROVIDER_STATUSES = frozenset({JobStatus.ASSIGNED, JobStatus.IN_PROGRESS, JobStatus.COMPLETED})

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.CANCELLED})


# MODEL: Job
class Job(Base):
    __tablename__ = "jobs"

    # Basic Identifiers & Foreign Keys
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the job",
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_jobs_client_id"),
        nullable=False,
        index=True,
        comment="Client who posted the job",
    )
    assigned_provider_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", name="fk_jobs_assigned_provider_id"),
        nullable=True,
        comment="Provider assigned once a quote is accepted",
    )
    accepted_quote_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        comment="Quote that was accepted for this job",
    )

    # Description
    title: Mapped[str] = mapped_column(String(200), nullable=False, comment="Job title")
    description: Mapped[str] = mapped_column(Text, nullable=False, comment="Job description")
    service_category: Mapped[str] = mapped_column(
        String(100), nullable=False, comment="Service category (e.g. Plumbing)"
    )
    location: Mapped[str] = mapped_column(String(255), nullable=False, comment="Job location")
    budget: Mapped[float | None] = mapped_column(
        Float, nullable=True, comment="Optional budget set by the client"
    )
    urgency: Mapped[JobUrgency] = mapped_column(
        Enum(JobUrgency, name="job_urgency", values_callable=enum_values),
        default=JobUrgency.MEDIUM,
        nullable=False,
        comment="How soon the client needs the work done",
    )
    deadline: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Optional completion deadline"
    )

    # Job Status & Counters
    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, name="job_status", values_callable=enum_values),
        default=JobStatus.OPEN,
        nullable=False,
        index=True,
        comment="Current status of the job",
    )
    quotes_received: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
        comment="Number of quotes submitted for the job",
    )

    # Audit Fields
    posted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when the job was posted",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp of the last status or field change",
    )
