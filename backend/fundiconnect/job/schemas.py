"""
backend/fundiconnect/job/schemas.py

Job Schemas
Pydantic schemas for job-related operations:
- Job creation (Authenticated Client)
- Administrative status changes
- Reading job details (Authenticated users)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fundiconnect.job.models import JobStatus, JobUrgency
from fundiconnect.quote.schemas import QuoteRead


# ---------------------------------------------------
# Job Creation Schema (Authenticated Client)
# ---------------------------------------------------
class JobCreate(BaseModel):
    """Schema used when a client posts a new job."""

    title: str = Field(..., min_length=3, max_length=200, description="Short job title")
    description: str = Field(..., min_length=1, description="What needs to be done")
    service_category: str = Field(
        ..., min_length=1, max_length=100, description="Service category, e.g. Plumbing"
    )
    location: str = Field(..., min_length=1, max_length=255, description="Where the work is")
    budget: float | None = Field(None, gt=0, description="Optional budget")
    urgency: JobUrgency = Field(JobUrgency.MEDIUM, description="How soon the work is needed")
    deadline: datetime | None = Field(None, description="Optional completion deadline")

    @field_validator("title", "description", "service_category", "location")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


# ---------------------------------------------------
# Status Update Schema (Admin)
# ---------------------------------------------------
class JobStatusUpdate(BaseModel):
    """Administrative status change, e.g. opening or resolving a dispute."""

    status: JobStatus = Field(..., description="Target job status")
    assigned_provider_id: UUID | None = Field(
        None, description="Provider to assign; required when moving to 'assigned'"
    )


# ---------------------------------------------------
# Read Job Schema (Authenticated Output)
# ---------------------------------------------------
class JobRead(BaseModel):
    """Schema returned when reading a job."""

    id: UUID = Field(..., description="Job unique identifier")
    client_id: UUID = Field(..., description="Client who posted the job")
    title: str
    description: str
    service_category: str
    location: str
    budget: float | None = None
    urgency: JobUrgency
    deadline: datetime | None = None

    status: JobStatus = Field(..., description="Current job status")
    assigned_provider_id: UUID | None = Field(None, description="Assigned provider, if any")
    accepted_quote_id: UUID | None = Field(None, description="Accepted quote, if any")
    quotes_received: int = Field(..., description="Number of quotes submitted")

    posted_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobDetail(JobRead):
    """Job with all of its quotes, newest first."""

    quotes: list[QuoteRead] = Field(default_factory=list, description="Quotes for this job")
