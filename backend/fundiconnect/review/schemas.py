"""
backend/fundiconnect/review/schemas.py

Review Schemas
Defines Pydantic schemas for job reviews:
- ReviewWrite: Client-submitted sub-ratings and comment
- ReviewRead: Stored review
- ReviewSubmission: A new review together with the committed provider aggregate
- ReviewStatus: Whether the current client already reviewed a job
- ProviderRatingSummary: Aggregated rating statistics for a provider
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

SubRating = Annotated[int, Field(ge=1, le=5, strict=True, description="Score from 1 to 5")]


# ---------------------------------------------------
# Schema for Creating a Review (Client)
# ---------------------------------------------------
class ReviewWrite(BaseModel):
    """Payload schema used when submitting a review for a completed job."""

    quality_rating: SubRating
    timeliness_rating: SubRating
    professionalism_rating: SubRating
    comment: str = Field(..., min_length=1, description="Written feedback for the provider")


# ---------------------------------------------------
# Schema for Reading a Review
# ---------------------------------------------------
class ReviewRead(BaseModel):
    id: UUID = Field(..., description="Review ID")
    job_id: UUID
    provider_id: UUID
    client_id: UUID
    quality_rating: int
    timeliness_rating: int
    professionalism_rating: int
    rating: float = Field(..., description="Mean of the three sub-ratings")
    comment: str
    review_date: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------
# Aggregates
# ---------------------------------------------------
class ProviderRatingSummary(BaseModel):
    """Running mean rating and review count of a provider."""

    provider_id: UUID = Field(..., description="Provider user ID")
    rating: float = Field(..., description="Mean of all committed review ratings")
    reviews_count: int = Field(..., description="Number of committed reviews")


class ReviewSubmission(BaseModel):
    review: ReviewRead
    aggregate: ProviderRatingSummary


class ReviewStatus(BaseModel):
    job_id: UUID
    has_reviewed: bool
