"""
backend/fundiconnect/review/routes.py

Review Routes
Defines API endpoints related to job reviews:
- Submit a review for a completed job (Authenticated Client)
- Check whether the current client already reviewed a job (Authenticated Client)
- Fetch all reviews received by a provider (Public)
- Get the rating summary of a provider (Public)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.dependencies import PaginationParams, get_current_user_with_role
from fundiconnect.core.limiter import limiter
from fundiconnect.database.enums import UserRole
from fundiconnect.database.models import User
from fundiconnect.database.session import get_db
from fundiconnect.lifecycle.services import LifecycleOrchestrator, get_lifecycle
from fundiconnect.review import schemas
from fundiconnect.review.services import ReviewAggregator

router = APIRouter(prefix="/reviews", tags=["Reviews"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
LifecycleDep = Annotated[LifecycleOrchestrator, Depends(get_lifecycle)]
AuthenticatedClientDep = Annotated[User, Depends(get_current_user_with_role(UserRole.CLIENT))]


# ----------------------------------------------------
# Public Review Endpoints
# ----------------------------------------------------
@router.get(
    "/provider/{provider_id}",
    response_model=list[schemas.ReviewRead],
    status_code=status.HTTP_200_OK,
    summary="Provider Reviews",
    description="Fetch reviews received by a provider, newest first (publicly accessible).",
)
@limiter.limit("30/minute")
async def get_provider_reviews(
    request: Request,
    provider_id: UUID,
    db: DBDep,
    pagination: PaginationParams = Depends(),
) -> list[schemas.ReviewRead]:
    return await ReviewAggregator(db).list_reviews_for_provider(
        provider_id=provider_id, skip=pagination.skip, limit=pagination.limit
    )


@router.get(
    "/summary/{provider_id}",
    response_model=schemas.ProviderRatingSummary,
    status_code=status.HTTP_200_OK,
    summary="Provider Rating Summary",
    description="Return the mean rating and number of reviews of a provider (publicly accessible).",
)
@limiter.limit("30/minute")
async def get_provider_rating_summary(
    request: Request,
    provider_id: UUID,
    db: DBDep,
) -> schemas.ProviderRatingSummary:
    return await ReviewAggregator(db).get_rating_summary(provider_id)


# ----------------------------------------------------
# Authenticated Review Endpoints (Client)
# ----------------------------------------------------
@router.post(
    "/{job_id}",
    response_model=schemas.ReviewSubmission,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Review",
    description="Review the provider of a completed job (job owner only, once per job).",
)
@limiter.limit("5/minute")
async def submit_review(
    request: Request,
    job_id: UUID,
    payload: schemas.ReviewWrite,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedClientDep,
) -> schemas.ReviewSubmission:
    result = await lifecycle.submit_review(
        job_id=job_id,
        acting_client_id=current_user.id,
        quality_rating=payload.quality_rating,
        timeliness_rating=payload.timeliness_rating,
        professionalism_rating=payload.professionalism_rating,
        comment=payload.comment,
    )
    return result.unwrap()


@router.get(
    "/{job_id}/status",
    response_model=schemas.ReviewStatus,
    status_code=status.HTTP_200_OK,
    summary="Review Status",
    description="Whether the current client has already reviewed this job.",
)
async def get_review_status(
    job_id: UUID,
    db: DBDep,
    current_user: AuthenticatedClientDep,
) -> schemas.ReviewStatus:
    has_reviewed = await ReviewAggregator(db).has_review(job_id, current_user.id)
    return schemas.ReviewStatus(job_id=job_id, has_reviewed=has_reviewed)
