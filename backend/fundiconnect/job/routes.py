"""
backend/fundiconnect/job/routes.py

Job Routes
Defines API endpoints for job lifecycle management:
- Post a job (Authenticated Client)
- List own jobs (Authenticated Client)
- Read a job with its quotes (Authenticated users)
- Start, complete or cancel a job (Provider / Client)
- Administrative status changes (Admin)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.dependencies import (
    PaginationParams,
    get_current_user,
    get_current_user_with_role,
)
from fundiconnect.core.limiter import limiter
from fundiconnect.database.enums import UserRole
from fundiconnect.database.models import User
from fundiconnect.database.session import get_db
from fundiconnect.job import schemas
from fundiconnect.job.services import JobLifecycleService
from fundiconnect.lifecycle.services import LifecycleOrchestrator, get_lifecycle
from fundiconnect.quote.services import QuoteService

router = APIRouter(prefix="/jobs", tags=["Jobs"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
LifecycleDep = Annotated[LifecycleOrchestrator, Depends(get_lifecycle)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]
AuthenticatedClientDep = Annotated[User, Depends(get_current_user_with_role(UserRole.CLIENT))]
AuthenticatedProviderDep = Annotated[User, Depends(get_current_user_with_role(UserRole.PROVIDER))]
AuthenticatedAdminDep = Annotated[User, Depends(get_current_user_with_role(UserRole.ADMIN))]


# ---------------------------------------------------
# Client Endpoints
# ---------------------------------------------------
@router.post(
    "",
    response_model=schemas.JobRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post Job",
    description="Create a new job in status 'open' (authenticated client only).",
)
@limiter.limit("10/minute")
async def create_job(
    request: Request,
    payload: schemas.JobCreate,
    db: DBDep,
    current_user: AuthenticatedClientDep,
) -> schemas.JobRead:
    return await JobLifecycleService(db).create_job(client_id=current_user.id, payload=payload)


@router.get(
    "/my",
    response_model=list[schemas.JobRead],
    status_code=status.HTTP_200_OK,
    summary="My Jobs",
    description="List jobs posted by the authenticated client, newest first.",
)
async def list_my_jobs(
    db: DBDep,
    current_user: AuthenticatedClientDep,
    pagination: PaginationParams = Depends(),
) -> list[schemas.JobRead]:
    return await JobLifecycleService(db).list_jobs_for_client(
        client_id=current_user.id, skip=pagination.skip, limit=pagination.limit
    )


@router.get(
    "/{job_id}",
    response_model=schemas.JobDetail,
    status_code=status.HTTP_200_OK,
    summary="Get Job",
    description="Read a job with the quotes the current user may see.",
)
async def get_job(
    job_id: UUID,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.JobDetail:
    job = await JobLifecycleService(db).get_job(job_id)
    quotes = await QuoteService(db).list_quotes_for_viewer(
        job_id, viewer_id=current_user.id, viewer_role=current_user.role
    )
    return schemas.JobDetail(**job.model_dump(), quotes=quotes)


@router.put(
    "/{job_id}/complete",
    response_model=schemas.JobRead,
    status_code=status.HTTP_200_OK,
    summary="Complete Job",
    description="Mark an assigned or in-progress job as completed (job owner only).",
)
@limiter.limit("10/minute")
async def complete_job(
    request: Request,
    job_id: UUID,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedClientDep,
) -> schemas.JobRead:
    result = await lifecycle.mark_job_completed(job_id=job_id, acting_client_id=current_user.id)
    return result.unwrap()


@router.put(
    "/{job_id}/cancel",
    response_model=schemas.JobRead,
    status_code=status.HTTP_200_OK,
    summary="Cancel Job",
    description="Cancel a job that is not yet completed or cancelled (job owner only).",
)
@limiter.limit("10/minute")
async def cancel_job(
    request: Request,
    job_id: UUID,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedClientDep,
) -> schemas.JobRead:
    result = await lifecycle.cancel_job(job_id=job_id, acting_client_id=current_user.id)
    return result.unwrap()


# ---------------------------------------------------
# Provider Endpoints
# ---------------------------------------------------
@router.put(
    "/{job_id}/start",
    response_model=schemas.JobRead,
    status_code=status.HTTP_200_OK,
    summary="Start Job",
    description="Move an assigned job to 'in_progress' (assigned provider only).",
)
@limiter.limit("10/minute")
async def start_job(
    request: Request,
    job_id: UUID,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedProviderDep,
) -> schemas.JobRead:
    result = await lifecycle.start_job(job_id=job_id, acting_provider_id=current_user.id)
    return result.unwrap()


# ---------------------------------------------------
# Admin Endpoints
# ---------------------------------------------------
@router.put(
    "/{job_id}/status",
    response_model=schemas.JobRead,
    status_code=status.HTTP_200_OK,
    summary="Set Job Status",
    description="Apply any valid status transition, e.g. to open or resolve a dispute (admin only).",
)
async def set_job_status(
    job_id: UUID,
    payload: schemas.JobStatusUpdate,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedAdminDep,
) -> schemas.JobRead:
    result = await lifecycle.set_job_status(
        job_id=job_id,
        new_status=payload.status,
        assigned_provider_id=payload.assigned_provider_id,
    )
    return result.unwrap()
