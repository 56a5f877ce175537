"""
backend/fundiconnect/quote/routes.py

Quote Routes
- Submit a quote for a job (Authenticated Provider)
- List the quotes of a job (Authenticated users)
- Read a single quote (Client or Provider)
- Accept or reject a quote (Authenticated Client, job owner)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.dependencies import (
    get_current_user,
    get_current_user_with_role,
    require_roles,
)
from fundiconnect.core.limiter import limiter
from fundiconnect.database.enums import UserRole
from fundiconnect.database.models import User
from fundiconnect.database.session import get_db
from fundiconnect.lifecycle.schemas import AcceptQuoteOutcome
from fundiconnect.lifecycle.services import LifecycleOrchestrator, get_lifecycle
from fundiconnect.quote import schemas
from fundiconnect.quote.services import QuoteService

router = APIRouter(prefix="/quotes", tags=["Quotes"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
LifecycleDep = Annotated[LifecycleOrchestrator, Depends(get_lifecycle)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]
AuthenticatedClientDep = Annotated[User, Depends(get_current_user_with_role(UserRole.CLIENT))]
AuthenticatedProviderDep = Annotated[User, Depends(get_current_user_with_role(UserRole.PROVIDER))]
MarketplaceUserDep = Annotated[User, Depends(require_roles(UserRole.CLIENT, UserRole.PROVIDER))]


@router.post(
    "",
    response_model=schemas.QuoteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Quote",
    description="Submit a priced quote for an open job (authenticated provider only).",
)
@limiter.limit("20/minute")
async def submit_quote(
    request: Request,
    payload: schemas.QuoteCreate,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedProviderDep,
) -> schemas.QuoteRead:
    result = await lifecycle.submit_quote(
        job_id=payload.job_id,
        provider_id=current_user.id,
        amount=payload.amount,
        currency=payload.currency,
        message=payload.message_to_client,
    )
    return result.unwrap()


@router.get(
    "/job/{job_id}",
    response_model=list[schemas.QuoteRead],
    status_code=status.HTTP_200_OK,
    summary="Quotes for Job",
    description="List the quotes of a job, newest first. Providers only see their own quotes.",
)
async def list_job_quotes(
    job_id: UUID,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> list[schemas.QuoteRead]:
    return await QuoteService(db).list_quotes_for_viewer(
        job_id, viewer_id=current_user.id, viewer_role=current_user.role
    )


@router.get(
    "/{quote_id}",
    response_model=schemas.QuoteRead,
    status_code=status.HTTP_200_OK,
    summary="Get Quote",
    description="Read a single quote (its client or provider).",
)
async def get_quote(
    quote_id: UUID,
    db: DBDep,
    current_user: MarketplaceUserDep,
) -> schemas.QuoteRead:
    return await QuoteService(db).get_quote(
        quote_id, viewer_id=current_user.id, viewer_role=current_user.role
    )


@router.post(
    "/{quote_id}/accept",
    response_model=AcceptQuoteOutcome,
    status_code=status.HTTP_200_OK,
    summary="Accept Quote",
    description="Accept a pending quote, assigning its provider to the job (job owner only).",
)
@limiter.limit("10/minute")
async def accept_quote(
    request: Request,
    quote_id: UUID,
    payload: schemas.QuoteAcceptRequest,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedClientDep,
) -> AcceptQuoteOutcome:
    result = await lifecycle.accept_quote(
        job_id=payload.job_id, quote_id=quote_id, acting_client_id=current_user.id
    )
    return result.unwrap()


@router.post(
    "/{quote_id}/reject",
    response_model=schemas.QuoteRead,
    status_code=status.HTTP_200_OK,
    summary="Reject Quote",
    description="Reject a pending quote (job owner only).",
)
@limiter.limit("10/minute")
async def reject_quote(
    request: Request,
    quote_id: UUID,
    lifecycle: LifecycleDep,
    current_user: AuthenticatedClientDep,
) -> schemas.QuoteRead:
    result = await lifecycle.reject_quote(quote_id=quote_id, acting_client_id=current_user.id)
    return result.unwrap()
