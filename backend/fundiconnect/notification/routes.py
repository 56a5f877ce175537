"""
backend/fundiconnect/notification/routes.py

Notification Routes
- List the 20 most recent notifications of the current user
- Mark one notification as read
- Mark all notifications as read
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.dependencies import get_current_user
from fundiconnect.database.models import User
from fundiconnect.database.session import get_db
from fundiconnect.notification import schemas
from fundiconnect.notification.services import NotificationDispatcher

router = APIRouter(prefix="/notifications", tags=["Notifications"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]


@router.get(
    "",
    response_model=list[schemas.NotificationRead],
    status_code=status.HTTP_200_OK,
    summary="Recent Notifications",
)
async def list_notifications(
    db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.NotificationRead]:
    return await NotificationDispatcher(db).list_recent(current_user.id)


@router.put(
    "/read-all",
    response_model=schemas.MarkAllReadResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark All Read",
)
async def mark_all_read(
    db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.MarkAllReadResponse:
    updated = await NotificationDispatcher(db).mark_all_read(current_user.id)
    return schemas.MarkAllReadResponse(updated=updated)


@router.put(
    "/{notification_id}/read",
    response_model=schemas.NotificationRead,
    status_code=status.HTTP_200_OK,
    summary="Mark Read",
)
async def mark_read(
    notification_id: UUID, db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.NotificationRead:
    return await NotificationDispatcher(db).mark_read(notification_id, current_user.id)
