"""
backend/fundiconnect/notification/schemas.py

Notification Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from fundiconnect.notification.models import NotificationType


class NotificationRead(BaseModel):
    id: UUID
    user_id: UUID
    type: NotificationType
    message: str
    related_entity_id: str | None = None
    link: str | None = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MarkAllReadResponse(BaseModel):
    updated: int = Field(..., description="Number of notifications marked as read")
