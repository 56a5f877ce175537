"""
backend/fundiconnect/notification/services.py

Notification Services
- Record in-app notifications for lifecycle events
- List a user's most recent notifications
- Mark one or all notifications as read
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.exceptions import NotFound
from fundiconnect.notification import schemas
from fundiconnect.notification.models import Notification, NotificationType

logger = logging.getLogger(__name__)

RECENT_NOTIFICATIONS_LIMIT = 20


class NotificationDispatcher:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def notify(
        self,
        user_id: UUID,
        type: NotificationType,
        message: str,
        related_entity_id: str | UUID | None = None,
        link: str | None = None,
    ) -> UUID:
        """Persist a notification for `user_id` and return its id."""
        notification = Notification(
            user_id=user_id,
            type=type,
            message=message,
            related_entity_id=str(related_entity_id) if related_entity_id is not None else None,
            link=link,
            is_read=False,
        )
        self.db.add(notification)
        await self.db.commit()
        logger.info(f"[NOTIFY] {type.value} -> user_id={user_id}")
        return notification.id

    async def list_recent(
        self, user_id: UUID, limit: int = RECENT_NOTIFICATIONS_LIMIT
    ) -> list[schemas.NotificationRead]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return [schemas.NotificationRead.model_validate(n) for n in result.scalars().all()]

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> schemas.NotificationRead:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id, Notification.user_id == user_id
            )
        )
        notification = result.scalars().first()
        if not notification:
            raise NotFound(f"Notification {notification_id} not found.")

        notification.is_read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return schemas.NotificationRead.model_validate(notification)

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        logger.info(f"[NOTIFY] Marked {result.rowcount} notifications read for user_id={user_id}")
        return result.rowcount
