"""
backend/fundiconnect/messaging/services.py

Chat Provisioning

Opens the direct conversation between a client and a provider once a quote
is accepted. A chat's id is the two user ids sorted and joined with '_', so
provisioning the same pair twice returns the existing chat.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.messaging.models import Chat

logger = logging.getLogger(__name__)


def chat_id_for(user_a: UUID, user_b: UUID) -> str:
    """Deterministic chat id for an unordered pair of users."""
    first, second = sorted([str(user_a), str(user_b)])
    return f"{first}_{second}"


class ChatProvisioner:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_chat(self, chat_id: str) -> Chat | None:
        result = await self.db.execute(select(Chat).where(Chat.id == chat_id))
        return result.scalars().first()

    async def get_or_create_chat(
        self, user_a: UUID, user_b: UUID, job_id: UUID | None = None
    ) -> str:
        """Return the id of the chat between `user_a` and `user_b`, creating it if needed."""
        if user_a == user_b:
            raise ValueError("A chat needs two distinct participants.")

        chat_id = chat_id_for(user_a, user_b)
        if await self.get_chat(chat_id):
            logger.debug(f"[CHAT] Reusing chat {chat_id}")
            return chat_id

        first, second = sorted([user_a, user_b], key=str)
        self.db.add(Chat(id=chat_id, participant_a=first, participant_b=second, job_id=job_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # Created concurrently by another request
            await self.db.rollback()
            logger.info(f"[CHAT] Chat {chat_id} already created concurrently")
            return chat_id

        logger.info(f"[CHAT] Chat created: chat_id={chat_id}, job_id={job_id}")
        return chat_id
