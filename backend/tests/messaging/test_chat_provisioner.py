"""
tests/messaging/test_chat_provisioner.py

Tests for deterministic, idempotent chat provisioning.
"""

import pytest
from sqlalchemy import func, select

from fundiconnect.database.enums import UserRole
from fundiconnect.messaging.models import Chat
from fundiconnect.messaging.services import ChatProvisioner, chat_id_for


def test_chat_id_is_order_independent() -> None:
    from uuid import uuid4

    a, b = uuid4(), uuid4()
    assert chat_id_for(a, b) == chat_id_for(b, a)
    assert chat_id_for(a, b) == "_".join(sorted([str(a), str(b)]))


@pytest.mark.asyncio
async def test_get_or_create_chat_is_idempotent(db_session, make_user, make_job) -> None:
    client_id = await make_user(UserRole.CLIENT)
    provider_id = await make_user(UserRole.PROVIDER)
    job_id = await make_job(client_id)
    provisioner = ChatProvisioner(db_session)

    first = await provisioner.get_or_create_chat(client_id, provider_id, job_id=job_id)
    second = await provisioner.get_or_create_chat(provider_id, client_id)

    assert first == second
    count = await db_session.scalar(select(func.count()).select_from(Chat))
    assert count == 1
    chat = await provisioner.get_chat(first)
    assert chat.job_id == job_id


@pytest.mark.asyncio
async def test_chat_needs_two_participants(db_session, make_user) -> None:
    user_id = await make_user(UserRole.CLIENT)

    with pytest.raises(ValueError):
        await ChatProvisioner(db_session).get_or_create_chat(user_id, user_id)
