"""
tests/core/test_transactions.py

Tests for contention detection, the atomic() block and conflict retries.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from unittest.mock import AsyncMock

from fundiconnect.core.config import settings
from fundiconnect.core.exceptions import NotFound, TransactionConflict
from fundiconnect.core.transactions import atomic, is_contention_error, retry_on_conflict


class SerializationFailure(Exception):
    sqlstate = "40001"


def test_contention_detected_from_sqlstate() -> None:
    exc = OperationalError("UPDATE jobs", {}, SerializationFailure("could not serialize access"))
    assert is_contention_error(exc)


def test_contention_detected_from_sqlite_lock() -> None:
    exc = OperationalError("UPDATE jobs", {}, Exception("database is locked"))
    assert is_contention_error(exc)


def test_integrity_error_is_not_contention() -> None:
    exc = IntegrityError("INSERT INTO reviews", {}, Exception("UNIQUE constraint failed"))
    assert not is_contention_error(exc)


@pytest.mark.asyncio
async def test_atomic_commits_on_success() -> None:
    db = AsyncMock()
    async with atomic(db):
        pass
    db.commit.assert_awaited_once()
    db.rollback.assert_not_awaited()


@pytest.mark.asyncio
async def test_atomic_rolls_back_and_maps_contention() -> None:
    db = AsyncMock()
    with pytest.raises(TransactionConflict):
        async with atomic(db):
            raise OperationalError("UPDATE jobs", {}, Exception("database is locked"))
    db.rollback.assert_awaited_once()
    db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_atomic_rolls_back_lifecycle_errors() -> None:
    db = AsyncMock()
    with pytest.raises(NotFound):
        async with atomic(db):
            raise NotFound("missing")
    db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_on_conflict_retries_until_success() -> None:
    fn = AsyncMock(side_effect=[TransactionConflict("busy"), TransactionConflict("busy"), "done"])

    assert await retry_on_conflict(fn, operation="test") == "done"
    assert fn.await_count == 3


@pytest.mark.asyncio
async def test_retry_on_conflict_gives_up() -> None:
    fn = AsyncMock(side_effect=TransactionConflict("busy"))

    with pytest.raises(TransactionConflict):
        await retry_on_conflict(fn, operation="test")
    assert fn.await_count == settings.TXN_MAX_ATTEMPTS


@pytest.mark.asyncio
async def test_retry_on_conflict_does_not_retry_other_errors() -> None:
    fn = AsyncMock(side_effect=NotFound("missing"))

    with pytest.raises(NotFound):
        await retry_on_conflict(fn, operation="test")
    assert fn.await_count == 1
