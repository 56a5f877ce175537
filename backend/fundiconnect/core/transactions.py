"""
backend/fundiconnect/core/transactions.py

Transaction Helpers

- `atomic(db)`: commit the work done inside the block, roll back on any error,
  and surface database contention as a retryable `TransactionConflict`.
- `retry_on_conflict(fn)`: re-run a whole operation (precondition reads
  included) when it aborted with `TransactionConflict`, with randomized
  exponential backoff via tenacity.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from fundiconnect.core.config import settings
from fundiconnect.core.exceptions import TransactionConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
CONTENTION_SQLSTATES = {"40001", "40P01"}


def is_contention_error(exc: DBAPIError) -> bool:
    """True when the driver reports a serialization failure, deadlock or busy lock."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in CONTENTION_SQLSTATES:
        return True
    return "database is locked" in str(orig or exc).lower()


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run the enclosed block as one transaction on `db`."""
    try:
        yield db
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        if is_contention_error(e):
            logger.warning(f"[TXN] Transaction aborted by contention: {e.orig}")
            raise TransactionConflict("The operation conflicted with a concurrent update.") from e
        raise
    except BaseException:
        await db.rollback()
        raise


async def retry_on_conflict(fn: Callable[[], Awaitable[T]], *, operation: str) -> T:
    """Await `fn()` and retry it from scratch while it raises TransactionConflict."""
    retrying = AsyncRetrying(
        reraise=True,
        stop=stop_after_attempt(max(1, settings.TXN_MAX_ATTEMPTS)),
        wait=wait_random_exponential(
            multiplier=settings.TXN_RETRY_WAIT_MULTIPLIER, max=settings.TXN_RETRY_WAIT_MAX
        ),
        retry=retry_if_exception_type(TransactionConflict),
    )
    async for attempt in retrying:
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                logger.info(
                    f"[TXN] Retrying {operation} (attempt {attempt.retry_state.attempt_number})"
                )
            result = await fn()
    return result
