"""
database/session.py

Initializes the SQLAlchemy asynchronous engine and session factory.
Provides an AsyncGenerator for database session dependency injection.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from fundiconnect.core.config import settings


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """
    Create an async engine for `url`.
    Non-SQLite backends run every transaction at the configured isolation level
    so reads inside a transaction come from one snapshot.
    """
    if not url.startswith("sqlite") and settings.DB_ISOLATION_LEVEL:
        kwargs.setdefault("isolation_level", settings.DB_ISOLATION_LEVEL)
    return create_async_engine(url, **kwargs)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,  # Prevents auto-expiration of ORM objects after commit
    )


# -----------------------------------------------------
# SQLAlchemy Async Engine Initialization
# -----------------------------------------------------
engine = build_engine(
    settings.db_url,
    echo=False,  # Set to True for SQL debugging output
)

# -----------------------------------------------------
# Session Factory for Async Database Access
# -----------------------------------------------------
AsyncSessionLocal = build_sessionmaker(engine)


# -----------------------------------------------------
# Dependency: Get Async DB Session
# -----------------------------------------------------
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI endpoints to provide an async DB session.
    Yields a single session per request, rolls back on exceptions, and closes cleanly.
    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
