"""
init_db.py

Initializes the database by creating all tables defined in the SQLAlchemy models.
Used for setting up the schema in the connected database (no migrations).
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from fundiconnect.database import models  # noqa: F401  (registers every table)
from fundiconnect.database.base import Base
from fundiconnect.database.session import engine as default_engine

logger = logging.getLogger(__name__)


async def init_db(engine: AsyncEngine | None = None) -> None:
    """
    Creates all database tables based on SQLAlchemy models.
    """
    target = engine or default_engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[DB] Tables ensured: {sorted(Base.metadata.tables)}")


if __name__ == "__main__":
    asyncio.run(init_db())
