"""
tests/conftest.py

Test fixtures for API and service tests.
Includes async clients, fake users, a file-backed SQLite database per test,
factories for seeded users/jobs/quotes, and dependency overrides.
"""
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./fundiconnect_test.db")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+aiosqlite:///./fundiconnect_test.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("EMAILS_ENABLED", "false")
os.environ.setdefault("TXN_RETRY_WAIT_MULTIPLIER", "0.01")
os.environ.setdefault("TXN_RETRY_WAIT_MAX", "0.05")

# --- Imports ---
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from main import app
from fundiconnect.core.dependencies import get_current_user
from fundiconnect.core.limiter import limiter
from fundiconnect.database.base import Base
from fundiconnect.database.enums import UserRole
from fundiconnect.database.models import User
from fundiconnect.database.session import build_engine, build_sessionmaker, get_db
from fundiconnect.job.models import Job, JobStatus
from fundiconnect.job.schemas import JobRead
from fundiconnect.provider.models import ProviderProfile
from fundiconnect.quote.models import Quote, QuoteStatus
from fundiconnect.quote.schemas import QuoteRead

limiter.enabled = False


# --- Core Test Fixtures ---


@pytest.fixture(scope="session")
def transport() -> ASGITransport:
    """Fixture for ASGI transport."""
    return ASGITransport(app=app)


@pytest_asyncio.fixture(scope="function")
async def async_client(transport: ASGITransport) -> AsyncGenerator[AsyncClient, None]:
    """Fixture for HTTP async client."""
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# --- Database Fixtures ---


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh file-backed SQLite database; a file lets concurrent sessions use separate connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'lifecycle.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_sessionmaker(db_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# --- Seed Factories ---


@pytest.fixture
def make_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[UUID]]:
    """Create a user (and a provider profile for providers); returns the user id."""

    async def _make_user(
        role: UserRole = UserRole.CLIENT,
        rating: float = 0.0,
        reviews_count: int = 0,
        with_profile: bool = True,
    ) -> UUID:
        user_id = uuid4()
        async with session_factory() as session:
            session.add(
                User(
                    id=user_id,
                    email=f"{role.value.lower()}-{user_id.hex[:8]}@example.com",
                    full_name=f"{role.value.title()} {user_id.hex[:4]}",
                    role=role,
                )
            )
            if role == UserRole.PROVIDER and with_profile:
                session.add(
                    ProviderProfile(
                        user_id=user_id,
                        business_name=f"Fundi {user_id.hex[:4]}",
                        rating=rating,
                        reviews_count=reviews_count,
                    )
                )
            await session.commit()
        return user_id

    return _make_user


@pytest.fixture
def make_job(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[UUID]]:
    """Insert a job directly in any status; returns the job id."""

    async def _make_job(
        client_id: UUID,
        status: JobStatus = JobStatus.OPEN,
        assigned_provider_id: UUID | None = None,
        title: str = "Fix leaking kitchen sink",
    ) -> UUID:
        job_id = uuid4()
        async with session_factory() as session:
            session.add(
                Job(
                    id=job_id,
                    client_id=client_id,
                    title=title,
                    description="Water pooling under the sink since Monday.",
                    service_category="Plumbing",
                    location="Nairobi, Kilimani",
                    budget=6000.0,
                    status=status,
                    assigned_provider_id=assigned_provider_id,
                )
            )
            await session.commit()
        return job_id

    return _make_job


@pytest.fixture
def make_quote(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[UUID]]:
    """Insert a quote directly (bypassing the job counter); returns the quote id."""

    async def _make_quote(
        job_id: UUID,
        provider_id: UUID,
        client_id: UUID,
        amount: float = 5000.0,
        status: QuoteStatus = QuoteStatus.PENDING,
    ) -> UUID:
        quote_id = uuid4()
        async with session_factory() as session:
            session.add(
                Quote(
                    id=quote_id,
                    job_id=job_id,
                    provider_id=provider_id,
                    client_id=client_id,
                    amount=amount,
                    currency="KES",
                    message_to_client="I can start tomorrow morning.",
                    status=status,
                )
            )
            await session.commit()
        return quote_id

    return _make_quote


@pytest.fixture
def fetch(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[type, Any], Awaitable[Any]]:
    """Read a row through a brand-new session so only committed state is visible."""

    async def _fetch(model: type, pk: Any) -> Any:
        async with session_factory() as session:
            return await session.get(model, pk)

    return _fetch


@pytest.fixture
def silent_mailer() -> AsyncMock:
    return AsyncMock()


# --- Fake User Fixtures ---


def _fake_user(role: UserRole, name: str) -> User:
    return User(
        id=uuid4(),
        email=f"{name.lower()}.test@example.com",
        full_name=f"{name} Test",
        role=role,
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def fake_admin_user() -> User:
    """Fixture for a fake admin user."""
    return _fake_user(UserRole.ADMIN, "Admin")


@pytest.fixture
def fake_client_user() -> User:
    """Fixture for a fake client user."""
    return _fake_user(UserRole.CLIENT, "Client")


@pytest.fixture
def fake_provider_user() -> User:
    """Fixture for a fake provider user."""
    return _fake_user(UserRole.PROVIDER, "Provider")


# --- Dependency Override Fixtures ---


@pytest_asyncio.fixture
async def override_get_db() -> AsyncGenerator[None, None]:
    """Override for the database dependency."""

    async def _override() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    app.dependency_overrides[get_db] = _override
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def mock_current_admin_user(fake_admin_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as an admin."""
    app.dependency_overrides[get_current_user] = lambda: fake_admin_user
    yield fake_admin_user
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def mock_current_client_user(fake_client_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as a client."""
    app.dependency_overrides[get_current_user] = lambda: fake_client_user
    yield fake_client_user
    app.dependency_overrides.pop(get_current_user, None)


@pytest_asyncio.fixture
async def mock_current_provider_user(fake_provider_user: User) -> AsyncGenerator[User, None]:
    """Mock the current user as a provider."""
    app.dependency_overrides[get_current_user] = lambda: fake_provider_user
    yield fake_provider_user
    app.dependency_overrides.pop(get_current_user, None)


# --- Fake Data Fixtures (Schema Instances) ---


@pytest.fixture
def fake_job_read(fake_client_user: User) -> JobRead:
    now = datetime.now(timezone.utc)
    return JobRead(
        id=uuid4(),
        client_id=fake_client_user.id,
        title="Fix leaking kitchen sink",
        description="Water pooling under the sink since Monday.",
        service_category="Plumbing",
        location="Nairobi, Kilimani",
        budget=6000.0,
        urgency="medium",
        deadline=None,
        status=JobStatus.OPEN,
        assigned_provider_id=None,
        accepted_quote_id=None,
        quotes_received=0,
        posted_at=now,
        updated_at=now,
    )


@pytest.fixture
def fake_quote_read(fake_job_read: JobRead, fake_provider_user: User) -> QuoteRead:
    now = datetime.now(timezone.utc)
    return QuoteRead(
        id=uuid4(),
        job_id=fake_job_read.id,
        provider_id=fake_provider_user.id,
        client_id=fake_job_read.client_id,
        amount=5000.0,
        currency="KES",
        message_to_client="I can start tomorrow morning.",
        status=QuoteStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
