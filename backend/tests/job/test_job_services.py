"""
tests/job/test_job_services.py

Tests for the job state machine: creation, allowed and rejected transitions,
and the provider-assignment invariant.
"""

import pytest
from uuid import uuid4

from fundiconnect.core.exceptions import InvalidTransition, NotFound, ValidationFailed
from fundiconnect.database.enums import UserRole
from fundiconnect.job.models import Job, JobStatus
from fundiconnect.job.schemas import JobCreate
from fundiconnect.job.services import JobLifecycleService, can_transition


# --- Transition Table ---


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (JobStatus.OPEN, JobStatus.ASSIGNED),
        (JobStatus.PENDING_QUOTES, JobStatus.ASSIGNED),
        (JobStatus.ASSIGNED, JobStatus.COMPLETED),
        (JobStatus.IN_PROGRESS, JobStatus.COMPLETED),
        (JobStatus.ASSIGNED, JobStatus.OPEN),
        (JobStatus.ASSIGNED, JobStatus.IN_PROGRESS),
        (JobStatus.OPEN, JobStatus.DISPUTED),
        (JobStatus.DISPUTED, JobStatus.CANCELLED),
    ],
)
def test_allowed_transitions(current: JobStatus, new: JobStatus) -> None:
    assert can_transition(current, new)


@pytest.mark.parametrize(
    ("current", "new"),
    [
        (JobStatus.OPEN, JobStatus.COMPLETED),
        (JobStatus.PENDING_QUOTES, JobStatus.OPEN),
        (JobStatus.COMPLETED, JobStatus.CANCELLED),
        (JobStatus.COMPLETED, JobStatus.DISPUTED),
        (JobStatus.CANCELLED, JobStatus.OPEN),
        (JobStatus.IN_PROGRESS, JobStatus.OPEN),
    ],
)
def test_rejected_transitions(current: JobStatus, new: JobStatus) -> None:
    assert not can_transition(current, new)


# --- Service ---


@pytest.mark.asyncio
async def test_create_job_starts_open(db_session, make_user) -> None:
    client_id = await make_user(UserRole.CLIENT)
    payload = JobCreate(
        title="  Paint two bedrooms ",
        description="Walls only, paint supplied.",
        service_category="Painting",
        location="Mombasa",
    )

    job = await JobLifecycleService(db_session).create_job(client_id, payload)

    assert job.status == JobStatus.OPEN
    assert job.quotes_received == 0
    assert job.assigned_provider_id is None
    assert job.title == "Paint two bedrooms"
    assert job.client_id == client_id


@pytest.mark.asyncio
async def test_assign_requires_provider(db_session, make_user, make_job) -> None:
    client_id = await make_user(UserRole.CLIENT)
    job_id = await make_job(client_id)

    with pytest.raises(ValidationFailed):
        await JobLifecycleService(db_session).set_job_status(job_id, JobStatus.ASSIGNED)


@pytest.mark.asyncio
async def test_assign_then_reopen_clears_provider(db_session, make_user, make_job, fetch) -> None:
    client_id = await make_user(UserRole.CLIENT)
    provider_id = await make_user(UserRole.PROVIDER)
    job_id = await make_job(client_id)
    service = JobLifecycleService(db_session)

    assigned = await service.set_job_status(job_id, JobStatus.ASSIGNED, provider_id)
    assert assigned.status == JobStatus.ASSIGNED
    assert assigned.assigned_provider_id == provider_id

    reopened = await service.set_job_status(job_id, JobStatus.OPEN)
    assert reopened.status == JobStatus.OPEN
    assert reopened.assigned_provider_id is None

    stored = await fetch(Job, job_id)
    assert stored.status == JobStatus.OPEN
    assert stored.assigned_provider_id is None


@pytest.mark.asyncio
async def test_cancel_clears_provider(db_session, make_user, make_job) -> None:
    client_id = await make_user(UserRole.CLIENT)
    provider_id = await make_user(UserRole.PROVIDER)
    job_id = await make_job(client_id, JobStatus.IN_PROGRESS, provider_id)

    job = await JobLifecycleService(db_session).set_job_status(job_id, JobStatus.CANCELLED)

    assert job.status == JobStatus.CANCELLED
    assert job.assigned_provider_id is None


@pytest.mark.asyncio
async def test_completed_job_is_terminal(db_session, make_user, make_job, fetch) -> None:
    client_id = await make_user(UserRole.CLIENT)
    provider_id = await make_user(UserRole.PROVIDER)
    job_id = await make_job(client_id, JobStatus.COMPLETED, provider_id)

    with pytest.raises(InvalidTransition):
        await JobLifecycleService(db_session).set_job_status(job_id, JobStatus.CANCELLED)

    stored = await fetch(Job, job_id)
    assert stored.status == JobStatus.COMPLETED
    assert stored.assigned_provider_id == provider_id


@pytest.mark.asyncio
async def test_unknown_job_raises_not_found(db_session) -> None:
    with pytest.raises(NotFound):
        await JobLifecycleService(db_session).set_job_status(uuid4(), JobStatus.CANCELLED)


@pytest.mark.asyncio
async def test_list_jobs_for_client_only_returns_own(db_session, make_user, make_job) -> None:
    client_id = await make_user(UserRole.CLIENT)
    other_client_id = await make_user(UserRole.CLIENT)
    own_job = await make_job(client_id)
    await make_job(other_client_id)

    jobs = await JobLifecycleService(db_session).list_jobs_for_client(client_id)

    assert [job.id for job in jobs] == [own_job]
