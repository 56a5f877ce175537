"""
backend/fundiconnect/job/services.py

Job Lifecycle Service

Owns the Job state machine:
- Create jobs (Client)
- Validate and apply status transitions as compare-and-set writes
- Read helpers for a single job and a client's jobs

Transitions never touch any row except the job itself; notifications and
other side effects are fired by the lifecycle orchestrator.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.exceptions import InvalidTransition, NotFound, TransactionConflict, ValidationFailed
from fundiconnect.core.transactions import atomic
from fundiconnect.job import schemas
from fundiconnect.job.models import PROVIDER_STATUSES, TERMINAL_STATUSES, Job, JobStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------
# Transition Table
# ---------------------------------------------------
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.OPEN: frozenset(
        {JobStatus.PENDING_QUOTES, JobStatus.ASSIGNED, JobStatus.CANCELLED, JobStatus.DISPUTED}
    ),
    JobStatus.PENDING_QUOTES: frozenset(
        {JobStatus.ASSIGNED, JobStatus.CANCELLED, JobStatus.DISPUTED}
    ),
    JobStatus.ASSIGNED: frozenset(
        {
            JobStatus.IN_PROGRESS,
            JobStatus.COMPLETED,
            JobStatus.OPEN,
            JobStatus.CANCELLED,
            JobStatus.DISPUTED,
        }
    ),
    JobStatus.IN_PROGRESS: frozenset(
        {JobStatus.COMPLETED, JobStatus.CANCELLED, JobStatus.DISPUTED}
    ),
    JobStatus.DISPUTED: frozenset({JobStatus.CANCELLED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


def can_transition(current: JobStatus, new: JobStatus) -> bool:
    """True if a job in `current` may move to `new`."""
    if current in TERMINAL_STATUSES:
        return False
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


# ---------------------------------------------------
# Job Lifecycle Service
# ---------------------------------------------------
class JobLifecycleService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    async def _get_job_or_raise(self, job_id: UUID) -> Job:
        """Load the current job row (never a stale identity-map copy)."""
        result = await self.db.execute(
            select(Job).where(Job.id == job_id).execution_options(populate_existing=True)
        )
        job = result.scalars().first()
        if not job:
            logger.warning(f"[JOB] Job not found: job_id={job_id}")
            raise NotFound(f"Job {job_id} not found.")
        return job

    # ---------------------------------------------------
    # Create
    # ---------------------------------------------------
    async def create_job(self, client_id: UUID, payload: schemas.JobCreate) -> schemas.JobRead:
        """Insert a new job in status 'open' with no quotes."""
        job = Job(
            client_id=client_id,
            status=JobStatus.OPEN,
            quotes_received=0,
            **payload.model_dump(),
        )
        async with atomic(self.db):
            self.db.add(job)
        await self.db.refresh(job)
        logger.info(f"[JOB] Job created: job_id={job.id}, client_id={client_id}")
        return schemas.JobRead.model_validate(job)

    # ---------------------------------------------------
    # Reads
    # ---------------------------------------------------
    async def get_job(self, job_id: UUID) -> schemas.JobRead:
        job = await self._get_job_or_raise(job_id)
        return schemas.JobRead.model_validate(job)

    async def list_jobs_for_client(
        self, client_id: UUID, skip: int = 0, limit: int = 100
    ) -> list[schemas.JobRead]:
        result = await self.db.execute(
            select(Job)
            .where(Job.client_id == client_id)
            .order_by(Job.posted_at.desc())
            .offset(skip)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [schemas.JobRead.model_validate(job) for job in result.scalars().all()]

    # ---------------------------------------------------
    # Status Transitions
    # ---------------------------------------------------
    async def set_job_status(
        self,
        job_id: UUID,
        new_status: JobStatus,
        assigned_provider_id: UUID | None = None,
    ) -> schemas.JobRead:
        """
        Move a job to `new_status`.

        The write only applies if the job is still in the status that was read;
        otherwise a concurrent transition won and `TransactionConflict` is raised
        so the caller can retry against fresh state.
        """
        async with atomic(self.db):
            job = await self._get_job_or_raise(job_id)
            current = job.status

            if not can_transition(current, new_status):
                logger.warning(
                    f"[JOB] Invalid transition: job_id={job_id}, {current.value} -> {new_status.value}"
                )
                raise InvalidTransition(
                    f"Job cannot move from '{current.value}' to '{new_status.value}'."
                )

            values: dict = {"status": new_status, "updated_at": func.now()}
            if new_status == JobStatus.ASSIGNED:
                if assigned_provider_id is None:
                    raise ValidationFailed("An assigned provider is required to assign a job.")
                values["assigned_provider_id"] = assigned_provider_id
            elif new_status not in PROVIDER_STATUSES:
                values["assigned_provider_id"] = None

            result = await self.db.execute(
                update(Job)
                .where(Job.id == job_id, Job.status == current)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                logger.warning(f"[JOB] Concurrent status change detected: job_id={job_id}")
                raise TransactionConflict("The job was modified concurrently.")

        await self.db.refresh(job)
        logger.info(
            f"[JOB] Job status changed: job_id={job_id}, {current.value} -> {new_status.value}"
        )
        return schemas.JobRead.model_validate(job)
