"""
backend/fundiconnect/quote/services.py

Quote Services
Business logic for the quote state machine:
- Submit a quote for an open job (Provider)
- Accept a quote, assigning its provider to the job (Client, job owner)
- Reject a quote (Client, job owner)
- Read quotes for a job

Every precondition is checked before the first write. Writes are
compare-and-set UPDATEs whose affected-row counts are checked, so two
concurrent accepts on one job can never both succeed.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.exceptions import (
    JobNotAcceptingQuotes,
    NotFound,
    QuoteJobMismatch,
    QuoteNotPending,
    Unauthorized,
    ValidationFailed,
)
from fundiconnect.core.transactions import atomic
from fundiconnect.database.enums import UserRole
from fundiconnect.job.models import QUOTABLE_STATUSES, Job, JobStatus
from fundiconnect.job.schemas import JobRead
from fundiconnect.quote import schemas
from fundiconnect.quote.models import Quote, QuoteStatus

logger = logging.getLogger(__name__)


class QuoteService:
    """Service layer for quote submission, acceptance and rejection."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    async def _get_quote_or_raise(self, quote_id: UUID) -> Quote:
        result = await self.db.execute(
            select(Quote).where(Quote.id == quote_id).execution_options(populate_existing=True)
        )
        quote = result.scalars().first()
        if not quote:
            logger.warning(f"[QUOTE] Quote not found: quote_id={quote_id}")
            raise NotFound(f"Quote {quote_id} not found.")
        return quote

    async def _get_job_or_raise(self, job_id: UUID) -> Job:
        result = await self.db.execute(
            select(Job).where(Job.id == job_id).execution_options(populate_existing=True)
        )
        job = result.scalars().first()
        if not job:
            logger.warning(f"[QUOTE] Job not found: job_id={job_id}")
            raise NotFound(f"Job {job_id} not found.")
        return job

    @staticmethod
    def _authorize_owner(quote: Quote, acting_client_id: UUID) -> None:
        if quote.client_id != acting_client_id:
            logger.warning(
                f"[QUOTE] Unauthorized quote action: quote_id={quote.id}, user_id={acting_client_id}"
            )
            raise Unauthorized("Only the client who owns the job can act on its quotes.")

    @staticmethod
    def _require_pending(quote: Quote) -> None:
        if quote.status != QuoteStatus.PENDING:
            raise QuoteNotPending(
                f"Quote {quote.id} is already '{quote.status.value}' and cannot be changed."
            )

    # ---------------------------------------------------
    # Submit
    # ---------------------------------------------------
    async def submit_quote(
        self,
        job_id: UUID,
        provider_id: UUID,
        amount: float,
        currency: str,
        message: str,
        client_id: UUID | None = None,
    ) -> schemas.QuoteRead:
        """
        Create a pending quote and bump the job's quote counter in one transaction.

        The stored `client_id` always comes from the job row. An 'open' job moves
        to 'pending_quotes' with its first quote.
        """
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            raise ValidationFailed("Quote amount must be a positive number.")
        currency = (currency or "").strip().upper()
        if not currency:
            raise ValidationFailed("Quote currency is required.")
        message = (message or "").strip()
        if not message:
            raise ValidationFailed("A message to the client is required.")

        async with atomic(self.db):
            job = await self._get_job_or_raise(job_id)
            if client_id is not None and client_id != job.client_id:
                raise Unauthorized("Supplied client does not own this job.")
            if job.client_id == provider_id:
                raise ValidationFailed("You cannot quote on your own job.")
            if job.accepted_quote_id is not None:
                raise JobNotAcceptingQuotes(
                    f"Job {job_id} already has accepted quote {job.accepted_quote_id}."
                )
            if job.status not in QUOTABLE_STATUSES:
                raise JobNotAcceptingQuotes(
                    f"Job {job_id} is '{job.status.value}' and no longer accepts quotes."
                )

            quote = Quote(
                job_id=job_id,
                provider_id=provider_id,
                client_id=job.client_id,
                amount=float(amount),
                currency=currency,
                message_to_client=message,
                status=QuoteStatus.PENDING,
            )
            self.db.add(quote)
            await self.db.flush()

            bumped = await self.db.execute(
                update(Job)
                .where(
                    Job.id == job_id,
                    Job.status.in_(list(QUOTABLE_STATUSES)),
                    Job.accepted_quote_id.is_(None),
                )
                .values(quotes_received=Job.quotes_received + 1, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if bumped.rowcount != 1:
                raise JobNotAcceptingQuotes(f"Job {job_id} stopped accepting quotes.")

            await self.db.execute(
                update(Job)
                .where(Job.id == job_id, Job.status == JobStatus.OPEN)
                .values(status=JobStatus.PENDING_QUOTES)
                .execution_options(synchronize_session=False)
            )

        await self.db.refresh(quote)
        logger.info(
            f"[QUOTE] Quote submitted: quote_id={quote.id}, job_id={job_id}, provider_id={provider_id}"
        )
        return schemas.QuoteRead.model_validate(quote)

    # ---------------------------------------------------
    # Accept
    # ---------------------------------------------------
    async def accept_quote(
        self, job_id: UUID, quote_id: UUID, acting_client_id: UUID
    ) -> tuple[schemas.QuoteRead, JobRead]:
        """
        Accept a pending quote and assign its provider to the job atomically.

        Sibling quotes stay pending; the job can no longer accept any of them
        because it has left the quotable states and holds an accepted quote.
        """
        async with atomic(self.db):
            quote = await self._get_quote_or_raise(quote_id)
            if quote.job_id != job_id:
                raise QuoteJobMismatch(f"Quote {quote_id} does not belong to job {job_id}.")
            self._authorize_owner(quote, acting_client_id)
            self._require_pending(quote)

            job = await self._get_job_or_raise(job_id)
            if job.accepted_quote_id is not None:
                raise JobNotAcceptingQuotes(
                    f"Job {job_id} already has accepted quote {job.accepted_quote_id}."
                )
            if job.status not in QUOTABLE_STATUSES:
                raise JobNotAcceptingQuotes(
                    f"Job {job_id} is '{job.status.value}' and cannot accept a quote."
                )

            assigned = await self.db.execute(
                update(Job)
                .where(
                    Job.id == job_id,
                    Job.status.in_(list(QUOTABLE_STATUSES)),
                    Job.accepted_quote_id.is_(None),
                )
                .values(
                    status=JobStatus.ASSIGNED,
                    assigned_provider_id=quote.provider_id,
                    accepted_quote_id=quote.id,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False)
            )
            if assigned.rowcount != 1:
                logger.warning(f"[QUOTE] Lost accept race on job_id={job_id}")
                raise JobNotAcceptingQuotes(f"Job {job_id} has already been assigned.")

            accepted = await self.db.execute(
                update(Quote)
                .where(Quote.id == quote_id, Quote.status == QuoteStatus.PENDING)
                .values(status=QuoteStatus.ACCEPTED, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if accepted.rowcount != 1:
                raise QuoteNotPending(f"Quote {quote_id} is no longer pending.")

        await self.db.refresh(quote)
        await self.db.refresh(job)
        logger.info(
            f"[QUOTE] Quote accepted: quote_id={quote_id}, job_id={job_id}, provider_id={quote.provider_id}"
        )
        return schemas.QuoteRead.model_validate(quote), JobRead.model_validate(job)

    # ---------------------------------------------------
    # Reject
    # ---------------------------------------------------
    async def reject_quote(self, quote_id: UUID, acting_client_id: UUID) -> schemas.QuoteRead:
        async with atomic(self.db):
            quote = await self._get_quote_or_raise(quote_id)
            self._authorize_owner(quote, acting_client_id)
            self._require_pending(quote)

            rejected = await self.db.execute(
                update(Quote)
                .where(Quote.id == quote_id, Quote.status == QuoteStatus.PENDING)
                .values(status=QuoteStatus.REJECTED, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if rejected.rowcount != 1:
                raise QuoteNotPending(f"Quote {quote_id} is no longer pending.")

        await self.db.refresh(quote)
        logger.info(f"[QUOTE] Quote rejected: quote_id={quote_id}")
        return schemas.QuoteRead.model_validate(quote)

    # ---------------------------------------------------
    # Reads
    # ---------------------------------------------------
    async def get_quote(
        self,
        quote_id: UUID,
        viewer_id: UUID | None = None,
        viewer_role: UserRole | None = None,
    ) -> schemas.QuoteRead:
        """
        Read one quote. With a viewer, only admins, the job owner and the
        quoting provider may see it.
        """
        quote = await self._get_quote_or_raise(quote_id)
        if viewer_id is None:
            return schemas.QuoteRead.model_validate(quote)
        if viewer_role != UserRole.ADMIN and viewer_id not in (quote.client_id, quote.provider_id):
            logger.warning(f"[QUOTE] Quote read denied: quote_id={quote_id}, user_id={viewer_id}")
            raise Unauthorized("You can only view quotes you sent or received.")
        return schemas.QuoteRead.model_validate(quote)

    async def list_quotes_for_job(
        self, job_id: UUID, provider_id: UUID | None = None
    ) -> list[schemas.QuoteRead]:
        """Quotes for a job, newest first, optionally only those of one provider."""
        query = select(Quote).where(Quote.job_id == job_id)
        if provider_id is not None:
            query = query.where(Quote.provider_id == provider_id)
        result = await self.db.execute(
            query
            .order_by(Quote.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [schemas.QuoteRead.model_validate(q) for q in result.scalars().all()]

    async def list_quotes_for_viewer(
        self, job_id: UUID, viewer_id: UUID, viewer_role: UserRole
    ) -> list[schemas.QuoteRead]:
        """
        Quotes of a job as seen by one user: the job owner and admins see
        every quote, anyone else only the quotes they submitted.
        """
        job = await self._get_job_or_raise(job_id)
        if viewer_role == UserRole.ADMIN or viewer_id == job.client_id:
            return await self.list_quotes_for_job(job_id)
        return await self.list_quotes_for_job(job_id, provider_id=viewer_id)
