"""
backend/fundiconnect/lifecycle/services.py

Lifecycle Orchestrator

Entry point for every job/quote/review state change:
1. Validate what can be validated without the database
2. Delegate the atomic change to the job, quote or review service, re-running
   the whole call (fresh reads included) when the transaction hit contention
3. After commit, fire best-effort side effects: chat provisioning,
   notifications, emails and cache invalidation

Expected failures come back as `LifecycleResult` failures and never raise.
A failed side effect is logged and never undoes the committed change.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.email import EmailDispatcher
from fundiconnect.core.exceptions import (
    DuplicateReview,
    InvalidTransition,
    JobNotReviewable,
    LifecycleError,
    Unauthorized,
)
from fundiconnect.core.schemas import LifecycleResult
from fundiconnect.core.transactions import retry_on_conflict
from fundiconnect.database.models import User
from fundiconnect.database.session import get_db
from fundiconnect.job.models import JobStatus
from fundiconnect.job.schemas import JobRead
from fundiconnect.job.services import JobLifecycleService
from fundiconnect.lifecycle.schemas import AcceptQuoteOutcome
from fundiconnect.messaging.services import ChatProvisioner
from fundiconnect.notification.models import NotificationType
from fundiconnect.notification.services import NotificationDispatcher
from fundiconnect.quote.schemas import QuoteRead
from fundiconnect.quote.services import QuoteService
from fundiconnect.review.schemas import ReviewSubmission
from fundiconnect.review.services import ReviewAggregator, validate_comment, validate_sub_ratings

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMPLETABLE_STATUSES = frozenset({JobStatus.ASSIGNED, JobStatus.IN_PROGRESS})


class LifecycleOrchestrator:
    def __init__(
        self,
        db: AsyncSession,
        notifier: NotificationDispatcher | None = None,
        chats: ChatProvisioner | None = None,
        mailer: EmailDispatcher | None = None,
        cache: Any | None = None,
    ) -> None:
        self.db = db
        self.jobs = JobLifecycleService(db)
        self.quotes = QuoteService(db)
        self.reviews = ReviewAggregator(db, cache=cache)
        self.notifier = notifier or NotificationDispatcher(db)
        self.chats = chats or ChatProvisioner(db)
        self.mailer = mailer or EmailDispatcher()

    # ---------------------------------------------------
    # Plumbing
    # ---------------------------------------------------
    async def _execute(
        self, operation: str, fn: Callable[[], Awaitable[T]]
    ) -> LifecycleResult[T]:
        """Run `fn` with conflict retries and convert lifecycle errors to a failed result."""
        try:
            value = await retry_on_conflict(fn, operation=operation)
        except LifecycleError as e:
            logger.warning(f"[LIFECYCLE] {operation} failed: {e.code.value}: {e.message}")
            # Precondition reads outside atomic() leave a transaction open
            await self.db.rollback()
            return LifecycleResult.fail(e)
        return LifecycleResult.ok(value)

    async def _side_effect(self, description: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Await a post-commit side effect; on failure log it, reset the session and return None."""
        try:
            return await fn()
        except Exception as e:
            logger.error(f"[LIFECYCLE] Side effect '{description}' failed: {e}")
            await self.db.rollback()
            return None

    async def _get_user(self, user_id: UUID) -> User | None:
        return await self.db.get(User, user_id)

    @staticmethod
    def _display_name(user: User | None) -> str:
        if user is None:
            return "A user"
        return user.full_name or user.email

    async def _notify(
        self,
        user_id: UUID | None,
        type: NotificationType,
        message: str,
        related_entity_id: Any = None,
        link: str | None = None,
    ) -> None:
        if user_id is None:
            return
        await self._side_effect(
            f"notify {type.value}",
            lambda: self.notifier.notify(user_id, type, message, related_entity_id, link),
        )

    # ---------------------------------------------------
    # Quotes
    # ---------------------------------------------------
    async def submit_quote(
        self,
        job_id: UUID,
        provider_id: UUID,
        amount: float,
        currency: str,
        message: str,
        client_id: UUID | None = None,
    ) -> LifecycleResult[QuoteRead]:
        result = await self._execute(
            "submit_quote",
            lambda: self.quotes.submit_quote(
                job_id, provider_id, amount, currency, message, client_id=client_id
            ),
        )
        if not result.success:
            return result

        quote: QuoteRead = result.value
        job = await self._side_effect("load job", lambda: self.jobs.get_job(job_id))
        title = job.title if job else "your job"
        await self._notify(
            quote.client_id,
            NotificationType.NEW_QUOTE_RECEIVED,
            f"New quote of {quote.currency} {quote.amount:,.2f} for '{title}'.",
            related_entity_id=quote.id,
            link=f"/jobs/{job_id}",
        )

        async def send_email() -> None:
            client = await self._get_user(quote.client_id)
            provider = await self._get_user(provider_id)
            if client is None:
                return
            await self.mailer.send_new_quote_received(
                client.email, title, self._display_name(provider), quote.amount, quote.currency, job_id
            )

        await self._side_effect("email new quote", send_email)
        return result

    async def accept_quote(
        self, job_id: UUID, quote_id: UUID, acting_client_id: UUID
    ) -> LifecycleResult[AcceptQuoteOutcome]:
        result = await self._execute(
            "accept_quote",
            lambda: self.quotes.accept_quote(job_id, quote_id, acting_client_id),
        )
        if not result.success:
            return result

        quote, job = result.value
        chat_id = await self._side_effect(
            "provision chat",
            lambda: self.chats.get_or_create_chat(job.client_id, quote.provider_id, job_id=job.id),
        )
        await self._notify(
            quote.provider_id,
            NotificationType.QUOTE_STATUS_CHANGED,
            f"Your quote for '{job.title}' was accepted.",
            related_entity_id=quote.id,
            link=f"/messages/{chat_id}" if chat_id else f"/jobs/{job.id}",
        )
        await self._notify(
            job.client_id,
            NotificationType.JOB_STATUS_CHANGED,
            f"'{job.title}' is now assigned.",
            related_entity_id=job.id,
            link=f"/jobs/{job.id}",
        )

        async def send_email() -> None:
            provider = await self._get_user(quote.provider_id)
            client = await self._get_user(job.client_id)
            if provider is None:
                return
            await self.mailer.send_quote_accepted(
                provider.email,
                job.title,
                self._display_name(client),
                quote.amount,
                quote.currency,
                chat_id=chat_id,
            )

        await self._side_effect("email quote accepted", send_email)
        logger.info(f"[LIFECYCLE] Quote {quote_id} accepted for job {job_id}, chat={chat_id}")
        return LifecycleResult.ok(AcceptQuoteOutcome(quote=quote, job=job, chat_id=chat_id))

    async def reject_quote(
        self, quote_id: UUID, acting_client_id: UUID
    ) -> LifecycleResult[QuoteRead]:
        result = await self._execute(
            "reject_quote", lambda: self.quotes.reject_quote(quote_id, acting_client_id)
        )
        if not result.success:
            return result

        quote: QuoteRead = result.value
        job = await self._side_effect("load job", lambda: self.jobs.get_job(quote.job_id))
        title = job.title if job else "a job"
        await self._notify(
            quote.provider_id,
            NotificationType.QUOTE_STATUS_CHANGED,
            f"Your quote for '{title}' was not accepted.",
            related_entity_id=quote.id,
        )

        async def send_email() -> None:
            provider = await self._get_user(quote.provider_id)
            client = await self._get_user(acting_client_id)
            if provider is None:
                return
            await self.mailer.send_quote_rejected(provider.email, title, self._display_name(client))

        await self._side_effect("email quote rejected", send_email)
        return result

    # ---------------------------------------------------
    # Jobs
    # ---------------------------------------------------
    async def set_job_status(
        self,
        job_id: UUID,
        new_status: JobStatus,
        assigned_provider_id: UUID | None = None,
    ) -> LifecycleResult[JobRead]:
        """Administrative transition, e.g. raising or resolving a dispute."""
        result = await self._execute(
            "set_job_status",
            lambda: self.jobs.set_job_status(job_id, new_status, assigned_provider_id),
        )
        if result.success:
            job: JobRead = result.value
            await self._notify(
                job.client_id,
                NotificationType.JOB_STATUS_CHANGED,
                f"'{job.title}' is now {job.status.value.replace('_', ' ')}.",
                related_entity_id=job.id,
                link=f"/jobs/{job.id}",
            )
        return result

    async def mark_job_completed(
        self, job_id: UUID, acting_client_id: UUID
    ) -> LifecycleResult[JobRead]:
        async def complete() -> JobRead:
            job = await self.jobs.get_job(job_id)
            if job.client_id != acting_client_id:
                raise Unauthorized("Only the client who posted the job can complete it.")
            if job.status not in COMPLETABLE_STATUSES:
                raise InvalidTransition(
                    f"Job cannot be completed while '{job.status.value}'."
                )
            return await self.jobs.set_job_status(job_id, JobStatus.COMPLETED)

        result = await self._execute("mark_job_completed", complete)
        if result.success:
            job: JobRead = result.value
            await self._notify(
                job.assigned_provider_id,
                NotificationType.JOB_STATUS_CHANGED,
                f"'{job.title}' was marked as completed.",
                related_entity_id=job.id,
                link=f"/jobs/{job.id}",
            )
        return result

    async def start_job(self, job_id: UUID, acting_provider_id: UUID) -> LifecycleResult[JobRead]:
        async def start() -> JobRead:
            job = await self.jobs.get_job(job_id)
            if job.assigned_provider_id != acting_provider_id:
                raise Unauthorized("Only the assigned provider can start this job.")
            if job.status != JobStatus.ASSIGNED:
                raise InvalidTransition(f"Job cannot be started while '{job.status.value}'.")
            return await self.jobs.set_job_status(job_id, JobStatus.IN_PROGRESS)

        result = await self._execute("start_job", start)
        if result.success:
            job: JobRead = result.value
            await self._notify(
                job.client_id,
                NotificationType.JOB_STATUS_CHANGED,
                f"Work on '{job.title}' has started.",
                related_entity_id=job.id,
                link=f"/jobs/{job.id}",
            )
        return result

    async def cancel_job(self, job_id: UUID, acting_client_id: UUID) -> LifecycleResult[JobRead]:
        previous_provider_id: UUID | None = None

        async def cancel() -> JobRead:
            nonlocal previous_provider_id
            job = await self.jobs.get_job(job_id)
            if job.client_id != acting_client_id:
                raise Unauthorized("Only the client who posted the job can cancel it.")
            previous_provider_id = job.assigned_provider_id
            return await self.jobs.set_job_status(job_id, JobStatus.CANCELLED)

        result = await self._execute("cancel_job", cancel)
        if result.success:
            job: JobRead = result.value
            await self._notify(
                previous_provider_id,
                NotificationType.JOB_STATUS_CHANGED,
                f"'{job.title}' was cancelled by the client.",
                related_entity_id=job.id,
            )
        return result

    # ---------------------------------------------------
    # Reviews
    # ---------------------------------------------------
    async def submit_review(
        self,
        job_id: UUID,
        acting_client_id: UUID,
        quality_rating: int,
        timeliness_rating: int,
        professionalism_rating: int,
        comment: str,
    ) -> LifecycleResult[ReviewSubmission]:
        try:
            validate_sub_ratings(quality_rating, timeliness_rating, professionalism_rating)
            validate_comment(comment)
        except LifecycleError as e:
            return LifecycleResult.fail(e)

        async def review() -> ReviewSubmission:
            job = await self.jobs.get_job(job_id)
            if job.client_id != acting_client_id:
                raise Unauthorized("Only the client who posted the job can review it.")
            if job.status != JobStatus.COMPLETED or job.assigned_provider_id is None:
                raise JobNotReviewable("Only completed jobs with an assigned provider can be reviewed.")
            if await self.reviews.has_review(job_id, acting_client_id):
                raise DuplicateReview("You have already reviewed this job.")
            return await self.reviews.submit_review(
                job_id=job_id,
                provider_id=job.assigned_provider_id,
                client_id=acting_client_id,
                quality_rating=quality_rating,
                timeliness_rating=timeliness_rating,
                professionalism_rating=professionalism_rating,
                comment=comment,
            )

        result = await self._execute("submit_review", review)
        if result.success:
            submission: ReviewSubmission = result.value
            provider_id = submission.review.provider_id
            await self._notify(
                provider_id,
                NotificationType.NEW_REVIEW,
                f"You received a new {submission.review.rating:.1f}-star review.",
                related_entity_id=submission.review.id,
                link=f"/reviews/provider/{provider_id}",
            )
            await self._side_effect(
                "invalidate rating cache", lambda: self.reviews.invalidate_rating_cache(provider_id)
            )
        return result


# ---------------------------------------------------
# Dependency
# ---------------------------------------------------
async def get_lifecycle(db: AsyncSession = Depends(get_db)) -> LifecycleOrchestrator:
    return LifecycleOrchestrator(db)
