"""
tests/lifecycle/test_lifecycle_concurrency.py

Concurrent callers, each with its own session and connection, racing on the
same job or provider. The database guards must let exactly one accept and one
review per pair win, and the aggregate must equal the mean of what committed.
"""

import asyncio

import pytest
from sqlalchemy import func, select
from unittest.mock import AsyncMock

from fundiconnect.core.exceptions import ErrorCode
from fundiconnect.database.enums import UserRole
from fundiconnect.job.models import Job, JobStatus
from fundiconnect.lifecycle.services import LifecycleOrchestrator
from fundiconnect.provider.models import ProviderProfile
from fundiconnect.quote.models import Quote, QuoteStatus
from fundiconnect.review.models import Review
from fundiconnect.review.services import composite_rating


async def _run_with_own_session(session_factory, operation):
    async with session_factory() as session:
        lifecycle = LifecycleOrchestrator(session, mailer=AsyncMock())
        return await operation(lifecycle)


@pytest.mark.asyncio
async def test_concurrent_accepts_of_sibling_quotes(
    session_factory, make_user, make_job, make_quote, fetch
) -> None:
    client_id = await make_user(UserRole.CLIENT)
    job_id = await make_job(client_id)
    quote_ids = []
    for amount in (5000, 4500, 4800):
        provider_id = await make_user(UserRole.PROVIDER)
        quote_ids.append(await make_quote(job_id, provider_id, client_id, amount=amount))

    results = await asyncio.gather(
        *[
            _run_with_own_session(
                session_factory, lambda lc, q=quote_id: lc.accept_quote(job_id, q, client_id)
            )
            for quote_id in quote_ids
        ]
    )

    winners = [r for r in results if r.success]
    losers = [r for r in results if not r.success]
    assert len(winners) == 1
    assert all(r.error.code == ErrorCode.JOB_NOT_ACCEPTING_QUOTES for r in losers)

    async with session_factory() as session:
        accepted = await session.scalar(
            select(func.count())
            .select_from(Quote)
            .where(Quote.job_id == job_id, Quote.status == QuoteStatus.ACCEPTED)
        )
    assert accepted == 1

    job = await fetch(Job, job_id)
    assert job.status == JobStatus.ASSIGNED
    assert job.accepted_quote_id == winners[0].value.quote.id
    assert job.assigned_provider_id == winners[0].value.quote.provider_id


@pytest.mark.asyncio
async def test_concurrent_accepts_of_same_quote(
    session_factory, make_user, make_job, make_quote
) -> None:
    client_id = await make_user(UserRole.CLIENT)
    provider_id = await make_user(UserRole.PROVIDER)
    job_id = await make_job(client_id)
    quote_id = await make_quote(job_id, provider_id, client_id)

    results = await asyncio.gather(
        *[
            _run_with_own_session(
                session_factory, lambda lc: lc.accept_quote(job_id, quote_id, client_id)
            )
            for _ in range(3)
        ]
    )

    assert sum(1 for r in results if r.success) == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_reviews(session_factory, make_user, make_job, fetch) -> None:
    provider_id = await make_user(UserRole.PROVIDER)
    client_id = await make_user(UserRole.CLIENT)
    job_id = await make_job(client_id, JobStatus.COMPLETED, provider_id)

    results = await asyncio.gather(
        *[
            _run_with_own_session(
                session_factory,
                lambda lc, score=score: lc.submit_review(
                    job_id, client_id, score, score, score, "Racing review"
                ),
            )
            for score in (5, 4, 3)
        ]
    )

    assert sum(1 for r in results if r.success) == 1
    assert all(r.error.code == ErrorCode.DUPLICATE_REVIEW for r in results if not r.success)

    async with session_factory() as session:
        count = await session.scalar(
            select(func.count()).select_from(Review).where(Review.job_id == job_id)
        )
        profile = await session.scalar(
            select(ProviderProfile).where(ProviderProfile.user_id == provider_id)
        )
    assert count == 1
    assert profile.reviews_count == 1
    winner = next(r for r in results if r.success)
    assert profile.rating == pytest.approx(winner.value.review.rating)


@pytest.mark.asyncio
async def test_concurrent_reviews_keep_aggregate_exact(
    session_factory, make_user, make_job
) -> None:
    provider_id = await make_user(UserRole.PROVIDER)
    scores = [(5, 5, 4), (3, 3, 3), (1, 2, 2), (4, 5, 5), (2, 4, 3)]
    jobs = []
    for _ in scores:
        client_id = await make_user(UserRole.CLIENT)
        jobs.append((client_id, await make_job(client_id, JobStatus.COMPLETED, provider_id)))

    results = await asyncio.gather(
        *[
            _run_with_own_session(
                session_factory,
                lambda lc, c=client_id, j=job_id, s=score: lc.submit_review(j, c, *s, "Parallel"),
            )
            for (client_id, job_id), score in zip(jobs, scores)
        ]
    )

    assert all(r.success for r in results), [r.error for r in results if not r.success]
    async with session_factory() as session:
        profile = await session.scalar(
            select(ProviderProfile).where(ProviderProfile.user_id == provider_id)
        )
    expected = sum(composite_rating(*s) for s in scores) / len(scores)
    assert profile.reviews_count == len(scores)
    assert profile.rating == pytest.approx(expected)
