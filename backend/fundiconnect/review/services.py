"""
backend/fundiconnect/review/services.py

Review Aggregator
Business logic for reviews and provider rating aggregates:
- Submit a review and fold its score into the provider's running mean,
  both in one transaction (Authenticated Client, via the orchestrator)
- Check whether a client already reviewed a job
- List reviews received by a provider
- Rating summary for a provider, served through the Redis cache
"""

import logging
from typing import Any
from uuid import UUID

from redis.exceptions import RedisError
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fundiconnect.core.cache import _cache_key, invalidate_keys, redis_client
from fundiconnect.core.config import settings
from fundiconnect.core.exceptions import DuplicateReview, ProviderNotFound, ValidationFailed
from fundiconnect.core.transactions import atomic
from fundiconnect.provider.models import ProviderProfile
from fundiconnect.review import schemas
from fundiconnect.review.models import Review

logger = logging.getLogger(__name__)

# --- Cache Namespaces ---
REVIEW_SUMMARY_PROVIDER_NS = "review:summary:provider"

MIN_RATING = 1
MAX_RATING = 5


# ---------------------------------------------------
# Rating Arithmetic
# ---------------------------------------------------
def validate_sub_ratings(*ratings: Any) -> None:
    """Each sub-rating must be an integer from 1 to 5 (booleans are rejected)."""
    for value in ratings:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationFailed("Ratings must be whole numbers between 1 and 5.")
        if not MIN_RATING <= value <= MAX_RATING:
            raise ValidationFailed("Ratings must be between 1 and 5.")


def validate_comment(comment: Any) -> str:
    if not isinstance(comment, str) or not comment.strip():
        raise ValidationFailed("A review comment is required.")
    return comment.strip()


def composite_rating(quality: int, timeliness: int, professionalism: int) -> float:
    return (quality + timeliness + professionalism) / 3


def fold_rating(old_mean: Any, old_count: Any, composite: Any) -> Any:
    """
    Running mean after adding one score.

    Works on plain numbers and on SQL column expressions, so the database can
    evaluate exactly the same formula inside a single UPDATE.
    """
    return (old_mean * old_count + composite) / (old_count + 1)


def _is_duplicate_review_error(exc: IntegrityError) -> bool:
    text = str(exc.orig or exc).lower()
    return "uq_reviews_job_client" in text or "reviews.job_id, reviews.client_id" in text


# ---------------------------------------------------
# Review Aggregator
# ---------------------------------------------------
class ReviewAggregator:
    """Service layer for reviews and provider rating aggregates, with caching."""

    def __init__(self, db: AsyncSession, cache: Any | None = None) -> None:
        """Initialize the service with a database session and cache client."""
        self.db = db
        self.cache = cache if cache is not None else redis_client
        if not self.cache:
            logger.debug("[CACHE ASYNC REVIEW] Redis client not configured, caching disabled.")

    async def _get_profile_for_update(self, provider_id: UUID) -> ProviderProfile:
        result = await self.db.execute(
            select(ProviderProfile)
            .where(ProviderProfile.user_id == provider_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        profile = result.scalars().first()
        if not profile:
            logger.warning(f"[REVIEW] Provider profile not found: provider_id={provider_id}")
            raise ProviderNotFound(f"Provider {provider_id} not found.")
        return profile

    # ---------------------------------------------------
    # Submit
    # ---------------------------------------------------
    async def submit_review(
        self,
        job_id: UUID,
        provider_id: UUID,
        client_id: UUID,
        quality_rating: int,
        timeliness_rating: int,
        professionalism_rating: int,
        comment: str,
    ) -> schemas.ReviewSubmission:
        """
        Insert the review and update the provider aggregate atomically.
        Either both rows change or neither does.
        """
        validate_sub_ratings(quality_rating, timeliness_rating, professionalism_rating)
        comment = validate_comment(comment)
        composite = composite_rating(quality_rating, timeliness_rating, professionalism_rating)

        try:
            async with atomic(self.db):
                profile = await self._get_profile_for_update(provider_id)

                if await self.has_review(job_id, client_id):
                    raise DuplicateReview("You have already reviewed this job.")

                review = Review(
                    job_id=job_id,
                    provider_id=provider_id,
                    client_id=client_id,
                    quality_rating=quality_rating,
                    timeliness_rating=timeliness_rating,
                    professionalism_rating=professionalism_rating,
                    rating=composite,
                    comment=comment,
                )
                self.db.add(review)
                await self.db.flush()

                await self.db.execute(
                    update(ProviderProfile)
                    .where(ProviderProfile.id == profile.id)
                    .values(
                        rating=fold_rating(
                            ProviderProfile.rating, ProviderProfile.reviews_count, composite
                        ),
                        reviews_count=ProviderProfile.reviews_count + 1,
                        updated_at=func.now(),
                    )
                    .execution_options(synchronize_session=False)
                )
                await self.db.refresh(profile)
                aggregate = schemas.ProviderRatingSummary(
                    provider_id=provider_id,
                    rating=profile.rating,
                    reviews_count=profile.reviews_count,
                )
        except IntegrityError as e:
            if _is_duplicate_review_error(e):
                logger.warning(
                    f"[REVIEW] Concurrent duplicate review rejected: job_id={job_id}, client_id={client_id}"
                )
                raise DuplicateReview("You have already reviewed this job.") from e
            raise

        await self.db.refresh(review)
        logger.info(
            f"[REVIEW] Review submitted: job_id={job_id}, provider_id={provider_id}, "
            f"rating={composite:.3f}, aggregate={aggregate.rating:.3f}/{aggregate.reviews_count}"
        )
        return schemas.ReviewSubmission(
            review=schemas.ReviewRead.model_validate(review), aggregate=aggregate
        )

    # ---------------------------------------------------
    # Reads
    # ---------------------------------------------------
    async def has_review(self, job_id: UUID, client_id: UUID) -> bool:
        result = await self.db.execute(
            select(Review.id).where(Review.job_id == job_id, Review.client_id == client_id)
        )
        return result.first() is not None

    async def list_reviews_for_provider(
        self, provider_id: UUID, skip: int = 0, limit: int = 100
    ) -> list[schemas.ReviewRead]:
        """Reviews received by a provider, newest first."""
        result = await self.db.execute(
            select(Review)
            .where(Review.provider_id == provider_id)
            .order_by(Review.review_date.desc())
            .offset(skip)
            .limit(limit)
        )
        return [schemas.ReviewRead.model_validate(r) for r in result.scalars().all()]

    async def get_rating_summary(self, provider_id: UUID) -> schemas.ProviderRatingSummary:
        """
        Current rating aggregate for a provider, with cache support.
        """
        cache_key = _cache_key(REVIEW_SUMMARY_PROVIDER_NS, provider_id)
        if self.cache:
            try:
                cached_data = await self.cache.get(cache_key)
                if cached_data:
                    logger.info(f"[CACHE HIT] Rating summary for provider {provider_id}")
                    return schemas.ProviderRatingSummary.model_validate_json(cached_data)
                logger.info(f"[CACHE MISS] Rating summary for provider {provider_id}")
            except RedisError as e:
                logger.error(f"[CACHE ERROR] Failed to read {cache_key}: {e}")

        result = await self.db.execute(
            select(ProviderProfile)
            .where(ProviderProfile.user_id == provider_id)
            .execution_options(populate_existing=True)
        )
        profile = result.scalars().first()
        if not profile:
            raise ProviderNotFound(f"Provider {provider_id} not found.")

        summary = schemas.ProviderRatingSummary(
            provider_id=provider_id,
            rating=profile.rating,
            reviews_count=profile.reviews_count,
        )
        if self.cache:
            try:
                await self.cache.set(
                    cache_key, summary.model_dump_json(), ex=settings.DEFAULT_CACHE_TTL
                )
            except RedisError as e:
                logger.error(f"[CACHE ERROR] Failed to write {cache_key}: {e}")
        return summary

    async def invalidate_rating_cache(self, provider_id: UUID) -> None:
        await invalidate_keys(self.cache, _cache_key(REVIEW_SUMMARY_PROVIDER_NS, provider_id))
