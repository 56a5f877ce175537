"""
core/exceptions.py

Description:
Defines the standard HTTP error response format for the API and the typed
lifecycle errors raised by the job/quote/review services.

Services raise `LifecycleError` subclasses; the lifecycle orchestrator turns
them into `LifecycleResult` failures; routes turn failed results into `APIError`.
"""

import enum
from typing import Any

from fastapi import HTTPException, status


class APIError(HTTPException):
    """Custom exception with standardized error response."""

    def __init__(self, status_code: int, message: str, headers: dict[str, Any] | None = None):
        super().__init__(status_code=status_code, detail={"error": message}, headers=headers)


class EmailDeliveryError(Exception):
    """Email provider rejected the message or is not configured."""


# ---------------------------------------------------
# Lifecycle Error Taxonomy
# ---------------------------------------------------
class ErrorCategory(str, enum.Enum):
    VALIDATION = "VALIDATION"
    AUTHORIZATION = "AUTHORIZATION"
    NOT_FOUND = "NOT_FOUND"
    STATE_CONFLICT = "STATE_CONFLICT"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class ErrorCode(str, enum.Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    PROVIDER_NOT_FOUND = "PROVIDER_NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    JOB_NOT_ACCEPTING_QUOTES = "JOB_NOT_ACCEPTING_QUOTES"
    QUOTE_NOT_PENDING = "QUOTE_NOT_PENDING"
    QUOTE_JOB_MISMATCH = "QUOTE_JOB_MISMATCH"
    DUPLICATE_REVIEW = "DUPLICATE_REVIEW"
    JOB_NOT_REVIEWABLE = "JOB_NOT_REVIEWABLE"
    TRANSACTION_CONFLICT = "TRANSACTION_CONFLICT"


CATEGORY_STATUS_CODES: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorCategory.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorCategory.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCategory.STATE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCategory.INFRASTRUCTURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class LifecycleError(Exception):
    """Base class for expected failures of lifecycle operations."""

    code: ErrorCode = ErrorCode.VALIDATION_FAILED
    category: ErrorCategory = ErrorCategory.VALIDATION
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return CATEGORY_STATUS_CODES[self.category]


class ValidationFailed(LifecycleError):
    """Malformed input, rejected before any store access."""


class NotFound(LifecycleError):
    code = ErrorCode.NOT_FOUND
    category = ErrorCategory.NOT_FOUND


class ProviderNotFound(NotFound):
    code = ErrorCode.PROVIDER_NOT_FOUND


class Unauthorized(LifecycleError):
    """Acting user is not the owner of the job or quote being changed."""

    code = ErrorCode.UNAUTHORIZED
    category = ErrorCategory.AUTHORIZATION


class InvalidTransition(LifecycleError):
    code = ErrorCode.INVALID_TRANSITION
    category = ErrorCategory.STATE_CONFLICT


class JobNotAcceptingQuotes(LifecycleError):
    code = ErrorCode.JOB_NOT_ACCEPTING_QUOTES
    category = ErrorCategory.STATE_CONFLICT


class QuoteNotPending(LifecycleError):
    code = ErrorCode.QUOTE_NOT_PENDING
    category = ErrorCategory.STATE_CONFLICT


class QuoteJobMismatch(LifecycleError):
    code = ErrorCode.QUOTE_JOB_MISMATCH
    category = ErrorCategory.VALIDATION


class DuplicateReview(LifecycleError):
    code = ErrorCode.DUPLICATE_REVIEW
    category = ErrorCategory.STATE_CONFLICT


class JobNotReviewable(LifecycleError):
    code = ErrorCode.JOB_NOT_REVIEWABLE
    category = ErrorCategory.STATE_CONFLICT


class TransactionConflict(LifecycleError):
    """The store aborted the transaction because of concurrent writers."""

    code = ErrorCode.TRANSACTION_CONFLICT
    category = ErrorCategory.INFRASTRUCTURE
    retryable = True
