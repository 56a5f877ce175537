"""
backend/fundiconnect/core/schemas.py

Core Schemas

Defines the generic lifecycle operation result shared by all services:
a success payload or a typed failure that routes turn into an APIError.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from fundiconnect.core.exceptions import (
    APIError,
    ErrorCategory,
    ErrorCode,
    CATEGORY_STATUS_CODES,
    LifecycleError,
)

T = TypeVar("T")


class LifecycleErrorInfo(BaseModel):
    """Describes why a lifecycle operation failed."""

    code: ErrorCode = Field(..., description="Machine-readable failure code")
    category: ErrorCategory = Field(..., description="Failure category")
    message: str = Field(..., description="Human-readable failure message")
    retryable: bool = Field(False, description="Whether retrying the whole operation may succeed")

    @property
    def status_code(self) -> int:
        return CATEGORY_STATUS_CODES[self.category]


class LifecycleResult(BaseModel, Generic[T]):
    """
    Discriminated result of a lifecycle operation.
    Exactly one of `value` / `error` is meaningful, selected by `success`.
    """

    success: bool = Field(..., description="Whether the authoritative operation committed")
    value: T | None = Field(None, description="Success payload")
    error: LifecycleErrorInfo | None = Field(None, description="Failure details")

    @classmethod
    def ok(cls, value: T) -> "LifecycleResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, exc: LifecycleError) -> "LifecycleResult[T]":
        return cls(
            success=False,
            error=LifecycleErrorInfo(
                code=exc.code,
                category=exc.category,
                message=exc.message,
                retryable=exc.retryable,
            ),
        )

    def unwrap(self) -> T:
        """Return the payload or raise the matching APIError (used by routes)."""
        if not self.success or self.error is not None:
            error = self.error
            if error is None:
                raise APIError(status_code=500, message="Operation failed without details.")
            raise APIError(status_code=error.status_code, message=error.message)
        return self.value  # type: ignore[return-value]
