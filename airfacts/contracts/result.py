"""Generic service result wrapper."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ServiceError(BaseModel):
    """Structured error from a service call."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, str | int | float | bool | None] | None = None


class ServiceResult(BaseModel, Generic[T]):
    """Generic wrapper for service responses.

    On success: ``data`` is populated.
    On failure: ``error`` is populated with structured error info.
    """

    success: bool
    data: T | None = None
    error: ServiceError | None = None
    duration_ms: float | None = Field(default=None, ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @classmethod
    def ok(cls, data: T, duration_ms: float | None = None) -> "ServiceResult[T]":
        return cls(success=True, data=data, duration_ms=duration_ms)

    @classmethod
    def fail(
        cls, code: str, message: str, **details: str | int | float | bool | None
    ) -> "ServiceResult[T]":
        return cls(
            success=False,
            error=ServiceError(code=code, message=message, details=details or None),
        )

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None


async def attempt(
    operation: Callable[[], Awaitable[T]], *, label: str
) -> ServiceResult[T]:
    """Run *operation* and capture its outcome as a ``ServiceResult``.

    Exceptions carrying a ``code`` attribute (the upstream and processing
    error hierarchies) keep it; anything else becomes ``internal_error``.
    ``retry_after`` is forwarded as a detail when present. Cancellation is
    not an ``Exception`` and always propagates.
    """
    started = time.perf_counter()
    try:
        data = await operation()
    except Exception as exc:
        code = getattr(exc, "code", None) or "internal_error"
        code = getattr(code, "value", code)
        logger.warning("%s failed (%s): %s", label, code, exc)
        details: dict[str, str | int | float | bool | None] = {}
        retry_after = getattr(exc, "retry_after", None)
        if retry_after is not None:
            details["retry_after"] = retry_after
        return ServiceResult.fail(str(code), str(exc), **details)
    elapsed = (time.perf_counter() - started) * 1000
    return ServiceResult.ok(data, duration_ms=elapsed)
