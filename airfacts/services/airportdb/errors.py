"""Error hierarchy for the AirportDB pipeline."""

from __future__ import annotations

from airfacts.contracts.enums import ErrorCode, ProcessingErrorCode


class AirportDBError(Exception):
    """Base exception for upstream provider failures."""

    code: ErrorCode = ErrorCode.API_ERROR
    retryable: bool = True

    def __init__(self, message: str, *, retry_after: int | None = None):
        self.message = message
        self.retry_after = retry_after
        super().__init__(message)


class InvalidRequestError(AirportDBError):
    """Malformed identifier or query. Never retried, never falls back."""

    code = ErrorCode.INVALID_REQUEST
    retryable = False


class NotFoundError(AirportDBError):
    code = ErrorCode.NOT_FOUND
    retryable = False


class RateLimitedError(AirportDBError):
    """Quota exhausted, locally or upstream. ``retry_after`` is in seconds."""

    code = ErrorCode.RATE_LIMITED
    retryable = False


class NetworkError(AirportDBError):
    code = ErrorCode.NETWORK_ERROR


class ApiError(AirportDBError):
    """Upstream 5xx, auth failure or unexpected payload."""

    code = ErrorCode.API_ERROR

    def __init__(self, message: str, *, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
        # 401/403 will not fix themselves on retry
        if status_code in (401, 403):
            self.retryable = False


class DataProcessingError(Exception):
    """A raw record lacks a field the processed form cannot do without."""

    def __init__(self, code: ProcessingErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class InvalidCoordinateError(DataProcessingError, ValueError):
    """Latitude or longitude outside the WGS84 domain."""

    def __init__(self, message: str):
        super().__init__(ProcessingErrorCode.INVALID_COORDINATES, message)
