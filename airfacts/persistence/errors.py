"""Persistence-specific exceptions."""


class PersistenceError(Exception):
    """Base exception for all persistence errors."""


class CacheBackendError(PersistenceError):
    """Raised when the airport cache store cannot be read or written."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"cache {operation} failed: {cause}")
