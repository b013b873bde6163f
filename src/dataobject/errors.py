"""Structured error types for dataobject."""

from __future__ import annotations


class DataObjectError(Exception):
    """Base error for all dataobject errors."""


class IllegalStateError(DataObjectError):
    """Raised when an operation is not allowed in the object's current state."""


class NotFoundError(DataObjectError):
    """Raised when a lookup by primary key matches no rows."""


class ValidationError(DataObjectError):
    """Raised when caller-supplied data cannot be turned into a query."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class StorageBackendError(DataObjectError):
    """Raised when backend storage operations fail."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage backend error during {operation}: {detail}")
