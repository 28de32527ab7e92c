"""Storage exceptions, one per error kind."""

from __future__ import annotations

from typing import ClassVar

from polystore.core.enums import ErrorKind


class StorageError(Exception):
    """Base exception for storage operations."""

    kind: ClassVar[ErrorKind] = ErrorKind.INTERNAL

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def retryable(self) -> bool:
        """Whether the failed operation may succeed if retried as-is."""
        return self.kind.retryable


class StorageNotFoundError(StorageError):
    """Raised when the requested object doesn't exist."""

    kind = ErrorKind.NOT_FOUND


class StorageUnauthorizedError(StorageError):
    """Raised when the backend rejects credentials or permissions."""

    kind = ErrorKind.UNAUTHORIZED


class StorageTemporaryError(StorageError):
    """Raised on transient server or network conditions. Trying again later may succeed."""

    kind = ErrorKind.TEMPORARY_FAILURE


class StorageValidationError(StorageError):
    """Raised when a request is malformed, too large or otherwise invalid."""

    kind = ErrorKind.INVALID_ARGUMENT


class StorageInternalError(StorageError):
    """Raised on unexpected backend failures."""

    kind = ErrorKind.INTERNAL


class StorageTimeoutError(StorageError):
    """Raised when an operation exceeded its deadline."""

    kind = ErrorKind.TIMEOUT


class StorageCancelledError(StorageError):
    """Raised when the operation's cancellation token fired."""

    kind = ErrorKind.CANCELLED


ERROR_TYPES: dict[ErrorKind, type[StorageError]] = {
    ErrorKind.NOT_FOUND: StorageNotFoundError,
    ErrorKind.UNAUTHORIZED: StorageUnauthorizedError,
    ErrorKind.TEMPORARY_FAILURE: StorageTemporaryError,
    ErrorKind.INVALID_ARGUMENT: StorageValidationError,
    ErrorKind.INTERNAL: StorageInternalError,
    ErrorKind.TIMEOUT: StorageTimeoutError,
    ErrorKind.CANCELLED: StorageCancelledError,
}


def error_for_kind(
    kind: ErrorKind,
    message: str,
    cause: BaseException | None = None,
) -> StorageError:
    """Build the typed exception for an error kind."""
    return ERROR_TYPES[kind](message, cause=cause)
