from enum import Enum


class ErrorKind(str, Enum):
    """Semantically stable failure categories shared by every backend.

    Callers branch on the kind, never on message text.
    """

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    TEMPORARY_FAILURE = "temporary_failure"  # Retry may succeed
    INVALID_ARGUMENT = "invalid_argument"
    INTERNAL = "internal"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"

    @property
    def retryable(self) -> bool:
        """Whether retrying without caller intervention can succeed."""
        return self in (ErrorKind.TEMPORARY_FAILURE, ErrorKind.TIMEOUT)


class BackendType(str, Enum):
    """Available storage backends."""

    FILESYSTEM = "filesystem"
    MEMORY = "memory"
    NULL = "null"
    S3 = "s3"
    BUNNY = "bunny"


class TransferStage(str, Enum):
    """Step of a per-item bulk operation that produced a failure."""

    COPY = "copy"
    DELETE_SOURCE = "delete_source"
    DELETE = "delete"  # delete_all
