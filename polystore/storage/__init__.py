"""Storage module.

Provides one capability contract over filesystem, in-memory, S3-compatible
and BunnyCDN backends, plus backend-independent bulk operations.
"""

from polystore.core.enums import ErrorKind, TransferStage

from .base import ObjectStorage
from .bunny import BunnyStorage, BunnyStorageSettings
from .cancellation import CancellationToken
from .classifier import (
    classify_error_code,
    classify_exception,
    classify_status,
    raise_for_status,
    to_storage_error,
)
from .exceptions import (
    StorageCancelledError,
    StorageError,
    StorageInternalError,
    StorageNotFoundError,
    StorageTemporaryError,
    StorageTimeoutError,
    StorageUnauthorizedError,
    StorageValidationError,
)
from .factory import create_storage
from .filesystem import FilesystemStorage
from .memory import MemoryStorage, NullStorage
from .progress import ProgressTranslator, compute_stream_length
from .s3 import S3Storage, S3StorageSettings
from .schemas import CopyProgress, ItemOutcome, StoreIdentity, TransferResult
from .transfer import delete_all, transfer, upload_file

__all__ = [
    # Protocol
    "ObjectStorage",
    # Implementations
    "BunnyStorage",
    "BunnyStorageSettings",
    "FilesystemStorage",
    "MemoryStorage",
    "NullStorage",
    "S3Storage",
    "S3StorageSettings",
    "create_storage",
    # Bulk operations
    "delete_all",
    "transfer",
    "upload_file",
    # Progress and cancellation
    "CancellationToken",
    "ProgressTranslator",
    "compute_stream_length",
    # Schemas
    "CopyProgress",
    "ErrorKind",
    "ItemOutcome",
    "StoreIdentity",
    "TransferResult",
    "TransferStage",
    # Error classification
    "classify_error_code",
    "classify_exception",
    "classify_status",
    "raise_for_status",
    "to_storage_error",
    # Exceptions
    "StorageCancelledError",
    "StorageError",
    "StorageInternalError",
    "StorageNotFoundError",
    "StorageTemporaryError",
    "StorageTimeoutError",
    "StorageUnauthorizedError",
    "StorageValidationError",
]
