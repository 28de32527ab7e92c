"""Build the configured storage backend."""

from __future__ import annotations

import logging

from polystore.core.config import Settings, get_settings
from polystore.core.enums import BackendType
from polystore.core.logging_config import configure_logging

from .base import ObjectStorage
from .bunny import BunnyStorage, BunnyStorageSettings
from .exceptions import StorageValidationError
from .filesystem import FilesystemStorage
from .memory import MemoryStorage, NullStorage
from .s3 import S3Storage, S3StorageSettings

logger = logging.getLogger(__name__)


def create_storage(settings: Settings | None = None) -> ObjectStorage:
    """Create a backend from settings.

    Also applies the configured level to the ``polystore`` logger.

    Args:
        settings: Settings to use, the cached environment settings by default.

    Returns:
        A new backend instance.

    Raises:
        StorageValidationError: If the selected backend lacks credentials.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level.upper())
    backend = settings.storage_backend
    chunk_size = settings.chunk_size_bytes

    if backend == BackendType.FILESYSTEM:
        storage: ObjectStorage = FilesystemStorage(settings.filesystem_root, chunk_size=chunk_size)
    elif backend == BackendType.MEMORY:
        storage = MemoryStorage(settings.memory_store_name, chunk_size=chunk_size)
    elif backend == BackendType.NULL:
        storage = NullStorage(settings.memory_store_name, chunk_size=chunk_size)
    elif backend == BackendType.S3:
        if not settings.s3_configured:
            raise StorageValidationError("S3 backend selected but credentials or bucket are missing")
        storage = S3Storage(
            S3StorageSettings(
                access_key_id=settings.s3_access_key_id,
                secret_access_key=settings.s3_secret_access_key,
                bucket_name=settings.s3_bucket_name,
                region_name=settings.s3_region_name,
                endpoint_url=settings.s3_endpoint_url,
                max_attempts=settings.s3_max_attempts,
                connect_timeout=settings.connect_timeout,
                read_timeout=settings.read_timeout,
            ),
            chunk_size=chunk_size,
        )
    elif backend == BackendType.BUNNY:
        if not settings.bunny_configured:
            raise StorageValidationError("BunnyCDN backend selected but API key or zone is missing")
        storage = BunnyStorage(
            BunnyStorageSettings(
                api_key=settings.bunny_api_key,
                storage_zone=settings.bunny_storage_zone,
                region=settings.bunny_region,
                timeout=settings.read_timeout,
                connect_timeout=settings.connect_timeout,
            ),
            chunk_size=chunk_size,
        )
    else:
        raise StorageValidationError(f"Unknown storage backend: {backend}")

    logger.info(f"Created {backend.value} storage backend: {storage!r}")
    return storage
