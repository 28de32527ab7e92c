"""S3-compatible storage backend (AWS S3, Cloudflare R2, MinIO)."""

from __future__ import annotations

import io
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import IO, TYPE_CHECKING

import aioboto3
from botocore.config import Config

from .base import same_identity
from .cancellation import CancellationToken, check_cancelled
from .classifier import raise_storage_error
from .exceptions import StorageValidationError
from .progress import ProgressObserver, ProgressTranslator, compute_stream_length
from .schemas import StoreIdentity
from .streams import DEFAULT_CHUNK_SIZE, close_quietly, copy_stream

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

    from .base import ObjectStorage

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 1024  # bytes, UTF-8 encoded


class S3StorageSettings:
    """S3-specific configuration."""

    def __init__(
        self,
        *,
        access_key_id: str,
        secret_access_key: str,
        bucket_name: str,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        max_attempts: int = 3,
        connect_timeout: float = 10,
        read_timeout: float = 30,
    ) -> None:
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.bucket_name = bucket_name
        self.region_name = region_name
        self.endpoint_url = endpoint_url
        self.max_attempts = max_attempts
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    @classmethod
    def for_r2(
        cls,
        *,
        account_id: str,
        access_key_id: str,
        secret_access_key: str,
        bucket_name: str,
    ) -> S3StorageSettings:
        """Settings for a Cloudflare R2 bucket."""
        return cls(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            bucket_name=bucket_name,
            region_name="auto",
            endpoint_url=f"https://{account_id}.r2.cloudflarestorage.com",
        )


class S3Storage:
    """Object storage on an S3-compatible endpoint.

    Connections are opened per operation through an aioboto3 session.
    Uploads go through the managed transfer (``upload_fileobj``), which
    switches to multipart for large bodies; S3 only exposes the object once
    the upload completes.
    """

    def __init__(self, settings: S3StorageSettings, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        """Initialize S3 storage.

        Args:
            settings: S3 configuration settings.
            chunk_size: Buffer size for streamed downloads.
        """
        self._settings = settings
        self._chunk_size = chunk_size
        self._session = aioboto3.Session()
        self._client_config = Config(
            signature_version="s3v4",
            retries={"max_attempts": settings.max_attempts, "mode": "adaptive"},
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )

    @property
    def identity(self) -> StoreIdentity:
        return StoreIdentity(
            principal=self._settings.access_key_id,
            bucket=self._settings.bucket_name,
        )

    def is_same_store(self, other: ObjectStorage) -> bool:
        return same_identity(self, other)

    def __repr__(self) -> str:
        return f"AmazonS3 {self._settings.bucket_name}"

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[S3Client]:
        """Get S3 client with context management.

        Yields:
            Configured S3 client.
        """
        async with self._session.client(  # type: ignore[reportGeneralTypeIssues]
            "s3",
            endpoint_url=self._settings.endpoint_url,
            region_name=self._settings.region_name,
            aws_access_key_id=self._settings.access_key_id,
            aws_secret_access_key=self._settings.secret_access_key,
            config=self._client_config,
        ) as client:
            yield client

    def _validate_key(self, name: str) -> None:
        if not name:
            raise StorageValidationError("Object name must not be empty")
        if len(name.encode("utf-8")) > MAX_KEY_LENGTH:
            raise StorageValidationError(
                f"Object name exceeds {MAX_KEY_LENGTH} bytes: {name[:64]}..."
            )

    async def list_objects(self, cancel: CancellationToken | None = None) -> list[str]:
        """List every key in the bucket, page by page."""
        check_cancelled(cancel, "list")
        names: list[str] = []
        try:
            async with self._get_client() as client:
                paginator = client.get_paginator("list_objects_v2")
                async for page in paginator.paginate(Bucket=self._settings.bucket_name):
                    names.extend(obj["Key"] for obj in page.get("Contents", []))
                    check_cancelled(cancel, "list")
        except Exception as e:
            raise_storage_error(e, f"Failed to list {self}")

        logger.debug(f"Listed {len(names)} objects in {self}")
        return names

    async def download(self, name: str, cancel: CancellationToken | None = None) -> IO[bytes]:
        """Download an object into memory."""
        check_cancelled(cancel, "download")
        try:
            async with self._get_client() as client:
                response = await client.get_object(
                    Bucket=self._settings.bucket_name,
                    Key=name,
                )
                data = await response["Body"].read()
        except Exception as e:
            raise_storage_error(e, f"Failed to download {name}")

        logger.debug(f"Downloaded {len(data)} bytes from {self}: {name}")
        return io.BytesIO(data)

    async def download_to(
        self,
        name: str,
        output: IO[bytes],
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
    ) -> int:
        check_cancelled(cancel, "download")
        try:
            async with self._get_client() as client:
                response = await client.get_object(
                    Bucket=self._settings.bucket_name,
                    Key=name,
                )
                written = await copy_stream(
                    response["Body"],
                    output,
                    progress=ProgressTranslator.wrap(progress, response.get("ContentLength", 0)),
                    cancel=cancel,
                    chunk_size=self._chunk_size,
                )
        except Exception as e:
            raise_storage_error(e, f"Failed to download {name}")

        logger.debug(f"Downloaded {written} bytes from {self}: {name}")
        return written

    async def upload(
        self,
        name: str,
        source: IO[bytes],
        *,
        dispose_source: bool = False,
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
        expected_length: int = 0,
    ) -> None:
        try:
            check_cancelled(cancel, "upload")
            self._validate_key(name)
            translator = ProgressTranslator.wrap(
                progress, compute_stream_length(source, expected_length)
            )
            try:
                async with self._get_client() as client:
                    await client.upload_fileobj(
                        source,
                        self._settings.bucket_name,
                        name,
                        Callback=translator,
                    )
            except Exception as e:
                raise_storage_error(e, f"Failed to upload {name}")

            logger.info(f"Uploaded {name} to {self}")
        finally:
            if dispose_source:
                close_quietly(source)

    async def delete(self, name: str, cancel: CancellationToken | None = None) -> None:
        """Delete an object. S3 deletes are idempotent, so existence is checked first."""
        check_cancelled(cancel, "delete")
        try:
            async with self._get_client() as client:
                await client.head_object(
                    Bucket=self._settings.bucket_name,
                    Key=name,
                )
                await client.delete_object(
                    Bucket=self._settings.bucket_name,
                    Key=name,
                )
        except Exception as e:
            raise_storage_error(e, f"Failed to delete {name}")

        logger.info(f"Deleted {name} from {self}")

    async def close(self) -> None:
        """Close any open connections.

        Note: aioboto3 manages connections per-context, so this is a no-op.
        """
        pass
