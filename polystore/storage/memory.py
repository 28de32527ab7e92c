"""In-process storage backends for tests and dry runs."""

from __future__ import annotations

import io
import logging
from typing import IO, TYPE_CHECKING
from uuid import uuid4

from .base import same_identity
from .cancellation import CancellationToken, check_cancelled
from .classifier import raise_storage_error
from .exceptions import StorageNotFoundError, StorageValidationError
from .progress import ProgressObserver, ProgressTranslator, compute_stream_length
from .schemas import StoreIdentity
from .streams import close_quietly, copy_stream

if TYPE_CHECKING:
    from .base import ObjectStorage

logger = logging.getLogger(__name__)


def _validate_name(name: str) -> None:
    if not name:
        raise StorageValidationError("Object name must not be empty")


class MemoryStorage:
    """Keeps object bodies in a dict. Contents die with the instance."""

    def __init__(self, name: str | None = None, *, chunk_size: int = 64 * 1024) -> None:
        """Initialize an empty store.

        Args:
            name: Store name used as the identity bucket. Random when omitted,
                so two anonymous stores are never the same store.
            chunk_size: Copy buffer size for stream operations.
        """
        self._name = name or uuid4().hex
        self._chunk_size = chunk_size
        self._objects: dict[str, bytes] = {}

    @property
    def identity(self) -> StoreIdentity:
        return StoreIdentity(principal="memory", bucket=self._name)

    def is_same_store(self, other: ObjectStorage) -> bool:
        return same_identity(self, other)

    def __repr__(self) -> str:
        return f"Memory {self._name}"

    async def list_objects(self, cancel: CancellationToken | None = None) -> list[str]:
        check_cancelled(cancel, "list")
        return list(self._objects)

    async def download(self, name: str, cancel: CancellationToken | None = None) -> IO[bytes]:
        check_cancelled(cancel, "download")
        return io.BytesIO(self._get(name))

    async def download_to(
        self,
        name: str,
        output: IO[bytes],
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
    ) -> int:
        check_cancelled(cancel, "download")
        body = self._get(name)
        try:
            return await copy_stream(
                io.BytesIO(body),
                output,
                progress=ProgressTranslator.wrap(progress, len(body)),
                cancel=cancel,
                chunk_size=self._chunk_size,
            )
        except Exception as e:
            raise_storage_error(e, f"Failed to download {name}")

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
            _validate_name(name)
            buffer = io.BytesIO()
            await copy_stream(
                source,
                buffer,
                progress=ProgressTranslator.wrap(
                    progress, compute_stream_length(source, expected_length)
                ),
                cancel=cancel,
                chunk_size=self._chunk_size,
            )
            # Only a complete body becomes visible
            self._objects[name] = buffer.getvalue()
            logger.debug(f"Stored {name} in {self} ({len(self._objects[name])} bytes)")
        except Exception as e:
            raise_storage_error(e, f"Failed to store {name}")
        finally:
            if dispose_source:
                close_quietly(source)

    async def delete(self, name: str, cancel: CancellationToken | None = None) -> None:
        check_cancelled(cancel, "delete")
        if self._objects.pop(name, None) is None:
            raise StorageNotFoundError(f"Object not found: {name}")

    async def close(self) -> None:
        pass

    def _get(self, name: str) -> bytes:
        try:
            return self._objects[name]
        except KeyError:
            raise StorageNotFoundError(f"Object not found: {name}") from None


class NullStorage(MemoryStorage):
    """Simulates a backend without keeping object data.

    Only object lengths are recorded; downloads return zero-filled bodies of
    the stored length.
    """

    def __init__(self, name: str | None = None, *, chunk_size: int = 64 * 1024) -> None:
        super().__init__(name, chunk_size=chunk_size)
        self._lengths: dict[str, int] = {}

    @property
    def identity(self) -> StoreIdentity:
        return StoreIdentity(principal="null", bucket=self._name)

    def __repr__(self) -> str:
        return "NullStorage"

    async def list_objects(self, cancel: CancellationToken | None = None) -> list[str]:
        check_cancelled(cancel, "list")
        return list(self._lengths)

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
            _validate_name(name)
            translator = ProgressTranslator.wrap(
                progress, compute_stream_length(source, expected_length)
            )
            length = 0
            while chunk := source.read(self._chunk_size):
                check_cancelled(cancel, "upload")
                length += len(chunk)
                if translator is not None:
                    translator.update(length)
            self._lengths[name] = length
        except Exception as e:
            raise_storage_error(e, f"Failed to store {name}")
        finally:
            if dispose_source:
                close_quietly(source)

    async def delete(self, name: str, cancel: CancellationToken | None = None) -> None:
        check_cancelled(cancel, "delete")
        if self._lengths.pop(name, None) is None:
            raise StorageNotFoundError(f"Object not found: {name}")

    def _get(self, name: str) -> bytes:
        try:
            return bytes(self._lengths[name])
        except KeyError:
            raise StorageNotFoundError(f"Object not found: {name}") from None
