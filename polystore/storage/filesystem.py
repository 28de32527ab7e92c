"""Local filesystem storage backend.

Objects are stored as regular files directly under a root directory, one
file per object name. Uploads are written to a staging directory inside the
root and renamed into place, so readers never see a partial object.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO, TYPE_CHECKING
from uuid import uuid4

import aiofiles

from .base import same_identity
from .cancellation import CancellationToken, check_cancelled
from .classifier import raise_storage_error
from .exceptions import StorageNotFoundError, StorageValidationError
from .progress import ProgressObserver, ProgressTranslator, compute_stream_length
from .schemas import StoreIdentity
from .streams import DEFAULT_CHUNK_SIZE, close_quietly, copy_stream

if TYPE_CHECKING:
    from .base import ObjectStorage

logger = logging.getLogger(__name__)

STAGING_DIR = ".polystore-staging"
_FORBIDDEN_NAMES = {"", ".", "..", STAGING_DIR}


class FilesystemStorage:
    """Stores objects as files on local disk."""

    def __init__(
        self,
        root_directory: str | os.PathLike[str],
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the backend, creating the root directory if needed.

        Args:
            root_directory: Directory holding the objects.
            chunk_size: Copy buffer size in bytes.
        """
        self._root = Path(root_directory).resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._chunk_size = chunk_size

    @property
    def root_directory(self) -> Path:
        return self._root

    @property
    def identity(self) -> StoreIdentity:
        return StoreIdentity(principal="filesystem", bucket=str(self._root))

    def is_same_store(self, other: ObjectStorage) -> bool:
        return same_identity(self, other)

    def __repr__(self) -> str:
        return f"Filesystem {self._root}"

    def _get_path(self, name: str) -> Path:
        """Map an object name onto a file directly below the root.

        Raises:
            StorageValidationError: If the name would escape the root or
                collide with the staging directory.
        """
        if name in _FORBIDDEN_NAMES or "/" in name or "\\" in name or "\x00" in name:
            raise StorageValidationError(f"Invalid object name for filesystem storage: {name!r}")
        return self._root / name

    def _get_object_path(self, name: str) -> Path:
        """Path of an existing object. Directories are never objects."""
        path = self._get_path(name)
        if path.is_dir():
            raise StorageNotFoundError(f"Object not found: {name}")
        return path

    def _staging_path(self) -> Path:
        staging = self._root / STAGING_DIR
        staging.mkdir(exist_ok=True)
        return staging / f"{uuid4().hex}.part"

    async def list_objects(self, cancel: CancellationToken | None = None) -> list[str]:
        """List regular files in the root. Directories and inaccessible entries are skipped."""
        check_cancelled(cancel, "list")
        names: list[str] = []
        try:
            with os.scandir(self._root) as entries:
                for entry in entries:
                    try:
                        if entry.is_file():
                            names.append(entry.name)
                    except OSError:
                        continue
        except OSError as e:
            raise_storage_error(e, f"Failed to list {self._root}")
        return names

    async def download(self, name: str, cancel: CancellationToken | None = None) -> IO[bytes]:
        """Open the object's file for reading."""
        check_cancelled(cancel, "download")
        path = self._get_object_path(name)
        try:
            return path.open("rb")
        except OSError as e:
            raise_storage_error(e, f"Failed to open {name}")

    async def download_to(
        self,
        name: str,
        output: IO[bytes],
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
    ) -> int:
        check_cancelled(cancel, "download")
        path = self._get_object_path(name)
        try:
            async with aiofiles.open(path, "rb") as f:
                size = path.stat().st_size
                written = await copy_stream(
                    f,
                    output,
                    progress=ProgressTranslator.wrap(progress, size),
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
        staging: Path | None = None
        try:
            check_cancelled(cancel, "upload")
            path = self._get_path(name)
            translator = ProgressTranslator.wrap(
                progress, compute_stream_length(source, expected_length)
            )
            try:
                staging = self._staging_path()
                async with aiofiles.open(staging, "wb") as f:
                    written = await copy_stream(
                        source,
                        f,
                        progress=translator,
                        cancel=cancel,
                        chunk_size=self._chunk_size,
                    )
                os.replace(staging, path)
            except Exception as e:
                raise_storage_error(e, f"Failed to store {name}")

            logger.info(f"Stored {name} in {self} ({written} bytes)")
        finally:
            if staging is not None:
                staging.unlink(missing_ok=True)
            if dispose_source:
                close_quietly(source)

    async def delete(self, name: str, cancel: CancellationToken | None = None) -> None:
        check_cancelled(cancel, "delete")
        path = self._get_object_path(name)
        try:
            path.unlink()
        except OSError as e:
            raise_storage_error(e, f"Failed to delete {name}")
        logger.info(f"Deleted {name} from {self}")

    async def close(self) -> None:
        pass
