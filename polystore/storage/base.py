"""Storage capability contract."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .cancellation import CancellationToken
    from .progress import ProgressObserver
    from .schemas import StoreIdentity


@runtime_checkable
class ObjectStorage(Protocol):
    """Protocol every storage backend implements.

    Objects live in a flat namespace of opaque string names. Every
    operation checks the cancellation token before touching the backend
    and raises ``StorageCancelledError`` if it already fired. Failures are
    always raised as a ``StorageError`` subclass matching the error kind.
    """

    @property
    def identity(self) -> StoreIdentity:
        """The (principal, bucket) pair naming the logical store."""
        ...

    def is_same_store(self, other: ObjectStorage) -> bool:
        """Check whether ``other`` addresses the same logical store.

        Compares identities only; the concrete backend type is irrelevant.
        """
        ...

    async def list_objects(
        self,
        cancel: CancellationToken | None = None,
    ) -> list[str]:
        """List every object name in the store.

        No ordering is guaranteed. Cancellation is checked between pages.

        Raises:
            StorageCancelledError: If the token fired.
        """
        ...

    async def download(
        self,
        name: str,
        cancel: CancellationToken | None = None,
    ) -> IO[bytes]:
        """Open an object for reading.

        Args:
            name: Object name.
            cancel: Optional cancellation token.

        Returns:
            A readable binary stream positioned at the start. The caller
            owns it and must close it.

        Raises:
            StorageNotFoundError: If the object doesn't exist.
        """
        ...

    async def download_to(
        self,
        name: str,
        output: IO[bytes],
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
    ) -> int:
        """Copy an object into a caller-owned sink.

        Args:
            name: Object name.
            output: Writable binary stream. It is never closed.
            progress: Receives progress snapshots.
            cancel: Optional cancellation token.

        Returns:
            Number of bytes written.

        Raises:
            StorageNotFoundError: If the object doesn't exist.
        """
        ...

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
        """Create or overwrite an object from a stream.

        The write is atomic from the store's point of view: a failed upload
        never leaves a readable partial object.

        Args:
            name: Object name.
            source: Readable binary stream, consumed from its current position.
            dispose_source: Close ``source`` once consumed (on every path).
            progress: Receives progress snapshots.
            cancel: Optional cancellation token.
            expected_length: Size used for progress percentage. When 0, a
                seekable source's remaining length is used instead.

        Raises:
            StorageValidationError: If the name is not acceptable.
        """
        ...

    async def delete(
        self,
        name: str,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Delete an object.

        Raises:
            StorageNotFoundError: If the object doesn't exist.
        """
        ...

    async def close(self) -> None:
        """Release client handles. Called during shutdown."""
        ...


def same_identity(a: ObjectStorage, b: ObjectStorage) -> bool:
    """Identity comparison shared by the adapters' ``is_same_store``."""
    return a.identity == b.identity
