"""Backend-independent bulk operations.

Everything here is built from the primitive operations of
``ObjectStorage`` only, so it works between any two backends. Items are
processed strictly one at a time; a failure on one item is reported and
never aborts the batch.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from contextlib import closing
from pathlib import Path
from typing import TYPE_CHECKING

from polystore.core.enums import ErrorKind, TransferStage

from .cancellation import CancellationToken, check_cancelled, is_cancelled
from .classifier import raise_storage_error, to_storage_error
from .exceptions import StorageValidationError
from .schemas import ItemOutcome, TransferResult

if TYPE_CHECKING:
    from .base import ObjectStorage
    from .progress import ProgressObserver

logger = logging.getLogger(__name__)

SuccessObserver = Callable[[str], None]
ErrorObserver = Callable[[ItemOutcome], None]
CountObserver = Callable[[int], None]


async def delete_all(
    storage: ObjectStorage,
    progress: CountObserver | None = None,
    cancel: CancellationToken | None = None,
    on_error: ErrorObserver | None = None,
) -> int:
    """Delete every object in a store.

    Lists once, then deletes sequentially. Stops early when the token
    fires; already-deleted objects stay deleted. A failed delete is
    reported through ``on_error`` and the next object proceeds.

    Args:
        storage: Store to empty.
        progress: Called with the running count after every delete.
        cancel: Optional cancellation token.
        on_error: Called with an ``ItemOutcome`` for each object that
            could not be deleted.

    Returns:
        Number of objects deleted.
    """
    names = await storage.list_objects(cancel)
    count = 0
    failed = 0
    for name in names:
        if is_cancelled(cancel):
            logger.info(f"Delete-all on {storage} cancelled after {count} objects")
            break

        try:
            await storage.delete(name, cancel)
        except Exception as e:
            error = to_storage_error(e, f"Delete failed for {name}")
            # Removed since the listing was taken
            if error.kind is ErrorKind.NOT_FOUND:
                logger.debug(f"Object {name} already gone from {storage}")
                continue
            if error.kind is ErrorKind.CANCELLED:
                logger.info(f"Delete-all on {storage} cancelled after {count} objects")
                break
            failed += 1
            logger.warning(f"Delete of {name} from {storage} failed ({error.kind.value}): {error}")
            if on_error is not None:
                on_error(ItemOutcome.failed(name, TransferStage.DELETE, error))
            continue

        count += 1
        if progress is not None:
            progress(count)

    logger.info(f"Deleted {count} objects from {storage}, {failed} failed")
    return count


def _report_failure(
    result: TransferResult,
    on_error: ErrorObserver | None,
    name: str,
    stage: TransferStage,
    exc: Exception,
) -> None:
    error = to_storage_error(exc, f"Transfer {stage.value} failed for {name}")
    outcome = ItemOutcome.failed(name, stage, error)
    result.failed.append(outcome)
    logger.warning(f"Transfer of {name} failed at {stage.value} ({error.kind.value}): {error}")
    if on_error is not None:
        on_error(outcome)


async def _copy_item(
    source: ObjectStorage,
    destination: ObjectStorage,
    name: str,
    cancel: CancellationToken | None,
) -> None:
    stream = await source.download(name, cancel)
    with closing(stream):
        await destination.upload(name, stream, dispose_source=False, cancel=cancel)


async def transfer(
    source: ObjectStorage,
    destination: ObjectStorage,
    *,
    delete_source: bool = False,
    on_success: SuccessObserver | None = None,
    on_error: ErrorObserver | None = None,
    cancel: CancellationToken | None = None,
) -> TransferResult:
    """Copy every object from ``source`` to ``destination``.

    A transfer into the same store is a no-op. The source listing is taken
    once, up front. Per item: download, upload, then (optionally) delete
    the source copy. A failed copy or delete is reported through
    ``on_error`` and the next item proceeds. An item whose source delete
    failed is left in both stores and is not reported as a success.

    Args:
        source: Store to read from.
        destination: Store to write to.
        delete_source: Delete each object from ``source`` after it was copied.
        on_success: Called with the name of each fully transferred object.
        on_error: Called with an ``ItemOutcome`` for each failed object.
        cancel: Optional cancellation token, checked before each item and
            before each source delete.

    Returns:
        Summary of the transfer.
    """
    if source.is_same_store(destination):
        logger.info(f"Transfer source and destination are both {source}; nothing to do")
        return TransferResult(skipped=True)

    result = TransferResult()
    names = await source.list_objects(cancel)
    logger.info(f"Transferring {len(names)} objects from {source} to {destination}")

    for name in names:
        if is_cancelled(cancel):
            result.cancelled = True
            break

        try:
            await _copy_item(source, destination, name, cancel)
        except Exception as e:
            _report_failure(result, on_error, name, TransferStage.COPY, e)
            continue

        # Allow cancellation before the delete is fired
        if is_cancelled(cancel):
            result.cancelled = True
            break

        if delete_source:
            try:
                await source.delete(name, cancel)
            except Exception as e:
                _report_failure(result, on_error, name, TransferStage.DELETE_SOURCE, e)
                continue

        result.succeeded.append(name)
        if on_success is not None:
            on_success(name)

    if result.cancelled:
        logger.info(f"Transfer from {source} to {destination} cancelled")
    logger.info(
        f"Transfer from {source} to {destination} finished: "
        f"{len(result.succeeded)} succeeded, {len(result.failed)} failed"
    )
    return result


async def upload_file(
    storage: ObjectStorage,
    name: str,
    path: str | os.PathLike[str],
    *,
    delete_source: bool = False,
    progress: ProgressObserver | None = None,
    cancel: CancellationToken | None = None,
) -> None:
    """Upload a local file by path.

    Args:
        storage: Store to upload into.
        name: Object name to create or overwrite.
        path: Local file to read.
        delete_source: Delete the local file once the upload succeeded.
        progress: Receives progress snapshots.
        cancel: Optional cancellation token.

    Raises:
        StorageValidationError: If ``path`` is not a regular file.
    """
    check_cancelled(cancel, "upload")
    file_path = Path(path)
    if not file_path.is_file():
        raise StorageValidationError(f"No file exists at the given path {file_path}")

    try:
        stream = file_path.open("rb")
    except OSError as e:
        raise_storage_error(e, f"Failed to open {file_path}")

    with stream:
        try:
            size = os.fstat(stream.fileno()).st_size
        except OSError as e:
            raise_storage_error(e, f"Failed to stat {file_path}")
        await storage.upload(
            name,
            stream,
            dispose_source=True,
            progress=progress,
            cancel=cancel,
            expected_length=size,
        )

    if delete_source:
        try:
            file_path.unlink()
        except OSError as e:
            raise_storage_error(e, f"Uploaded {name} but failed to delete {file_path}")
