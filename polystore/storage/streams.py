"""Chunked stream copying shared by the adapters."""

from __future__ import annotations

import inspect
from typing import IO, Any

from .cancellation import CancellationToken, check_cancelled
from .progress import ProgressTranslator

DEFAULT_CHUNK_SIZE = 64 * 1024  # 64KB


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def copy_stream(
    source: Any,
    sink: Any,
    *,
    progress: ProgressTranslator | None = None,
    cancel: CancellationToken | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Copy ``source`` into ``sink`` chunk by chunk.

    Either side may be a regular binary file object or an async one (such
    as an aiofiles handle). Cancellation is checked before every chunk.
    Neither stream is closed.

    Returns:
        Number of bytes copied.
    """
    total = 0
    while True:
        check_cancelled(cancel, "copy")
        chunk = await _resolve(source.read(chunk_size))
        if not chunk:
            break
        await _resolve(sink.write(chunk))
        total += len(chunk)
        if progress is not None:
            progress.update(total)
    return total


def close_quietly(stream: IO[bytes] | None) -> None:
    """Close a stream the caller handed over, ignoring already-closed ones."""
    if stream is not None and not stream.closed:
        stream.close()
