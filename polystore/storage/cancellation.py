"""Cooperative cancellation token."""

from __future__ import annotations

import asyncio

from .exceptions import StorageCancelledError


class CancellationToken:
    """Signal shared between a caller and the operations it starts.

    Operations observe the token before any side effect and between units
    of work (pages, chunks, items). Firing it never interrupts an
    in-flight provider call.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Subsequent calls are no-ops."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        """Raise StorageCancelledError if the token fired."""
        if self._event.is_set():
            detail = f": {self._reason}" if self._reason else ""
            raise StorageCancelledError(f"{operation} cancelled{detail}")

    async def wait(self) -> None:
        """Block until the token fires."""
        await self._event.wait()


def check_cancelled(cancel: CancellationToken | None, operation: str = "operation") -> None:
    """Raise if the optional token already fired."""
    if cancel is not None:
        cancel.raise_if_cancelled(operation)


def is_cancelled(cancel: CancellationToken | None) -> bool:
    return cancel is not None and cancel.cancelled
