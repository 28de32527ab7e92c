"""Progress translation.

Providers report progress in different shapes: byte deltas (boto3
``Callback``), cumulative counts (storage-progress structs) or stream
positions. ``ProgressTranslator`` turns any of them into ``CopyProgress``
snapshots with elapsed time and an instantaneous rate.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import IO, Protocol

from .schemas import CopyProgress

ProgressObserver = Callable[[CopyProgress], None]


class Clock(Protocol):
    """Monotonic tick source."""

    ticks_per_second: int

    def ticks(self) -> int: ...


class MonotonicClock:
    """Nanosecond monotonic clock."""

    ticks_per_second = 1_000_000_000

    def ticks(self) -> int:
        return time.monotonic_ns()


def compute_instant_rate(elapsed_ticks: int, delta: int, ticks_per_second: int) -> int:
    """Bytes per second for ``delta`` bytes moved in ``elapsed_ticks``. Never 0 for a positive delta."""
    if delta <= 0:
        return 0
    return max(delta * ticks_per_second // max(elapsed_ticks, 1), 1)


def compute_stream_length(stream: IO[bytes], expected_length: int = 0) -> int:
    """Expected byte count for progress reporting.

    An explicit ``expected_length`` wins. Otherwise a seekable stream's
    remaining length is used, and 0 (unknown) for anything else.
    """
    if expected_length > 0:
        return expected_length
    try:
        if not stream.seekable():
            return 0
        position = stream.tell()
        end = stream.seek(0, 2)
        stream.seek(position)
    except (AttributeError, OSError, ValueError):
        return 0
    return max(end - position, 0)


class ProgressTranslator:
    """Converts native progress callbacks into ``CopyProgress`` snapshots.

    Keeps a total-elapsed timer started once and an interval timer reset
    after each emitted snapshot. Callbacks that don't advance the
    cumulative count are ignored, and once the expected total is reached
    every further report is suppressed.
    """

    def __init__(
        self,
        observer: ProgressObserver,
        expected_bytes: int = 0,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._observer = observer
        self._expected = max(expected_bytes, 0)
        self._clock = clock or MonotonicClock()
        self._started = self._clock.ticks()
        self._interval_started = self._started
        self._transferred = 0
        self._finished = False

    @classmethod
    def wrap(
        cls,
        observer: ProgressObserver | None,
        expected_bytes: int = 0,
        *,
        clock: Clock | None = None,
    ) -> ProgressTranslator | None:
        """Build a translator, or None when nobody observes progress."""
        if observer is None:
            return None
        return cls(observer, expected_bytes, clock=clock)

    @property
    def bytes_transferred(self) -> int:
        return self._transferred

    @property
    def expected_bytes(self) -> int:
        return self._expected

    @property
    def finished(self) -> bool:
        return self._finished

    def advance(self, delta: int) -> None:
        """Report ``delta`` more bytes moved."""
        self.update(self._transferred + delta)

    def update(self, bytes_transferred: int) -> None:
        """Report the cumulative number of bytes moved so far."""
        if self._finished:
            return
        delta = bytes_transferred - self._transferred
        if delta <= 0:
            return

        now = self._clock.ticks()
        tps = self._clock.ticks_per_second
        snapshot = CopyProgress(
            transfer_time=(now - self._started) / tps,
            bytes_per_second=compute_instant_rate(now - self._interval_started, delta, tps),
            bytes_transferred=bytes_transferred,
            expected_bytes=self._expected,
        )
        self._transferred = bytes_transferred
        self._interval_started = now
        if self._expected and bytes_transferred >= self._expected:
            self._finished = True

        self._observer(snapshot)

    # boto3 transfer callbacks are plain callables taking a byte delta
    __call__ = advance
