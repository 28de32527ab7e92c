"""Test helpers shared across modules."""

import io

from polystore.storage import ObjectStorage


class FakeClock:
    """Deterministic clock advanced by hand. One tick is one microsecond."""

    ticks_per_second = 1_000_000

    def __init__(self) -> None:
        self.now = 0

    def ticks(self) -> int:
        return self.now

    def advance(self, ticks: int) -> None:
        self.now += ticks


class SteppingClock(FakeClock):
    """Clock that moves forward a fixed step on every read."""

    def __init__(self, step: int = 10) -> None:
        super().__init__()
        self.step = step

    def ticks(self) -> int:
        self.now += self.step
        return self.now


class FailingStream(io.RawIOBase):
    """Yields some bytes, then raises mid-read."""

    def __init__(self, first: bytes) -> None:
        self._first = first
        self._sent = False

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        if not self._sent:
            self._sent = True
            return self._first
        raise ConnectionResetError("peer went away")


def make_stream(body: bytes | str) -> io.BytesIO:
    """Create a readable stream positioned at the start."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return io.BytesIO(body)


async def read_object(storage: ObjectStorage, name: str) -> bytes:
    """Download an object and return its full body."""
    stream = await storage.download(name)
    try:
        return stream.read()
    finally:
        stream.close()
