"""Storage value types using msgspec."""

from __future__ import annotations

import msgspec

from polystore.core.enums import ErrorKind, TransferStage

from .exceptions import StorageError


class StoreIdentity(msgspec.Struct, frozen=True, kw_only=True):
    """Identifies a logical store: the principal and the bucket/container it addresses.

    Two backends with equal identities are the same store, whatever their
    concrete type.
    """

    principal: str
    bucket: str


class CopyProgress(msgspec.Struct, frozen=True, kw_only=True):
    """Backend-agnostic progress snapshot for one transfer."""

    transfer_time: float  # Seconds since the transfer started
    bytes_per_second: int  # Instantaneous rate over the last interval
    bytes_transferred: int  # Cumulative
    expected_bytes: int = 0  # 0 when unknown

    @property
    def percent_complete(self) -> float | None:
        """Fraction complete in [0, 1], None when the expected size is unknown."""
        if self.expected_bytes <= 0:
            return None
        return self.bytes_transferred / self.expected_bytes


class ItemOutcome(msgspec.Struct, frozen=True, kw_only=True):
    """Per-item result of a bulk operation."""

    name: str
    success: bool
    stage: TransferStage | None = None  # Failing step, None on success
    error: StorageError | None = None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    @classmethod
    def failed(cls, name: str, stage: TransferStage, error: StorageError) -> ItemOutcome:
        return cls(name=name, success=False, stage=stage, error=error)

    @classmethod
    def succeeded(cls, name: str) -> ItemOutcome:
        return cls(name=name, success=True)


class TransferResult(msgspec.Struct, kw_only=True):
    """Summary of a transfer between two stores."""

    succeeded: list[str] = msgspec.field(default_factory=list)
    failed: list[ItemOutcome] = msgspec.field(default_factory=list)
    skipped: bool = False  # Source and destination are the same store
    cancelled: bool = False

    @property
    def copied_not_pruned(self) -> list[str]:
        """Names copied to the destination whose source delete failed."""
        return [o.name for o in self.failed if o.stage == TransferStage.DELETE_SOURCE]

    @property
    def partial(self) -> bool:
        """True when some, but not all, listed items completed."""
        return bool(self.succeeded) and (bool(self.failed) or self.cancelled)
