"""Tests for storage schemas, enums and cancellation tokens."""

import asyncio

import msgspec
import pytest

from polystore.core.enums import BackendType, ErrorKind, TransferStage
from polystore.storage import (
    CancellationToken,
    CopyProgress,
    ItemOutcome,
    StorageCancelledError,
    StorageNotFoundError,
    StoreIdentity,
    TransferResult,
)
from polystore.storage.cancellation import check_cancelled, is_cancelled


class TestStoreIdentity:
    """Tests for StoreIdentity."""

    def test_equality_by_value(self) -> None:
        """Test that identities compare by principal and bucket."""
        assert StoreIdentity(principal="key", bucket="b") == StoreIdentity(principal="key", bucket="b")
        assert StoreIdentity(principal="key", bucket="b") != StoreIdentity(principal="key", bucket="c")

    def test_hashable(self) -> None:
        """Test that identities can key a dict."""
        seen = {StoreIdentity(principal="key", bucket="b"): 1}

        assert seen[StoreIdentity(principal="key", bucket="b")] == 1

    def test_immutable(self) -> None:
        """Test that identities are frozen."""
        identity = StoreIdentity(principal="key", bucket="b")

        with pytest.raises(AttributeError):
            identity.bucket = "other"  # type: ignore[misc]


class TestCopyProgress:
    """Tests for CopyProgress serialization."""

    def test_json_encoding(self) -> None:
        """Test that snapshots serialize for progress feeds."""
        progress = CopyProgress(
            transfer_time=1.5,
            bytes_per_second=2048,
            bytes_transferred=3072,
            expected_bytes=4096,
        )

        decoded = msgspec.json.decode(msgspec.json.encode(progress))

        assert decoded == {
            "transfer_time": 1.5,
            "bytes_per_second": 2048,
            "bytes_transferred": 3072,
            "expected_bytes": 4096,
        }

    def test_decode_typed(self) -> None:
        """Test that unknown expected size defaults to zero when decoded."""
        raw = b'{"transfer_time": 0.1, "bytes_per_second": 10, "bytes_transferred": 1}'

        progress = msgspec.json.decode(raw, type=CopyProgress)

        assert progress.expected_bytes == 0
        assert progress.percent_complete is None


class TestItemOutcome:
    """Tests for ItemOutcome."""

    def test_failed(self) -> None:
        """Test that failures carry stage and kind."""
        outcome = ItemOutcome.failed("a", TransferStage.COPY, StorageNotFoundError("gone"))

        assert outcome.success is False
        assert outcome.stage == TransferStage.COPY
        assert outcome.kind == ErrorKind.NOT_FOUND

    def test_succeeded(self) -> None:
        """Test that successes have no stage or kind."""
        outcome = ItemOutcome.succeeded("a")

        assert outcome.success is True
        assert outcome.stage is None
        assert outcome.kind is None


class TestTransferResult:
    """Tests for TransferResult."""

    def test_defaults(self) -> None:
        """Test that each result gets its own lists."""
        first = TransferResult()
        first.succeeded.append("a")

        assert TransferResult().succeeded == []
        assert first.partial is False

    def test_copied_not_pruned(self) -> None:
        """Test that only delete-stage failures count as copied but not pruned."""
        result = TransferResult(
            succeeded=["ok"],
            failed=[
                ItemOutcome.failed("copy", TransferStage.COPY, StorageNotFoundError("x")),
                ItemOutcome.failed("kept", TransferStage.DELETE_SOURCE, StorageNotFoundError("y")),
            ],
        )

        assert result.copied_not_pruned == ["kept"]
        assert result.partial is True

    def test_cancelled_is_partial(self) -> None:
        """Test that a cancelled run with progress is partial."""
        assert TransferResult(succeeded=["a"], cancelled=True).partial is True
        assert TransferResult(cancelled=True).partial is False


class TestEnums:
    """Tests for enum values."""

    def test_backend_values(self) -> None:
        """Test backend names used in configuration."""
        assert BackendType("filesystem") == BackendType.FILESYSTEM
        assert BackendType("s3") == BackendType.S3
        assert BackendType("bunny") == BackendType.BUNNY

    def test_error_kind_is_string(self) -> None:
        """Test that kinds serialize as plain strings."""
        assert msgspec.json.encode(ErrorKind.NOT_FOUND) == b'"not_found"'


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_initial_state(self) -> None:
        """Test that a new token is not cancelled."""
        token = CancellationToken()

        assert token.cancelled is False
        assert is_cancelled(token) is False
        token.raise_if_cancelled("upload")

    def test_cancel(self) -> None:
        """Test that a fired token raises for later checks."""
        token = CancellationToken()
        token.cancel("shutting down")

        assert token.cancelled is True
        assert token.reason == "shutting down"
        with pytest.raises(StorageCancelledError, match="upload cancelled"):
            token.raise_if_cancelled("upload")

    def test_no_token(self) -> None:
        """Test that helpers accept a missing token."""
        assert is_cancelled(None) is False
        check_cancelled(None, "list")

    @pytest.mark.asyncio
    async def test_wait(self) -> None:
        """Test that waiters wake once the token fires."""
        token = CancellationToken()
        waiter = asyncio.create_task(token.wait())
        await asyncio.sleep(0)

        assert not waiter.done()
        token.cancel()
        await asyncio.wait_for(waiter, timeout=1)
