"""Tests for settings, the backend factory and logging setup."""

import logging
from pathlib import Path

import pytest

from polystore.core.config import Settings, get_settings, reset_settings
from polystore.core.enums import BackendType
from polystore.core.logging_config import LOGGER_NAME, configure_logging
from polystore.storage import (
    BunnyStorage,
    FilesystemStorage,
    MemoryStorage,
    NullStorage,
    ObjectStorage,
    S3Storage,
    StorageValidationError,
    create_storage,
)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default values without any environment."""
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        settings = Settings(_env_file=None)

        assert settings.storage_backend == BackendType.FILESYSTEM
        assert settings.chunk_size_bytes == 64 * 1024
        assert settings.s3_configured is False
        assert settings.bunny_configured is False

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables are read case-insensitively."""
        monkeypatch.setenv("STORAGE_BACKEND", "s3")
        monkeypatch.setenv("S3_ACCESS_KEY_ID", "key")
        monkeypatch.setenv("S3_SECRET_ACCESS_KEY", "secret")
        monkeypatch.setenv("S3_BUCKET_NAME", "bucket")
        monkeypatch.setenv("CHUNK_SIZE_KB", "128")

        settings = Settings(_env_file=None)

        assert settings.storage_backend == BackendType.S3
        assert settings.s3_configured is True
        assert settings.chunk_size_bytes == 128 * 1024

    def test_chunk_size_lower_bound(self) -> None:
        """Test that tiny copy buffers are rejected."""
        with pytest.raises(ValueError):
            Settings(_env_file=None, chunk_size_kb=1)

    def test_cached(self) -> None:
        """Test that settings are cached until reset."""
        first = get_settings()

        assert get_settings() is first
        reset_settings()
        assert get_settings() is not first


class TestCreateStorage:
    """Tests for create_storage."""

    def test_filesystem(self, settings: Settings) -> None:
        """Test that the filesystem backend is rooted at the configured path."""
        storage = create_storage(settings)

        assert isinstance(storage, FilesystemStorage)
        assert isinstance(storage, ObjectStorage)
        assert storage.root_directory == Path(settings.filesystem_root).resolve()

    @pytest.mark.parametrize(
        ("backend", "expected"),
        [(BackendType.MEMORY, MemoryStorage), (BackendType.NULL, NullStorage)],
    )
    def test_in_process(self, backend: BackendType, expected: type) -> None:
        """Test the in-process backends."""
        settings = Settings(_env_file=None, storage_backend=backend, memory_store_name="shared")

        storage = create_storage(settings)

        assert type(storage) is expected
        assert storage.identity.bucket == "shared"

    def test_s3(self) -> None:
        """Test that configured S3 settings build an S3 backend."""
        settings = Settings(
            _env_file=None,
            storage_backend=BackendType.S3,
            s3_access_key_id="key",
            s3_secret_access_key="secret",
            s3_bucket_name="bucket",
            s3_endpoint_url="https://minio.local:9000",
        )

        storage = create_storage(settings)

        assert isinstance(storage, S3Storage)
        assert storage.identity.principal == "key"
        assert storage.identity.bucket == "bucket"

    def test_s3_missing_credentials(self) -> None:
        """Test that S3 without credentials is rejected."""
        settings = Settings(_env_file=None, storage_backend=BackendType.S3)

        with pytest.raises(StorageValidationError, match="S3"):
            create_storage(settings)

    @pytest.mark.asyncio
    async def test_bunny(self) -> None:
        """Test that configured BunnyCDN settings build a BunnyCDN backend."""
        settings = Settings(
            _env_file=None,
            storage_backend=BackendType.BUNNY,
            bunny_api_key="password",
            bunny_storage_zone="zone",
            bunny_region="la",
        )

        storage = create_storage(settings)

        assert isinstance(storage, BunnyStorage)
        assert storage.client.base_url.host == "la.storage.bunnycdn.com"
        await storage.close()

    def test_bunny_missing_credentials(self) -> None:
        """Test that BunnyCDN without a key is rejected."""
        settings = Settings(_env_file=None, storage_backend=BackendType.BUNNY)

        with pytest.raises(StorageValidationError, match="BunnyCDN"):
            create_storage(settings)

    def test_uses_cached_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that the environment is used when no settings are passed."""
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        reset_settings()

        assert isinstance(create_storage(), MemoryStorage)

    @pytest.mark.parametrize(
        ("configured", "expected"), [("debug", logging.DEBUG), ("ERROR", logging.ERROR)]
    )
    def test_applies_log_level(self, configured: str, expected: int) -> None:
        """Test that the configured level reaches the package logger."""
        settings = Settings(_env_file=None, storage_backend=BackendType.MEMORY, log_level=configured)

        create_storage(settings)

        logger = logging.getLogger(LOGGER_NAME)
        assert logger.level == expected
        assert logger.handlers


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_idempotent(self) -> None:
        """Test that repeated calls attach a single handler."""
        logger = logging.getLogger(LOGGER_NAME)
        saved = list(logger.handlers)
        for handler in saved:
            logger.removeHandler(handler)
        try:
            configure_logging("DEBUG")
            configure_logging(logging.WARNING)

            assert len(logger.handlers) == 1
            assert logger.level == logging.WARNING
        finally:
            logger.setLevel(logging.NOTSET)
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
            for handler in saved:
                logger.addHandler(handler)
