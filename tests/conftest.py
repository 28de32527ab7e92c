"""Pytest configuration and shared fixtures."""

import logging
from pathlib import Path

import pytest
from helpers import FakeClock

from polystore.core.config import Settings, reset_settings
from polystore.core.logging_config import LOGGER_NAME
from polystore.storage import FilesystemStorage, MemoryStorage, ObjectStorage


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Provide an empty in-memory store."""
    return MemoryStorage("test-memory")


@pytest.fixture
def filesystem_storage(tmp_path: Path) -> FilesystemStorage:
    """Provide a filesystem store rooted in a temp directory."""
    return FilesystemStorage(tmp_path / "store")


@pytest.fixture(params=["filesystem", "memory"])
def storage(request: pytest.FixtureRequest, tmp_path: Path) -> ObjectStorage:
    """Provide each backend that keeps real object bodies."""
    if request.param == "filesystem":
        return FilesystemStorage(tmp_path / "store")
    return MemoryStorage("test-contract")


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Provide test settings."""
    return Settings(
        _env_file=None,
        storage_backend="filesystem",
        filesystem_root=str(tmp_path / "configured"),
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Keep cached settings from leaking between tests."""
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo level and handler changes made through configure_logging."""
    logger = logging.getLogger(LOGGER_NAME)
    level = logger.level
    handlers = list(logger.handlers)
    yield
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
