"""Library configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from polystore.core.enums import BackendType


class Settings(BaseSettings):
    """Storage settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    storage_backend: BackendType = Field(
        default=BackendType.FILESYSTEM,
        description="Backend built by create_storage()",
    )
    log_level: str = Field(default="INFO", description="Level for the polystore logger")

    # Copy settings
    chunk_size_kb: int = Field(
        default=64,
        ge=4,
        le=64 * 1024,
        description="Buffer size for stream copies in KB",
    )

    # Filesystem settings
    filesystem_root: str = Field(
        default="data/storage",
        description="Root directory for filesystem storage",
    )

    # In-process store settings
    memory_store_name: str | None = Field(
        default=None,
        description="Identity name for memory/null stores (random when unset)",
    )

    # S3-compatible settings
    s3_access_key_id: str = Field(default="", description="S3 access key ID")
    s3_secret_access_key: str = Field(default="", description="S3 secret access key")
    s3_bucket_name: str = Field(default="", description="S3 bucket name")
    s3_region_name: str | None = Field(default=None, description="S3 region")
    s3_endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint for S3-compatible services (R2, MinIO)",
    )
    s3_max_attempts: int = Field(default=3, ge=1, le=10, description="Client retry attempts")

    # BunnyCDN settings
    bunny_api_key: str = Field(default="", description="BunnyCDN storage zone password")
    bunny_storage_zone: str = Field(default="", description="BunnyCDN storage zone name")
    bunny_region: str = Field(
        default="",
        description="BunnyCDN storage region prefix (empty for Falkenstein)",
    )

    # Network timeouts
    connect_timeout: float = Field(default=10.0, gt=0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=30.0, gt=0, description="Read timeout in seconds")

    @computed_field
    @property
    def chunk_size_bytes(self) -> int:
        """Copy buffer size in bytes."""
        return self.chunk_size_kb * 1024

    @property
    def s3_configured(self) -> bool:
        """Check if S3 is properly configured."""
        return bool(self.s3_access_key_id and self.s3_secret_access_key and self.s3_bucket_name)

    @property
    def bunny_configured(self) -> bool:
        """Check if BunnyCDN is properly configured."""
        return bool(self.bunny_api_key and self.bunny_storage_zone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    get_settings.cache_clear()
