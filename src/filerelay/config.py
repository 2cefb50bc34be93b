"""Configuration management for FileRelay.

Loads connection settings for the remote file server and the object store
from environment variables using Pydantic. Secrets belong in .env (never
hardcoded).

Usage:
    from filerelay.config import settings

    print(settings.remote_base_url)
    print(settings.log_level)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """FileRelay configuration from environment variables.

    Loads from .env file automatically. Validates on instantiation.
    Every field has a default so the CLI can start against a local stack.

    Attributes:
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
        remote_base_url: Base URL of the remote file server
        remote_root: Optional directory the file search is restricted to
        remote_api_key: Optional bearer token for the file server
        fetch_concurrency: Max downloads in flight per run
        max_archive_bytes: Optional upper bound on the archive size
        minio_*: Object store connection
        destination_name: Object name the archive is stored under
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars
    )

    # System Settings
    log_level: str = Field(default="INFO", description="Logging level")

    # Remote file server
    remote_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the remote file server",
    )
    remote_root: str | None = Field(
        default=None,
        description="Directory on the file server to search (None = whole tree)",
    )
    remote_api_key: str | None = Field(
        default=None,
        description="Bearer token for the file server (None = anonymous)",
    )
    remote_rate_limit: int = Field(default=10, ge=1, description="File server requests/second")
    remote_timeout: float = Field(default=30.0, gt=0, description="Request timeout (seconds)")

    # Pipeline
    fetch_concurrency: int = Field(
        default=8, ge=1, le=100, description="Max concurrent file downloads per run"
    )
    max_archive_bytes: int | None = Field(
        default=None,
        gt=0,
        description="Reject archives larger than this many bytes (None = unlimited)",
    )
    destination_name: str = Field(
        default="result.zip", description="Object name for the uploaded archive"
    )

    # Object store (MinIO / S3-compatible)
    minio_endpoint: str = Field(default="localhost:9000", description="MinIO host:port")
    minio_access_key: str = Field(default="minioadmin", description="MinIO access key")
    minio_secret_key: str = Field(default="minioadmin", description="MinIO secret key")
    minio_secure: bool = Field(default=False, description="Use HTTPS for MinIO")
    minio_bucket: str = Field(default="my-bucket", min_length=3, description="Target bucket")
    minio_create_bucket: bool = Field(
        default=True, description="Create the target bucket if it does not exist"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper

    @field_validator("remote_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"remote_base_url must start with http:// or https://, got '{v}'")
        return v.rstrip("/")

    @field_validator("destination_name")
    @classmethod
    def validate_destination_name(cls, v: str) -> str:
        """Object names must not be blank."""
        v = v.strip().lstrip("/")
        if not v:
            raise ValueError("destination_name must not be blank")
        return v


# Global settings instance — loaded once at import
settings = Settings()
