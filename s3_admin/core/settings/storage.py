"""S3-compatible object storage configuration settings.

Environment variables use STORAGE_ prefix.
Example: STORAGE_ENDPOINT="http://localhost:9000"
         STORAGE_ACCOUNT_ID="123456789012"

Supports:
- AWS S3 (default, no endpoint needed)
- MinIO (set endpoint to MinIO server URL)
- LocalStack (set endpoint to LocalStack URL)
- Any S3-compatible storage
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import (
    Field,
    SecretStr,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .yaml_sources import create_storage_yaml_source

DEFAULT_REGION = "us-east-1"


class StorageSettings(BaseSettings):
    """S3-compatible object storage settings.

    Environment variables use STORAGE_ prefix.
    Example: STORAGE_REGION=eu-west-1

    Covers connection parameters for the S3 and S3 Control APIs, the
    account identity needed to manage access points, and the limits applied
    to uploads at the API boundary.
    """

    # ──────────────────────────────────────────────────────────────
    # Enable/Disable toggle
    # ──────────────────────────────────────────────────────────────

    enabled: bool = Field(
        default=True,
        description="Enable the storage backend (disable to run the API in degraded mode)",
    )

    # ──────────────────────────────────────────────────────────────
    # S3 Connection Configuration
    # ──────────────────────────────────────────────────────────────

    endpoint: str | None = Field(
        default=None,
        description="S3-compatible endpoint URL (for MinIO/LocalStack). None for AWS S3.",
    )

    region: str = Field(
        default=DEFAULT_REGION,
        min_length=1,
        description="Default region for new buckets and request signing",
    )

    access_key: SecretStr | None = Field(
        default=None,
        description="S3 access key ID",
    )

    secret_key: SecretStr | None = Field(
        default=None,
        description="S3 secret access key",
    )

    account_id: str | None = Field(
        default=None,
        description="Account ID owning the buckets; required to list and delete access points",
    )

    use_ssl: bool = Field(
        default=True,
        description="Use SSL/TLS for S3 connections (set False for local MinIO without TLS)",
    )

    verify_ssl: bool = Field(
        default=True,
        description="Verify SSL certificates (set False for self-signed certs in local MinIO)",
    )

    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum number of botocore retry attempts",
    )

    retry_mode: str = Field(
        default="standard",
        description="botocore retry mode: standard, adaptive, or legacy",
    )

    timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Connect and read timeout in seconds",
    )

    max_pool_connections: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Maximum number of connections in the connection pool",
    )

    # ──────────────────────────────────────────────────────────────
    # Upload Configuration
    # ──────────────────────────────────────────────────────────────

    max_file_size_mb: int = Field(
        default=100,
        ge=1,
        le=5000,
        description="Maximum upload size in MB",
    )

    allowed_content_types: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "image/*",
            "application/pdf",
            "text/*",
            "video/*",
            "audio/*",
            "application/zip",
        ],
        description="Allowed MIME type patterns for uploads ('type/*' wildcards, '*/*' allows all)",
    )

    download_chunk_size: int = Field(
        default=64 * 1024,
        ge=1024,
        le=16 * 1024 * 1024,
        description="Chunk size in bytes used when streaming downloads",
    )

    # ──────────────────────────────────────────────────────────────
    # Service Lifecycle Configuration
    # ──────────────────────────────────────────────────────────────

    startup_require_storage: bool = Field(
        default=False,
        description="Fail application startup if storage is unavailable (False = degraded mode)",
    )

    # ──────────────────────────────────────────────────────────────
    # Validators
    # ──────────────────────────────────────────────────────────────

    @field_validator("allowed_content_types", mode="before")
    @classmethod
    def _parse_content_types(cls, value: Any) -> list[str]:
        """Parse comma-separated or JSON content type patterns from env var."""
        if isinstance(value, str):
            if value.startswith("["):
                return [str(item) for item in json.loads(value)]
            return [t.strip() for t in value.split(",") if t.strip()]
        return list(value) if value else []

    @field_validator("retry_mode")
    @classmethod
    def _validate_retry_mode(cls, value: str) -> str:
        """Validate retry_mode is one of the allowed values."""
        allowed_modes = {"standard", "adaptive", "legacy"}
        if value not in allowed_modes:
            raise ValueError(f"retry_mode must be one of {allowed_modes}, got {value}")
        return value

    @field_validator("account_id", mode="before")
    @classmethod
    def _blank_account_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _validate_credential_consistency(self) -> StorageSettings:
        """Validate that both credentials are provided together or neither.

        Both must be provided for static credentials, or neither for the
        default credential chain (IAM role, shared config, etc.).
        """
        if (self.access_key is None) != (self.secret_key is None):
            raise ValueError(
                "Both access_key and secret_key must be provided together when using "
                "static credentials. Provide both or neither (for IAM role authentication)."
            )
        return self

    # ──────────────────────────────────────────────────────────────
    # Computed Properties
    # ──────────────────────────────────────────────────────────────

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_configured(self) -> bool:
        """Check if storage is enabled.

        Credential consistency is already enforced by the model validator.
        """
        return self.enabled

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_account_id(self) -> bool:
        """Whether access point management is possible."""
        return self.account_id is not None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    # ──────────────────────────────────────────────────────────────
    # Helper Methods
    # ──────────────────────────────────────────────────────────────

    def is_content_type_allowed(self, content_type: str | None) -> bool:
        """Check a content type against the allowed patterns.

        Patterns are exact types (``application/pdf``), family wildcards
        (``image/*``) or ``*/*`` to allow everything. Media type parameters
        such as ``; charset=utf-8`` are ignored.

        Args:
            content_type: MIME type to check.

        Returns:
            True if allowed, False otherwise.
        """
        if not content_type:
            return "*/*" in self.allowed_content_types
        media_type = content_type.split(";", 1)[0].strip().lower()
        for pattern in self.allowed_content_types:
            pattern = pattern.strip().lower()
            if pattern == "*/*" or pattern == media_type:
                return True
            if pattern.endswith("/*") and media_type.startswith(pattern[:-1]):
                return True
        return False

    def get_boto3_config(self) -> dict[str, Any]:
        """Get keyword arguments for creating an aioboto3 client.

        Returns:
            Dictionary with region, SSL settings, endpoint and (when provided)
            static credentials. Without credentials boto3 falls back to its
            default credential chain.
        """
        config: dict[str, Any] = {
            "region_name": self.region,
            "use_ssl": self.use_ssl,
            "verify": self.verify_ssl,
        }

        if self.access_key is not None and self.secret_key is not None:
            config["aws_access_key_id"] = self.access_key.get_secret_value()
            config["aws_secret_access_key"] = self.secret_key.get_secret_value()

        if self.endpoint:
            config["endpoint_url"] = self.endpoint

        return config

    # ──────────────────────────────────────────────────────────────
    # Model Configuration
    # ──────────────────────────────────────────────────────────────

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_storage_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
