"""Application configuration using Pydantic Settings."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "HomeCrew"
    app_version: str = "0.1.0"
    debug: bool = False

    # API settings
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Record store configuration
    # "memory" keeps records in process (development, tests)
    # "sql" persists through SQLAlchemy (sqlite+aiosqlite by default)
    record_store_backend: Literal["memory", "sql"] = Field(
        default="sql",
        description="Record store implementation backing households, staff and documents",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///data/homecrew.db",
        description="SQLAlchemy async database URL for the sql record store",
    )
    asset_dir: str = Field(
        default="data/assets",
        description="Directory where uploaded document assets are kept",
    )

    # Image cache settings
    image_cache_dir: str = Field(
        default="data/cache/images",
        description="Disk tier directory for decoded document thumbnails",
    )
    image_cache_capacity: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum number of images kept in the memory tier",
    )
    image_cache_disk_format: Literal["PNG", "JPEG"] = Field(
        default="PNG",
        description="Encoding used for the disk tier (PNG is lossless)",
    )

    # Staging and secrets
    staging_dir: str = Field(
        default="data/staging",
        description="Process-wide staging directory for picked files awaiting upload",
    )
    secret_store_dir: str = Field(
        default="data/secrets",
        description="Directory for the key-value secret store",
    )
    user_account_name: str = Field(
        default="homecrew.user",
        description="Fixed secret store key holding the signed-in user profile",
    )

    # Workflow policy
    rollback_staff_on_document_failure: bool = Field(
        default=False,
        description="Delete a newly created staff record when its documents fail to upload",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_file_path: str = Field(
        default="data/logs/homecrew.log",
        description="Path for rotating log file",
    )
    log_file_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Maximum size of each log file in bytes",
    )
    log_file_backup_count: int = Field(
        default=7,
        description="Number of backup log files to keep",
    )
    log_json: bool = Field(
        default=False,
        description="Write the log file as JSON lines instead of plain text",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Require an async SQLAlchemy driver."""
        if not v.startswith(("sqlite+aiosqlite://", "postgresql+asyncpg://")):
            raise ValueError(
                "Invalid database URL. Expected sqlite+aiosqlite:// or "
                f"postgresql+asyncpg:// format, got: {v}"
            )
        return v

    @property
    def image_cache_path(self) -> Path:
        return Path(self.image_cache_dir)

    @property
    def staging_path(self) -> Path:
        return Path(self.staging_dir)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    runtime_env_path = os.getenv("HOMECREW_RUNTIME_ENV_PATH", "./data/runtime.env")
    # `_env_file` is evaluated at call time so tests can override runtime config.
    return Settings(_env_file=(".env", runtime_env_path))
