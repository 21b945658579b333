"""
QueryDesk Configuration Module.

Handles backend address, persistence backend and workspace tuning.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Remote query service configuration."""

    model_config = SettingsConfigDict(env_prefix="BACKEND_")

    url: str = Field(default="http://localhost:8000", description="Base URL of the query service")
    timeout_seconds: float = Field(default=30.0, description="HTTP timeout for every request")
    upload_chunk_size: int = Field(
        default=64 * 1024,
        ge=1,
        description="Bytes sent per chunk while uploading (one progress event per chunk)",
    )


class StorageSettings(BaseSettings):
    """Durable key-value storage for query history."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["memory", "file", "redis"] = "file"
    path: str = Field(default=".querydesk/state.json", description="JSON document used by the file backend")


class RedisSettings(BaseSettings):
    """Redis configuration (redis storage backend)."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    key_prefix: str = Field(default="querydesk:", description="Prefix applied to every stored key")


class WorkspaceSettings(BaseSettings):
    """Workspace behaviour."""

    model_config = SettingsConfigDict(env_prefix="WORKSPACE_")

    notification_ttl_ms: int = Field(default=6000, ge=0, description="Lifetime of a notification")
    history_limit: int = Field(default=10, ge=1, description="Maximum remembered queries")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_log_level: str = "INFO"

    # Nested settings
    backend: BackendSettings = Field(default_factory=BackendSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    workspace: WorkspaceSettings = Field(default_factory=WorkspaceSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
