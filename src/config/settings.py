"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "todozen.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class SchedulerSettings(BaseSettings):
    """Recurrence expansion and dispatch loop configuration."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    # Occurrences materialized per reconciliation
    occurrence_count: int = Field(default=10, ge=1)
    lookahead_years: int = Field(default=2, ge=1)

    # In-app dispatch loop
    dispatcher_enabled: bool = True
    dispatch_interval_seconds: float = Field(default=60.0, gt=0)

    # Periodic reconcile_all while the app runs; 0 disables
    topup_interval_seconds: float = Field(default=6 * 60 * 60, ge=0)
    reconcile_on_start: bool = True


class PushSettings(BaseSettings):
    """Web push (VAPID) configuration."""

    model_config = SettingsConfigDict(env_prefix="PUSH_")

    vapid_public_key: str | None = None
    vapid_private_key: str | None = None
    vapid_subject: str = "mailto:todozen@example.com"

    ttl_seconds: int = 86400
    urgency: Literal["very-low", "low", "normal", "high"] = "high"
    timeout_seconds: float = 10.0

    icon: str = "/icon-192x192.png"
    badge: str = "/badge.png"

    @property
    def enabled(self) -> bool:
        return bool(self.vapid_private_key)


class CronSettings(BaseSettings):
    """Periodic trigger authorization."""

    model_config = SettingsConfigDict(env_prefix="CRON_")

    secret: str | None = None


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Todozen Notify"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    push: PushSettings = Field(default_factory=PushSettings)
    cron: CronSettings = Field(default_factory=CronSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
