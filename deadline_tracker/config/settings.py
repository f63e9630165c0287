"""
Application settings with Pydantic v2 validation.

Every group reads its own environment prefix; ``Settings`` also reads a
``.env`` file from the working directory.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeadlineSettings(BaseSettings):
    """Deadline policy: urgency horizon, dashboard size, role catalog."""

    model_config = SettingsConfigDict(env_prefix="DEADLINE_")

    due_soon_days: int = Field(default=7, ge=0)
    upcoming_limit: int = Field(default=5, ge=1)

    # YAML file replacing the built-in role catalog
    catalog_path: Path | None = None

    @field_validator("catalog_path")
    @classmethod
    def expand_catalog_path(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None


class StorageSettings(BaseSettings):
    """Deadline store backend and SQLite tuning."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    backend: Literal["sqlite", "memory"] = "sqlite"
    data_dir: Path = Path("data")
    db_name: str = "deadlines.db"

    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0, description="Milliseconds")

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def db_path(self) -> Path:
        return self.data_dir.expanduser() / self.db_name


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

    app_name: str = "Compliance Deadline Tracker"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    deadlines: DeadlineSettings = Field(default_factory=DeadlineSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


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
