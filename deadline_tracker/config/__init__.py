"""Configuration module."""

from deadline_tracker.config.logging import configure_logging, get_logger
from deadline_tracker.config.settings import (
    APISettings,
    DeadlineSettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "DeadlineSettings",
    "StorageSettings",
    "APISettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
]
