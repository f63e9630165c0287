"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone

# The API module builds its app at import time; keep it off the filesystem.
os.environ.setdefault("STORAGE_BACKEND", "memory")

import pytest

from deadline_tracker.application.services import reset_services
from deadline_tracker.config import reset_settings
from deadline_tracker.core.services import DeadlineService, reset_template_catalog
from deadline_tracker.infrastructure.storage import reset_deadline_store
from deadline_tracker.infrastructure.storage.memory import InMemoryDeadlineStore


def _reset_all() -> None:
    reset_services()
    reset_deadline_store()
    reset_template_catalog()
    reset_settings()


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Drop cached settings, catalog, store and service around each test."""
    _reset_all()
    yield
    _reset_all()


@pytest.fixture
def now() -> datetime:
    """Fixed reference time used by time-dependent tests."""
    return datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def memory_store() -> InMemoryDeadlineStore:
    """Fresh in-memory deadline store."""
    return InMemoryDeadlineStore()


@pytest.fixture
def service(memory_store: InMemoryDeadlineStore) -> DeadlineService:
    """Deadline service over the in-memory store with the built-in catalog."""
    return DeadlineService(store=memory_store)


@pytest.fixture
def sample_fields() -> dict:
    """Valid create payload for a monthly tax deadline."""
    return {
        "title": "GST Return",
        "description": "Monthly GSTR-3B",
        "due_at": "2024-06-20T00:00:00Z",
        "category": "tax",
        "is_recurring": True,
        "recurrence_pattern": "monthly",
    }
