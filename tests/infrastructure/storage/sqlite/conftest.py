"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from pathlib import Path

import pytest

from deadline_tracker.core.entities.deadline import Deadline
from deadline_tracker.infrastructure.storage.sqlite.connection import ConnectionPool
from deadline_tracker.infrastructure.storage.sqlite.deadline_store import SQLiteDeadlineStore
from deadline_tracker.infrastructure.storage.sqlite.migrations.migrator import (
    initialize_database,
)


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> Path:
    """Temporary database with all migrations applied."""
    results = await initialize_database(temp_db_path)
    assert all(r.success for r in results)
    return temp_db_path


@pytest.fixture
async def pool(initialized_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over the migrated temporary database."""
    pool = ConnectionPool(db_path=initialized_db, pool_size=2, busy_timeout=1000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def store(pool: ConnectionPool) -> SQLiteDeadlineStore:
    return SQLiteDeadlineStore(pool=pool)


@pytest.fixture
def monthly_deadline() -> Deadline:
    """Unsaved monthly tax deadline."""
    return Deadline(
        owner_id="u1",
        title="GST Return",
        description="GSTR-3B",
        due_at=datetime(2024, 6, 20, tzinfo=timezone.utc),
        category="tax",
        is_recurring=True,
        recurrence_pattern="monthly",
    )
