"""SQLite storage implementations."""

from deadline_tracker.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from deadline_tracker.infrastructure.storage.sqlite.deadline_store import SQLiteDeadlineStore

__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Store classes
    "SQLiteDeadlineStore",
]
