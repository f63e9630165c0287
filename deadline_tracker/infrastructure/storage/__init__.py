"""Storage infrastructure implementations."""

from deadline_tracker.config import get_settings
from deadline_tracker.core.exceptions import ConfigurationError
from deadline_tracker.core.interfaces.storage import IDeadlineStore
from deadline_tracker.infrastructure.storage.memory import InMemoryDeadlineStore
from deadline_tracker.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteDeadlineStore,
    close_pool,
    get_pool,
)

# Singleton instance
_deadline_store: IDeadlineStore | None = None


async def get_deadline_store() -> IDeadlineStore:
    """Get singleton deadline store for the configured backend."""
    global _deadline_store
    if _deadline_store is None:
        backend = get_settings().storage.backend
        if backend == "sqlite":
            _deadline_store = SQLiteDeadlineStore()
        elif backend == "memory":
            _deadline_store = InMemoryDeadlineStore()
        else:
            raise ConfigurationError(
                f"Unknown storage backend: {backend}",
                code="UNKNOWN_BACKEND",
                details={"backend": backend},
            )
    return _deadline_store


def reset_deadline_store() -> None:
    """Reset the deadline store singleton (for testing)."""
    global _deadline_store
    _deadline_store = None


__all__ = [
    # Stores
    "InMemoryDeadlineStore",
    "SQLiteDeadlineStore",
    "get_deadline_store",
    "reset_deadline_store",
    # Connection pool
    "ConnectionPool",
    "get_pool",
    "close_pool",
]
