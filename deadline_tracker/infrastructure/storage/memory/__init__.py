"""In-memory storage implementations."""

from deadline_tracker.infrastructure.storage.memory.deadline_store import (
    InMemoryDeadlineStore,
)

__all__ = ["InMemoryDeadlineStore"]
