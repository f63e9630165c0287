"""Core interfaces (ports) for dependency injection."""

from deadline_tracker.core.interfaces.owners import IOwnerDirectory
from deadline_tracker.core.interfaces.storage import IDeadlineStore

__all__ = [
    "IDeadlineStore",
    "IOwnerDirectory",
]
