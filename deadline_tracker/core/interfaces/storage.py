"""
Abstract interface for deadline persistence.

The core never talks to a storage technology directly; adapters under
``deadline_tracker.infrastructure.storage`` implement this contract.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from deadline_tracker.core.entities.deadline import Deadline


class IDeadlineStore(ABC):
    """
    Abstract interface for deadline storage.

    Implementations assign ``id``, ``created_at`` and ``updated_at`` on
    insert, refresh ``updated_at`` on every write, and apply each method
    atomically: either every row it touches is written or none is.
    Storage failures are raised as ``PersistenceError``.
    """

    @abstractmethod
    async def create(self, deadline: Deadline) -> Deadline:
        """Insert a new deadline and return the stored copy."""
        pass

    @abstractmethod
    async def get(self, deadline_id: str) -> Deadline | None:
        """Get deadline by ID."""
        pass

    @abstractmethod
    async def update(
        self,
        deadline: Deadline,
        expected_updated_at: datetime | None = None,
    ) -> Deadline:
        """
        Overwrite a stored deadline.

        When ``expected_updated_at`` is given and no longer matches the stored
        row, raise ``EditConflictError``. Raise ``DeadlineNotFoundError`` when
        the row is gone.
        """
        pass

    @abstractmethod
    async def delete(self, deadline_id: str) -> bool:
        """Delete a deadline; return False when it did not exist."""
        pass

    @abstractmethod
    async def list_by_owner(
        self,
        owner_id: str,
        include_completed: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Deadline]:
        """List an owner's deadlines ordered by due date; ``limit=None`` returns all."""
        pass

    @abstractmethod
    async def count_by_owner(self, owner_id: str) -> int:
        """Count an owner's deadlines, completed ones included."""
        pass

    @abstractmethod
    async def is_personalized(self, owner_id: str) -> bool:
        """Check whether the owner's first-seed marker exists."""
        pass

    @abstractmethod
    async def seed_initial(self, owner_id: str, deadlines: list[Deadline]) -> list[Deadline]:
        """
        Insert the owner's initial deadline set at most once.

        Records the owner's first-seed marker and inserts ``deadlines`` only
        if the owner has no deadlines yet; the marker is recorded either way.
        Raises ``SeedConflictError`` when the marker already exists. Returns
        the stored deadlines (empty when the owner already had deadlines).
        """
        pass

    @abstractmethod
    async def complete_with_successor(
        self,
        completed: Deadline,
        successor: Deadline,
    ) -> tuple[Deadline, Deadline]:
        """
        Mark ``completed`` done and insert ``successor`` in one transaction.

        Raises ``CompletionConflictError`` if the stored row is no longer
        open, and ``DeadlineNotFoundError`` if it is gone.
        """
        pass
