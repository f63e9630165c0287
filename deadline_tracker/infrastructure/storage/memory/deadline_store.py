"""
In-memory implementation of deadline storage.

Used for tests and for running the API without a database file. Writes are
serialized by a single lock so every method is atomic with respect to the
others, matching the transactional guarantees of the SQLite store.
"""

import asyncio
import uuid
from datetime import datetime, timezone

from deadline_tracker.config import get_logger
from deadline_tracker.core.entities.deadline import Deadline
from deadline_tracker.core.exceptions import (
    CompletionConflictError,
    DeadlineNotFoundError,
    EditConflictError,
    SeedConflictError,
)
from deadline_tracker.core.interfaces.storage import IDeadlineStore

logger = get_logger(__name__)


class InMemoryDeadlineStore(IDeadlineStore):
    """Dictionary-backed deadline storage."""

    def __init__(self) -> None:
        self._rows: dict[str, Deadline] = {}
        self._markers: dict[str, datetime] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _stamp_new(deadline: Deadline, now: datetime) -> Deadline:
        return deadline.model_copy(
            update={"id": str(uuid.uuid4()), "created_at": now, "updated_at": now},
            deep=True,
        )

    def _owner_rows(self, owner_id: str) -> list[Deadline]:
        return [d for d in self._rows.values() if d.owner_id == owner_id]

    async def create(self, deadline: Deadline) -> Deadline:
        stored = self._stamp_new(deadline, datetime.now(timezone.utc))
        async with self._lock:
            self._rows[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get(self, deadline_id: str) -> Deadline | None:
        row = self._rows.get(deadline_id)
        return row.model_copy(deep=True) if row is not None else None

    async def update(
        self,
        deadline: Deadline,
        expected_updated_at: datetime | None = None,
    ) -> Deadline:
        async with self._lock:
            current = self._rows.get(deadline.id) if deadline.id else None
            if current is None:
                raise DeadlineNotFoundError(deadline.id or "<unsaved>")
            if expected_updated_at is not None and current.updated_at != expected_updated_at:
                raise EditConflictError(deadline.id)

            stored = deadline.model_copy(
                update={
                    "owner_id": current.owner_id,
                    "created_at": current.created_at,
                    "updated_at": datetime.now(timezone.utc),
                },
                deep=True,
            )
            self._rows[stored.id] = stored
        return stored.model_copy(deep=True)

    async def delete(self, deadline_id: str) -> bool:
        async with self._lock:
            return self._rows.pop(deadline_id, None) is not None

    async def list_by_owner(
        self,
        owner_id: str,
        include_completed: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Deadline]:
        rows = [
            d for d in self._owner_rows(owner_id) if include_completed or not d.is_completed
        ]
        rows.sort(key=lambda d: (d.due_at, d.created_at))
        page = rows[offset:] if limit is None else rows[offset : offset + limit]
        return [d.model_copy(deep=True) for d in page]

    async def count_by_owner(self, owner_id: str) -> int:
        return len(self._owner_rows(owner_id))

    async def is_personalized(self, owner_id: str) -> bool:
        return owner_id in self._markers

    async def seed_initial(self, owner_id: str, deadlines: list[Deadline]) -> list[Deadline]:
        now = datetime.now(timezone.utc)
        async with self._lock:
            if owner_id in self._markers:
                raise SeedConflictError(owner_id)
            self._markers[owner_id] = now
            if self._owner_rows(owner_id):
                logger.info("seed_skipped_existing_deadlines", owner_id=owner_id)
                return []

            stored = [self._stamp_new(d, now) for d in deadlines]
            for deadline in stored:
                self._rows[deadline.id] = deadline
        return [d.model_copy(deep=True) for d in stored]

    async def complete_with_successor(
        self,
        completed: Deadline,
        successor: Deadline,
    ) -> tuple[Deadline, Deadline]:
        async with self._lock:
            current = self._rows.get(completed.id) if completed.id else None
            if current is None:
                raise DeadlineNotFoundError(completed.id or "<unsaved>")
            if current.is_completed:
                raise CompletionConflictError(completed.id)

            now = datetime.now(timezone.utc)
            done = current.model_copy(update={"is_completed": True, "updated_at": now})
            next_instance = self._stamp_new(successor, now)
            self._rows[done.id] = done
            self._rows[next_instance.id] = next_instance
        return done.model_copy(deep=True), next_instance.model_copy(deep=True)
