"""
SQLite implementation of deadline storage.

Handles CRUD, owner listings, first-seed personalization and the
complete-and-advance write for recurring deadlines.
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import aiosqlite

from deadline_tracker.config import get_logger
from deadline_tracker.core.entities.deadline import Deadline, as_utc
from deadline_tracker.core.exceptions import (
    CompletionConflictError,
    ConflictError,
    DeadlineNotFoundError,
    EditConflictError,
    PersistenceError,
    SeedConflictError,
)
from deadline_tracker.core.interfaces.storage import IDeadlineStore
from deadline_tracker.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    get_pool,
)

logger = get_logger(__name__)

_INSERT_SQL = """
    INSERT INTO deadlines (
        id, owner_id, title, description, due_at, category,
        is_recurring, recurrence_pattern, is_completed, reminder_enabled,
        created_at, updated_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _to_text(moment: datetime) -> str:
    # Fixed-width ISO text so that string order matches time order
    return as_utc(moment).isoformat(timespec="microseconds")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@asynccontextmanager
async def _translate_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise driver errors as domain errors; domain errors pass through."""
    try:
        yield
    except aiosqlite.IntegrityError as e:
        logger.warning("deadline_store_integrity_error", operation=operation, error=str(e))
        raise ConflictError(
            f"Integrity violation during {operation}: {e}",
            code="INTEGRITY_CONFLICT",
            details={"operation": operation},
        ) from e
    except aiosqlite.Error as e:
        logger.error("deadline_store_error", operation=operation, error=str(e))
        raise PersistenceError(operation, str(e)) from e


class SQLiteDeadlineStore(IDeadlineStore):
    """SQLite implementation of deadline storage."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    @staticmethod
    def _stamp_new(deadline: Deadline, now: datetime) -> Deadline:
        return deadline.model_copy(
            update={"id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        )

    @staticmethod
    async def _insert(conn: aiosqlite.Connection, deadline: Deadline) -> None:
        await conn.execute(
            _INSERT_SQL,
            (
                deadline.id,
                deadline.owner_id,
                deadline.title,
                deadline.description,
                _to_text(deadline.due_at),
                deadline.category,
                1 if deadline.is_recurring else 0,
                deadline.recurrence_pattern.value if deadline.recurrence_pattern else None,
                1 if deadline.is_completed else 0,
                1 if deadline.reminder_enabled else 0,
                _to_text(deadline.created_at),
                _to_text(deadline.updated_at),
            ),
        )

    async def create(self, deadline: Deadline) -> Deadline:
        """Create a new deadline."""
        stored = self._stamp_new(deadline, _utcnow())
        pool = await self._get_pool()
        async with _translate_errors("create"), pool.transaction() as conn:
            await self._insert(conn, stored)
        logger.debug("deadline_stored", deadline_id=stored.id, owner_id=stored.owner_id)
        return stored

    async def get(self, deadline_id: str) -> Deadline | None:
        """Get deadline by ID."""
        pool = await self._get_pool()
        async with _translate_errors("get"), pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM deadlines WHERE id = ?", (deadline_id,)
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entity(row)

    async def update(
        self,
        deadline: Deadline,
        expected_updated_at: datetime | None = None,
    ) -> Deadline:
        """Update an existing deadline, optionally guarded by its last write time."""
        if deadline.id is None:
            raise DeadlineNotFoundError("<unsaved>")

        stored = deadline.model_copy(update={"updated_at": _utcnow()})
        sql = """
            UPDATE deadlines SET
                title = ?, description = ?, due_at = ?, category = ?,
                is_recurring = ?, recurrence_pattern = ?, is_completed = ?,
                reminder_enabled = ?, updated_at = ?
            WHERE id = ?
        """
        params: list = [
            stored.title,
            stored.description,
            _to_text(stored.due_at),
            stored.category,
            1 if stored.is_recurring else 0,
            stored.recurrence_pattern.value if stored.recurrence_pattern else None,
            1 if stored.is_completed else 0,
            1 if stored.reminder_enabled else 0,
            _to_text(stored.updated_at),
            stored.id,
        ]
        if expected_updated_at is not None:
            sql += " AND updated_at = ?"
            params.append(_to_text(expected_updated_at))

        pool = await self._get_pool()
        async with _translate_errors("update"), pool.transaction() as conn:
            cursor = await conn.execute(sql, params)
            if cursor.rowcount == 0:
                cursor = await conn.execute(
                    "SELECT created_at FROM deadlines WHERE id = ?", (stored.id,)
                )
                row = await cursor.fetchone()
                if row is None:
                    raise DeadlineNotFoundError(stored.id)
                raise EditConflictError(stored.id)
            cursor = await conn.execute(
                "SELECT created_at FROM deadlines WHERE id = ?", (stored.id,)
            )
            row = await cursor.fetchone()

        logger.debug("deadline_stored", deadline_id=stored.id, operation="update")
        return stored.model_copy(
            update={"created_at": datetime.fromisoformat(row["created_at"])}
        )

    async def delete(self, deadline_id: str) -> bool:
        """Delete a deadline by ID."""
        pool = await self._get_pool()
        async with _translate_errors("delete"), pool.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM deadlines WHERE id = ?", (deadline_id,)
            )
            return cursor.rowcount > 0

    async def list_by_owner(
        self,
        owner_id: str,
        include_completed: bool = True,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Deadline]:
        """List an owner's deadlines ordered by due date; ``limit=None`` returns all."""
        where = "owner_id = ?" if include_completed else "owner_id = ? AND is_completed = 0"
        pool = await self._get_pool()
        async with _translate_errors("list_by_owner"), pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM deadlines
                WHERE {where}
                ORDER BY due_at ASC, created_at ASC
                LIMIT ? OFFSET ?
                """,
                (owner_id, -1 if limit is None else limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    async def count_by_owner(self, owner_id: str) -> int:
        pool = await self._get_pool()
        async with _translate_errors("count_by_owner"), pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM deadlines WHERE owner_id = ?", (owner_id,)
            )
            row = await cursor.fetchone()
        return row[0] if row else 0

    async def is_personalized(self, owner_id: str) -> bool:
        pool = await self._get_pool()
        async with _translate_errors("is_personalized"), pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT 1 FROM personalization_markers WHERE owner_id = ?", (owner_id,)
            )
            row = await cursor.fetchone()
        return row is not None

    async def seed_initial(self, owner_id: str, deadlines: list[Deadline]) -> list[Deadline]:
        """Record the owner's seed marker and insert the initial set if still empty."""
        now = _utcnow()
        stored = [self._stamp_new(d, now) for d in deadlines]

        pool = await self._get_pool()
        async with _translate_errors("seed_initial"), pool.transaction() as conn:
            try:
                await conn.execute(
                    "INSERT INTO personalization_markers (owner_id, seeded_at) VALUES (?, ?)",
                    (owner_id, _to_text(now)),
                )
            except aiosqlite.IntegrityError:
                raise SeedConflictError(owner_id) from None

            cursor = await conn.execute(
                "SELECT COUNT(*) FROM deadlines WHERE owner_id = ?", (owner_id,)
            )
            row = await cursor.fetchone()
            if row[0] > 0:
                logger.info("seed_skipped_existing_deadlines", owner_id=owner_id)
                return []

            for deadline in stored:
                await self._insert(conn, deadline)

        return stored

    async def complete_with_successor(
        self,
        completed: Deadline,
        successor: Deadline,
    ) -> tuple[Deadline, Deadline]:
        """Mark a recurring deadline done and insert its next instance atomically."""
        if completed.id is None:
            raise DeadlineNotFoundError("<unsaved>")

        now = _utcnow()
        done = completed.model_copy(update={"is_completed": True, "updated_at": now})
        next_instance = self._stamp_new(successor, now)

        pool = await self._get_pool()
        async with _translate_errors("complete_with_successor"), pool.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE deadlines SET is_completed = 1, updated_at = ?
                WHERE id = ? AND is_completed = 0
                """,
                (_to_text(now), done.id),
            )
            if cursor.rowcount == 0:
                cursor = await conn.execute(
                    "SELECT 1 FROM deadlines WHERE id = ?", (done.id,)
                )
                if await cursor.fetchone() is None:
                    raise DeadlineNotFoundError(done.id)
                raise CompletionConflictError(done.id)

            await self._insert(conn, next_instance)

        return done, next_instance

    @staticmethod
    def _row_to_entity(row: aiosqlite.Row) -> Deadline:
        """Convert a database row to a Deadline entity."""
        return Deadline(
            id=row["id"],
            owner_id=row["owner_id"],
            title=row["title"],
            description=row["description"],
            due_at=datetime.fromisoformat(row["due_at"]),
            category=row["category"] or "custom",
            is_recurring=bool(row["is_recurring"]),
            recurrence_pattern=row["recurrence_pattern"],
            is_completed=bool(row["is_completed"]),
            reminder_enabled=bool(row["reminder_enabled"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
