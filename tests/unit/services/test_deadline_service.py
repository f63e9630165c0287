"""Unit tests for DeadlineService over the in-memory store."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from deadline_tracker.core.entities.deadline import Deadline, RecurrencePattern, UrgencyStatus
from deadline_tracker.core.entities.role_template import RoleTemplate, UserRole
from deadline_tracker.core.exceptions import (
    DeadlineNotFoundError,
    InvalidOperationError,
    PersistenceError,
    ValidationError,
)
from deadline_tracker.core.interfaces.owners import IOwnerDirectory
from deadline_tracker.core.services.deadline_service import DeadlineService, parse_due_at
from deadline_tracker.core.services.template_catalog import TemplateCatalog
from deadline_tracker.infrastructure.storage.memory import InMemoryDeadlineStore


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class StaticOwnerDirectory(IOwnerDirectory):
    """Owner directory backed by a fixed set of ids."""

    def __init__(self, known: set[str]):
        self.known = known

    async def exists(self, owner_id: str) -> bool:
        return owner_id in self.known


class TestParseDueAt:
    """Tests for due date parsing."""

    def test_datetime_passthrough(self):
        assert parse_due_at(_utc(2024, 6, 20, 10)) == _utc(2024, 6, 20, 10)

    def test_naive_datetime_is_utc(self):
        assert parse_due_at(datetime(2024, 6, 20, 10)) == _utc(2024, 6, 20, 10)

    def test_date_becomes_midnight(self):
        assert parse_due_at(date(2024, 6, 20)) == _utc(2024, 6, 20)

    @pytest.mark.parametrize(
        "text",
        ["2024-06-20", "2024-06-20T00:00:00Z", "2024-06-20T05:30:00+05:30"],
    )
    def test_iso_strings(self, text):
        assert parse_due_at(text) == _utc(2024, 6, 20)

    @pytest.mark.parametrize("value", ["", "   ", "next tuesday", None, 42])
    def test_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_due_at(value)
        assert exc_info.value.field == "due_at"


class TestCreate:
    """Tests for DeadlineService.create."""

    async def test_create(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)

        assert created.id is not None
        assert created.owner_id == "u1"
        assert created.title == "GST Return"
        assert created.due_at == _utc(2024, 6, 20)
        assert created.category == "tax"
        assert created.recurrence_pattern == RecurrencePattern.MONTHLY
        assert created.is_completed is False
        assert created.created_at is not None
        assert created.updated_at is not None

    async def test_minimal_fields_use_defaults(self, service: DeadlineService):
        created = await service.create("u1", {"title": "Renew lease", "due_at": "2024-07-01"})
        assert created.category == "custom"
        assert created.is_recurring is False
        assert created.reminder_enabled is True
        assert created.description is None

    async def test_title_is_trimmed(self, service: DeadlineService):
        created = await service.create("u1", {"title": "  Lease  ", "due_at": "2024-07-01"})
        assert created.title == "Lease"

    @pytest.mark.parametrize("title", ["", "   ", None])
    async def test_empty_title_rejected_and_nothing_persisted(
        self, service: DeadlineService, memory_store: InMemoryDeadlineStore, title
    ):
        with pytest.raises(ValidationError) as exc_info:
            await service.create("u1", {"title": title, "due_at": "2024-07-01"})

        assert exc_info.value.field == "title"
        assert exc_info.value.reason == "Title cannot be empty"
        assert await memory_store.count_by_owner("u1") == 0

    async def test_missing_due_at(self, service: DeadlineService):
        with pytest.raises(ValidationError) as exc_info:
            await service.create("u1", {"title": "x"})
        assert exc_info.value.field == "due_at"

    async def test_unparseable_due_at(self, service: DeadlineService):
        with pytest.raises(ValidationError) as exc_info:
            await service.create("u1", {"title": "x", "due_at": "soon"})
        assert exc_info.value.reason == "Invalid due date"

    async def test_recurring_without_pattern(self, service: DeadlineService):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(
                "u1", {"title": "x", "due_at": "2024-07-01", "is_recurring": True}
            )
        assert exc_info.value.field == "recurrence_pattern"

    async def test_unknown_pattern(self, service: DeadlineService):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(
                "u1",
                {
                    "title": "x",
                    "due_at": "2024-07-01",
                    "is_recurring": True,
                    "recurrence_pattern": "weekly",
                },
            )
        assert exc_info.value.field == "recurrence_pattern"

    async def test_pattern_dropped_for_one_off(self, service: DeadlineService):
        created = await service.create(
            "u1",
            {
                "title": "x",
                "due_at": "2024-07-01",
                "is_recurring": False,
                "recurrence_pattern": "monthly",
            },
        )
        assert created.recurrence_pattern is None

    async def test_unknown_category_stored_verbatim(self, service: DeadlineService):
        created = await service.create(
            "u1", {"title": "x", "due_at": "2024-07-01", "category": "payroll"}
        )
        assert created.category == "payroll"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("created_at", "2024-01-01"),
            ("updated_at", "2024-01-01"),
            ("is_completed", True),
            ("priority", "high"),
        ],
    )
    async def test_rejected_fields(self, service: DeadlineService, field, value):
        with pytest.raises(ValidationError) as exc_info:
            await service.create("u1", {"title": "x", "due_at": "2024-07-01", field: value})
        assert exc_info.value.field == field

    async def test_non_boolean_flag(self, service: DeadlineService):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(
                "u1", {"title": "x", "due_at": "2024-07-01", "reminder_enabled": "yes"}
            )
        assert exc_info.value.field == "reminder_enabled"

    @pytest.mark.parametrize("owner_id", ["", "   ", None])
    async def test_owner_required(self, service: DeadlineService, owner_id):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(owner_id, {"title": "x", "due_at": "2024-07-01"})
        assert exc_info.value.field == "owner_id"

    async def test_owner_in_fields_must_match(self, service: DeadlineService):
        with pytest.raises(ValidationError):
            await service.create(
                "u1", {"title": "x", "due_at": "2024-07-01", "owner_id": "u2"}
            )

    async def test_unknown_owner(self, memory_store: InMemoryDeadlineStore):
        service = DeadlineService(
            store=memory_store, owner_directory=StaticOwnerDirectory({"u1"})
        )
        with pytest.raises(ValidationError) as exc_info:
            await service.create("ghost", {"title": "x", "due_at": "2024-07-01"})
        assert exc_info.value.reason == "Unknown owner"

        created = await service.create("u1", {"title": "x", "due_at": "2024-07-01"})
        assert created.owner_id == "u1"

    async def test_storage_failure_propagates(self):
        store = AsyncMock()
        store.create.side_effect = PersistenceError("create", "database is locked")
        service = DeadlineService(store=store)

        with pytest.raises(PersistenceError):
            await service.create("u1", {"title": "x", "due_at": "2024-07-01"})


class TestUpdate:
    """Tests for DeadlineService.update."""

    async def test_partial_update(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)
        updated = await service.update(created.id, {"title": "GSTR-3B", "due_at": "2024-06-25"})

        assert updated.title == "GSTR-3B"
        assert updated.due_at == _utc(2024, 6, 25)
        assert updated.category == "tax"
        assert updated.recurrence_pattern == RecurrencePattern.MONTHLY
        assert updated.created_at == created.created_at

    async def test_update_persists(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)
        await service.update(created.id, {"description": "changed"})
        assert (await service.get(created.id)).description == "changed"

    async def test_turning_off_recurrence_clears_pattern(
        self, service: DeadlineService, sample_fields: dict
    ):
        created = await service.create("u1", sample_fields)
        updated = await service.update(created.id, {"is_recurring": False})
        assert updated.recurrence_pattern is None

    async def test_turning_on_recurrence_needs_pattern(self, service: DeadlineService):
        created = await service.create("u1", {"title": "x", "due_at": "2024-07-01"})
        with pytest.raises(ValidationError):
            await service.update(created.id, {"is_recurring": True})

    async def test_empty_title_rejected(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)
        with pytest.raises(ValidationError):
            await service.update(created.id, {"title": ""})
        assert (await service.get(created.id)).title == "GST Return"

    async def test_owner_cannot_change(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)
        with pytest.raises(ValidationError) as exc_info:
            await service.update(created.id, {"owner_id": "u2"})
        assert exc_info.value.field == "owner_id"

    async def test_same_owner_is_accepted(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)
        updated = await service.update(created.id, {"owner_id": "u1", "title": "New"})
        assert updated.owner_id == "u1"

    async def test_completion_not_editable(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)
        with pytest.raises(ValidationError):
            await service.update(created.id, {"is_completed": True})

    async def test_unknown_id(self, service: DeadlineService):
        with pytest.raises(DeadlineNotFoundError):
            await service.update("missing", {"title": "x"})

    async def test_completed_recurring_schedule_is_frozen(
        self, service: DeadlineService, sample_fields: dict, now: datetime
    ):
        created = await service.create("u1", sample_fields)
        await service.toggle_complete(created.id, now)

        for change in (
            {"is_recurring": False},
            {"recurrence_pattern": "yearly"},
            {"due_at": "2024-06-25"},
        ):
            with pytest.raises(InvalidOperationError):
                await service.update(created.id, change)

        stored = await service.get(created.id)
        assert stored.is_recurring is True
        assert stored.due_at == _utc(2024, 6, 20)
        with pytest.raises(InvalidOperationError):
            await service.toggle_complete(created.id, now)

        open_deadlines = await service.list_for_owner("u1", include_completed=False)
        assert [d.due_at for d in open_deadlines] == [_utc(2024, 7, 20)]

    async def test_completed_recurring_accepts_other_edits(
        self, service: DeadlineService, sample_fields: dict, now: datetime
    ):
        created = await service.create("u1", sample_fields)
        await service.toggle_complete(created.id, now)

        updated = await service.update(
            created.id, {"title": "GSTR-3B (filed)", "due_at": "2024-06-20T00:00:00Z"}
        )

        assert updated.title == "GSTR-3B (filed)"
        assert updated.is_completed is True
        assert updated.is_recurring is True


class TestDelete:
    """Tests for DeadlineService.delete."""

    async def test_delete(self, service: DeadlineService, sample_fields: dict):
        created = await service.create("u1", sample_fields)
        await service.delete(created.id)
        with pytest.raises(DeadlineNotFoundError):
            await service.get(created.id)

    async def test_delete_unknown(self, service: DeadlineService):
        with pytest.raises(DeadlineNotFoundError):
            await service.delete("missing")

    async def test_delete_completed_instance_keeps_successor(
        self, service: DeadlineService, sample_fields: dict, now: datetime
    ):
        created = await service.create("u1", sample_fields)
        result = await service.toggle_complete(created.id, now)

        await service.delete(created.id)

        remaining = await service.list_for_owner("u1")
        assert [d.id for d in remaining] == [result.successor.id]


class TestToggleComplete:
    """Tests for DeadlineService.toggle_complete."""

    async def test_monthly_completion_creates_successor(
        self, service: DeadlineService, sample_fields: dict, now: datetime
    ):
        created = await service.create("u1", sample_fields)

        result = await service.toggle_complete(created.id, now)

        assert result.deadline.id == created.id
        assert result.deadline.is_completed is True
        successor = result.successor
        assert successor is not None
        assert successor.id not in (None, created.id)
        assert successor.due_at == _utc(2024, 7, 20)
        assert successor.is_completed is False
        assert successor.category == "tax"
        assert successor.recurrence_pattern == RecurrencePattern.MONTHLY
        assert successor.title == created.title
        assert successor.owner_id == "u1"

        stored = await service.list_for_owner("u1")
        assert len(stored) == 2
        assert [d.is_completed for d in stored] == [True, False]

    async def test_completing_late_keeps_schedule(
        self, service: DeadlineService, sample_fields: dict
    ):
        created = await service.create("u1", sample_fields)
        result = await service.toggle_complete(created.id, _utc(2024, 9, 1))
        assert result.successor.due_at == _utc(2024, 7, 20)

    async def test_one_off_has_no_successor(self, service: DeadlineService, now: datetime):
        created = await service.create("u1", {"title": "x", "due_at": "2024-07-01"})

        result = await service.toggle_complete(created.id, now)

        assert result.deadline.is_completed is True
        assert result.successor is None
        assert await service.list_for_owner("u1") == [result.deadline]

    async def test_one_off_can_be_reopened(self, service: DeadlineService, now: datetime):
        created = await service.create("u1", {"title": "x", "due_at": "2024-07-01"})
        await service.toggle_complete(created.id, now)

        result = await service.toggle_complete(created.id, now)

        assert result.deadline.is_completed is False
        assert result.successor is None

    async def test_completed_recurring_cannot_be_reopened(
        self, service: DeadlineService, sample_fields: dict, now: datetime
    ):
        created = await service.create("u1", sample_fields)
        await service.toggle_complete(created.id, now)

        with pytest.raises(InvalidOperationError):
            await service.toggle_complete(created.id, now)
        assert len(await service.list_for_owner("u1")) == 2

    async def test_unknown_id(self, service: DeadlineService, now: datetime):
        with pytest.raises(DeadlineNotFoundError):
            await service.toggle_complete("missing", now)


class TestEnsurePersonalized:
    """Tests for first-session seeding."""

    async def test_seeds_role_templates_once(self, service: DeadlineService, now: datetime):
        first = await service.ensure_personalized("u1", UserRole.STARTUP, now)
        second = await service.ensure_personalized("u1", UserRole.STARTUP, now)

        assert first.seeded is True
        assert len(first.deadlines) == 4
        assert second.seeded is False
        assert second.deadlines == []
        assert len(await service.list_for_owner("u1")) == 4

    async def test_concurrent_sessions_seed_one_batch(
        self, service: DeadlineService, now: datetime
    ):
        results = await asyncio.gather(
            *(service.ensure_personalized("u1", "freelancer", now) for _ in range(5))
        )

        assert sum(r.seeded for r in results) == 1
        assert len(await service.list_for_owner("u1")) == 4

    async def test_owner_with_deadlines_is_not_seeded(
        self, service: DeadlineService, now: datetime
    ):
        await service.create("u1", {"title": "Mine", "due_at": "2024-07-01"})

        result = await service.ensure_personalized("u1", UserRole.STARTUP, now)

        assert result.seeded is False
        assert [d.title for d in await service.list_for_owner("u1")] == ["Mine"]

    async def test_emptied_owner_is_not_reseeded(self, service: DeadlineService, now: datetime):
        seeded = await service.ensure_personalized("u1", None, now)
        for deadline in seeded.deadlines:
            await service.delete(deadline.id)

        again = await service.ensure_personalized("u1", None, now)

        assert again.seeded is False
        assert await service.list_for_owner("u1") == []

    async def test_owners_are_independent(self, service: DeadlineService, now: datetime):
        await service.ensure_personalized("u1", None, now)
        result = await service.ensure_personalized("u2", None, now)
        assert result.seeded is True

    async def test_resolved_dates(self, service: DeadlineService, now: datetime):
        result = await service.ensure_personalized("u1", None, now)
        by_title = {d.title: d for d in result.deadlines}

        assert by_title["GST Return Filing (GSTR-3B)"].due_at == now + timedelta(days=7)
        assert by_title["ITR Filing Deadline"].due_at == _utc(2024, 7, 31)

    async def test_custom_catalog(self, memory_store: InMemoryDeadlineStore, now: datetime):
        catalog = TemplateCatalog(
            baseline=[RoleTemplate(title="Only", days_ahead=2)], by_role={}
        )
        service = DeadlineService(store=memory_store, catalog=catalog)

        result = await service.ensure_personalized("u1", "ca", now)
        assert [d.title for d in result.deadlines] == ["Only"]

    async def test_storage_failure_propagates(self, now: datetime):
        store = AsyncMock()
        store.is_personalized.return_value = False
        store.count_by_owner.return_value = 0
        store.seed_initial.side_effect = PersistenceError("seed_initial", "disk full")
        service = DeadlineService(store=store)

        with pytest.raises(PersistenceError):
            await service.ensure_personalized("u1", None, now)


class TestQueries:
    """Tests for read-side operations."""

    async def _seed(self, service: DeadlineService, now: datetime) -> dict:
        offsets = {"overdue": -2, "soon": 3, "later": 10, "far": 40}
        ids = {}
        for title, days in offsets.items():
            created = await service.create(
                "u1", {"title": title, "due_at": now + timedelta(days=days)}
            )
            ids[title] = created.id
        done = await service.create("u1", {"title": "done", "due_at": now + timedelta(days=1)})
        await service.toggle_complete(done.id, now)
        ids["done"] = done.id
        return ids

    async def test_list_orders_by_due_date(self, service: DeadlineService, now: datetime):
        await self._seed(service, now)
        titles = [d.title for d in await service.list_for_owner("u1")]
        assert titles == ["overdue", "done", "soon", "later", "far"]

    async def test_list_excluding_completed(self, service: DeadlineService, now: datetime):
        await self._seed(service, now)
        titles = [d.title for d in await service.list_for_owner("u1", include_completed=False)]
        assert "done" not in titles

    async def test_list_upcoming(self, service: DeadlineService, now: datetime):
        await self._seed(service, now)
        titles = [d.title for d in await service.list_upcoming("u1", now)]
        assert titles == ["soon", "later", "far"]

    async def test_upcoming_limit(self, service: DeadlineService, now: datetime):
        for day in range(1, 9):
            await service.create("u1", {"title": f"d{day}", "due_at": now + timedelta(days=day)})

        assert len(await service.list_upcoming("u1", now)) == 5
        assert len(await service.list_upcoming("u1", now, limit=2)) == 2
        assert await service.list_upcoming("u1", now, limit=0) == []

    async def test_due_reminders(self, service: DeadlineService, now: datetime):
        await self._seed(service, now)
        quiet = await service.create(
            "u1",
            {"title": "quiet", "due_at": now + timedelta(days=1), "reminder_enabled": False},
        )

        titles = [d.title for d in await service.list_due_reminders("u1", now)]
        assert titles == ["overdue", "soon"]
        assert quiet.title not in titles

    async def test_summarize(self, service: DeadlineService, now: datetime):
        await self._seed(service, now)
        summary = await service.summarize("u1", now)

        assert summary.total == 5
        assert summary.completed == 1
        assert summary.overdue == 1
        assert summary.due_soon == 1
        assert summary.normal == 2
        assert summary.upcoming == 3

    async def test_calendar(self, service: DeadlineService, now: datetime):
        ids = await self._seed(service, now)
        events = await service.calendar("u1")
        assert len(events) == 5
        assert events[0].id == ids["overdue"]
        assert events[0].start == events[0].end == now - timedelta(days=2)

    async def test_classify(self, service: DeadlineService, now: datetime):
        created = await service.create("u1", {"title": "x", "due_at": now + timedelta(days=3)})
        assert service.classify(created, now) == UrgencyStatus.DUE_SOON

    async def test_other_owner_sees_nothing(self, service: DeadlineService, now: datetime):
        await self._seed(service, now)
        assert await service.list_for_owner("u2") == []
        assert (await service.summarize("u2", now)).total == 0

    async def test_aggregates_cover_every_deadline(
        self, memory_store: InMemoryDeadlineStore, service: DeadlineService, now: datetime
    ):
        for day in range(520):
            await memory_store.create(
                Deadline(owner_id="u1", title=f"old {day}", due_at=now - timedelta(days=day + 1))
            )
        latest = await service.create("u1", {"title": "latest", "due_at": now + timedelta(days=3)})

        summary = await service.summarize("u1", now)
        assert summary.total == 521
        assert summary.overdue == 520
        assert len(await service.calendar("u1")) == 521
        assert [d.id for d in await service.list_upcoming("u1", now)] == [latest.id]
        reminders = await service.list_due_reminders("u1", now)
        assert len(reminders) == 521
        assert reminders[-1].id == latest.id
        assert len(await service.list_for_owner("u1")) == 500
