"""
Deadline mutation service.

The transactional surface over the deadline store. Every write goes through
here so that the entity invariants hold:

- titles are non-empty and due dates parse;
- recurring deadlines carry a valid recurrence pattern;
- the owner of a deadline never changes;
- completing a recurring deadline persists its successor in the same
  transaction;
- personalization seeds an owner's initial set at most once.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any

from deadline_tracker.config import get_logger
from deadline_tracker.core.entities.deadline import (
    CalendarEvent,
    Deadline,
    DeadlineCategory,
    RecurrencePattern,
    UrgencyStatus,
    as_utc,
)
from deadline_tracker.core.entities.role_template import UserRole
from deadline_tracker.core.exceptions import (
    DeadlineNotFoundError,
    InvalidOperationError,
    SeedConflictError,
    ValidationError,
)
from deadline_tracker.core.interfaces.owners import IOwnerDirectory
from deadline_tracker.core.interfaces.storage import IDeadlineStore
from deadline_tracker.core.services.calendar_projection import to_calendar_events
from deadline_tracker.core.services.personalization import resolve_initial_deadlines
from deadline_tracker.core.services.recurrence import RecurrenceEngine
from deadline_tracker.core.services.template_catalog import TemplateCatalog
from deadline_tracker.core.services.urgency import UrgencyClassifier

logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "due_at",
        "category",
        "is_recurring",
        "recurrence_pattern",
        "reminder_enabled",
    }
)
REQUIRED_FIELDS = ("title", "due_at")
SERVER_MANAGED_FIELDS = frozenset({"created_at", "updated_at"})
# Frozen once a recurring deadline is completed
SCHEDULE_FIELDS = ("is_recurring", "recurrence_pattern", "due_at")

_CREATE_DEFAULTS: dict[str, Any] = {
    "description": None,
    "category": DeadlineCategory.CUSTOM.value,
    "is_recurring": False,
    "recurrence_pattern": None,
    "reminder_enabled": True,
}


@dataclass
class ToggleResult:
    """Outcome of toggling completion."""

    deadline: Deadline
    successor: Deadline | None = None


@dataclass
class PersonalizationResult:
    """Outcome of ensure_personalized."""

    owner_id: str
    seeded: bool
    deadlines: list[Deadline] = field(default_factory=list)


@dataclass
class DeadlineSummary:
    """Dashboard counters for one owner."""

    total: int = 0
    completed: int = 0
    overdue: int = 0
    due_soon: int = 0
    normal: int = 0
    upcoming: int = 0


def parse_due_at(value: Any) -> datetime:
    """
    Parse a due date from a datetime, a date, or an ISO-8601 string.

    Dates without a time become midnight UTC; naive datetimes are UTC.

    Raises:
        ValidationError: if the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            pass
    raise ValidationError("due_at", "Invalid due date", value)


def _clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("title", "Title cannot be empty", value)
    return value.strip()


def _clean_description(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("description", "Description must be text", value)
    return value.strip() or None


def _clean_category(value: Any) -> str:
    if isinstance(value, DeadlineCategory):
        return value.value
    if value is None or (isinstance(value, str) and not value.strip()):
        return DeadlineCategory.CUSTOM.value
    if not isinstance(value, str):
        raise ValidationError("category", "Category must be text", value)
    # Unknown categories are stored verbatim
    return value.strip()


def _clean_flag(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(name, "Must be true or false", value)
    return value


def _clean_pattern(is_recurring: bool, value: Any) -> RecurrencePattern | None:
    if not is_recurring:
        return None
    if value is None or value == "":
        raise ValidationError(
            "recurrence_pattern",
            "Recurring deadlines require a recurrence pattern",
        )
    try:
        return RecurrencePattern(value)
    except ValueError:
        raise ValidationError(
            "recurrence_pattern",
            "Recurrence pattern must be monthly, quarterly or yearly",
            value,
        ) from None


def clean_fields(values: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a complete set of editable fields and normalize them."""
    for name in REQUIRED_FIELDS:
        if name not in values:
            raise ValidationError(name, "Field is required")

    is_recurring = _clean_flag("is_recurring", values.get("is_recurring", False))
    return {
        "title": _clean_title(values["title"]),
        "description": _clean_description(values.get("description")),
        "due_at": parse_due_at(values["due_at"]),
        "category": _clean_category(values.get("category")),
        "is_recurring": is_recurring,
        "recurrence_pattern": _clean_pattern(is_recurring, values.get("recurrence_pattern")),
        "reminder_enabled": _clean_flag(
            "reminder_enabled", values.get("reminder_enabled", True)
        ),
    }


class DeadlineService:
    """
    Mutation and query surface for deadlines.

    Stateless apart from its collaborators; safe to share across requests.
    """

    def __init__(
        self,
        store: IDeadlineStore,
        classifier: UrgencyClassifier | None = None,
        engine: RecurrenceEngine | None = None,
        catalog: TemplateCatalog | None = None,
        owner_directory: IOwnerDirectory | None = None,
        upcoming_limit: int = 5,
    ):
        self._store = store
        self._classifier = classifier or UrgencyClassifier()
        self._engine = engine or RecurrenceEngine()
        self._catalog = catalog
        self._owners = owner_directory
        self._upcoming_limit = upcoming_limit

    @property
    def classifier(self) -> UrgencyClassifier:
        return self._classifier

    # Validation helpers
    async def _check_owner(self, owner_id: Any) -> str:
        if not isinstance(owner_id, str) or not owner_id.strip():
            raise ValidationError("owner_id", "Owner id is required", owner_id)
        if self._owners is not None and not await self._owners.exists(owner_id):
            raise ValidationError("owner_id", "Unknown owner", owner_id)
        return owner_id

    @staticmethod
    def _reject_fields(fields: Mapping[str, Any], allowed: frozenset[str]) -> None:
        for name in fields:
            if name in SERVER_MANAGED_FIELDS:
                raise ValidationError(name, "Field is assigned by the server")
            if name == "is_completed":
                raise ValidationError(
                    name, "Completion is changed with toggle_complete", fields[name]
                )
            if name not in allowed:
                raise ValidationError(name, "Unknown field", fields[name])

    async def _require(self, deadline_id: str) -> Deadline:
        deadline = await self._store.get(deadline_id)
        if deadline is None:
            raise DeadlineNotFoundError(deadline_id)
        return deadline

    # Mutations
    async def create(self, owner_id: str, fields: Mapping[str, Any]) -> Deadline:
        """
        Create a deadline for an owner.

        Raises:
            ValidationError: empty title, bad due date, missing or unknown
                recurrence pattern, unknown owner, or unsupported field.
        """
        owner_id = await self._check_owner(owner_id)
        fields = dict(fields)
        if "owner_id" in fields:
            if fields.pop("owner_id") != owner_id:
                raise ValidationError("owner_id", "Owner id does not match the caller")
        self._reject_fields(fields, EDITABLE_FIELDS)

        values = clean_fields({**_CREATE_DEFAULTS, **fields})
        created = await self._store.create(Deadline(owner_id=owner_id, **values))

        logger.info(
            "deadline_created",
            deadline_id=created.id,
            owner_id=owner_id,
            category=created.category,
            recurring=created.is_recurring,
        )
        return created

    async def update(self, deadline_id: str, fields: Mapping[str, Any]) -> Deadline:
        """
        Edit a deadline's fields.

        Raises:
            DeadlineNotFoundError: unknown id.
            ValidationError: invalid values or an attempt to change the owner.
            EditConflictError: the deadline changed since it was read.
            InvalidOperationError: the due date or recurrence of a completed
                recurring deadline was changed.
        """
        existing = await self._require(deadline_id)
        fields = dict(fields)

        for immutable in ("id", "owner_id"):
            if immutable in fields:
                if fields.pop(immutable) != getattr(existing, immutable):
                    raise ValidationError(immutable, "Field cannot be changed")
        self._reject_fields(fields, EDITABLE_FIELDS)

        merged = {name: getattr(existing, name) for name in EDITABLE_FIELDS}
        merged.update(fields)
        values = clean_fields(merged)

        if existing.is_completed and existing.is_recurring:
            # Its successor already carries the schedule forward
            changed = sorted(
                name for name in SCHEDULE_FIELDS if values[name] != getattr(existing, name)
            )
            if changed:
                raise InvalidOperationError(
                    "The schedule of a completed recurring deadline cannot be "
                    f"changed: {', '.join(changed)}",
                    deadline_id=deadline_id,
                )

        updated = await self._store.update(
            existing.model_copy(update=values),
            expected_updated_at=existing.updated_at,
        )
        logger.info(
            "deadline_updated",
            deadline_id=deadline_id,
            fields=sorted(fields),
        )
        return updated

    async def delete(self, deadline_id: str) -> None:
        """Remove a deadline. No cascading effects on other instances."""
        if not await self._store.delete(deadline_id):
            raise DeadlineNotFoundError(deadline_id)
        logger.info("deadline_deleted", deadline_id=deadline_id)

    async def toggle_complete(self, deadline_id: str, now: datetime) -> ToggleResult:
        """
        Flip a deadline's completion flag.

        Completing a recurring deadline also creates its next instance; both
        writes land in one transaction. A completed recurring deadline is a
        historical record and cannot be reopened.

        Raises:
            DeadlineNotFoundError: unknown id.
            InvalidOperationError: reopening a completed recurring deadline.
            ConflictError: a concurrent request changed the deadline first.
        """
        existing = await self._require(deadline_id)

        if existing.is_completed:
            if existing.is_recurring:
                raise InvalidOperationError(
                    "A completed recurring deadline already has a successor "
                    "and cannot be reopened",
                    deadline_id=deadline_id,
                )
            reopened = await self._store.update(
                existing.model_copy(update={"is_completed": False}),
                expected_updated_at=existing.updated_at,
            )
            logger.info("deadline_reopened", deadline_id=deadline_id)
            return ToggleResult(deadline=reopened)

        completed = existing.model_copy(update={"is_completed": True})

        if not existing.is_recurring:
            stored = await self._store.update(
                completed, expected_updated_at=existing.updated_at
            )
            logger.info("deadline_completed", deadline_id=deadline_id)
            return ToggleResult(deadline=stored)

        successor = self._engine.advance(existing, now)
        stored, next_instance = await self._store.complete_with_successor(
            completed, successor
        )
        logger.info(
            "deadline_completed",
            deadline_id=deadline_id,
            successor_id=next_instance.id,
            next_due_at=next_instance.due_at.isoformat(),
        )
        return ToggleResult(deadline=stored, successor=next_instance)

    async def ensure_personalized(
        self,
        owner_id: str,
        role: UserRole | str | None,
        now: datetime,
    ) -> PersonalizationResult:
        """
        Seed an owner's initial deadlines from the role catalog, at most once.

        A no-op when the owner already has deadlines or was seeded before.
        Safe to call on every session start; a concurrent session that seeds
        first makes this call a no-op.
        """
        owner_id = await self._check_owner(owner_id)

        if await self._store.is_personalized(owner_id):
            return PersonalizationResult(owner_id=owner_id, seeded=False)
        if await self._store.count_by_owner(owner_id) > 0:
            return PersonalizationResult(owner_id=owner_id, seeded=False)

        initial = resolve_initial_deadlines(owner_id, role, now, self._catalog)
        try:
            stored = await self._store.seed_initial(owner_id, initial)
        except SeedConflictError:
            logger.info("personalization_already_seeded", owner_id=owner_id)
            return PersonalizationResult(owner_id=owner_id, seeded=False)

        logger.info(
            "personalization_seeded",
            owner_id=owner_id,
            role=role.value if isinstance(role, UserRole) else role,
            count=len(stored),
        )
        return PersonalizationResult(owner_id=owner_id, seeded=bool(stored), deadlines=stored)

    # Queries
    async def get(self, deadline_id: str) -> Deadline:
        return await self._require(deadline_id)

    async def list_for_owner(
        self,
        owner_id: str,
        include_completed: bool = True,
        limit: int = 500,
        offset: int = 0,
    ) -> list[Deadline]:
        return await self._store.list_by_owner(
            owner_id, include_completed=include_completed, limit=limit, offset=offset
        )

    async def list_upcoming(
        self,
        owner_id: str,
        now: datetime,
        limit: int | None = None,
    ) -> list[Deadline]:
        """Open deadlines not yet due, soonest first."""
        open_deadlines = await self._store.list_by_owner(owner_id, include_completed=False)
        upcoming = [d for d in open_deadlines if self._classifier.is_upcoming(d, now)]
        return upcoming[: self._upcoming_limit if limit is None else limit]

    async def list_due_reminders(self, owner_id: str, now: datetime) -> list[Deadline]:
        """Open deadlines whose reminder should fire at ``now``."""
        open_deadlines = await self._store.list_by_owner(owner_id, include_completed=False)
        return [d for d in open_deadlines if self._classifier.reminder_due(d, now)]

    async def summarize(self, owner_id: str, now: datetime) -> DeadlineSummary:
        deadlines = await self._store.list_by_owner(owner_id)
        summary = DeadlineSummary(total=len(deadlines))
        for deadline in deadlines:
            status = self._classifier.classify(deadline, now)
            if status == UrgencyStatus.COMPLETED:
                summary.completed += 1
            elif status == UrgencyStatus.OVERDUE:
                summary.overdue += 1
            elif status == UrgencyStatus.DUE_SOON:
                summary.due_soon += 1
            else:
                summary.normal += 1
            if self._classifier.is_upcoming(deadline, now):
                summary.upcoming += 1
        return summary

    async def calendar(self, owner_id: str) -> list[CalendarEvent]:
        return to_calendar_events(await self._store.list_by_owner(owner_id))

    def classify(self, deadline: Deadline, now: datetime) -> UrgencyStatus:
        return self._classifier.classify(deadline, now)
