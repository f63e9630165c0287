"""
Deadline entity: the unit of schedulable compliance work.

A deadline belongs to exactly one owner for its whole lifetime. Recurring
deadlines carry a recurrence pattern; completing one produces a successor
instance rather than closing the obligation for good.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, field_validator, model_validator


def as_utc(moment: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class DeadlineCategory(str, Enum):
    """Closed set of obligation categories."""

    TAX = "tax"
    LEGAL = "legal"
    CONTRACTS = "contracts"
    CUSTOM = "custom"


class RecurrencePattern(str, Enum):
    """Period between successive instances of a recurring deadline."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class UrgencyStatus(str, Enum):
    """Derived display status of a deadline at a point in time."""

    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    NORMAL = "normal"


class Deadline(BaseModel):
    """
    Compliance obligation with a due date and completion state.

    ``category`` keeps whatever literal was stored; use
    ``effective_category`` when behaviour depends on the category.
    ``id``, ``created_at`` and ``updated_at`` stay None until the store
    persists the deadline.
    """

    id: str | None = None
    owner_id: str
    title: str
    description: str | None = None
    due_at: datetime
    category: str = DeadlineCategory.CUSTOM.value
    is_recurring: bool = False
    recurrence_pattern: RecurrencePattern | None = None
    is_completed: bool = False
    reminder_enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("due_at", "created_at", "updated_at")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None

    @model_validator(mode="after")
    def drop_pattern_when_not_recurring(self) -> "Deadline":
        if not self.is_recurring:
            self.recurrence_pattern = None
        return self

    @property
    def effective_category(self) -> DeadlineCategory:
        """Category used for styling and urgency; unknown values act as custom."""
        try:
            return DeadlineCategory(self.category)
        except ValueError:
            return DeadlineCategory.CUSTOM

    @property
    def is_persisted(self) -> bool:
        return self.id is not None


class CalendarEvent(BaseModel):
    """Calendar view projection of a deadline."""

    id: str | None
    title: str
    start: datetime
    end: datetime
