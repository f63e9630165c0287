"""Core domain entities."""

from deadline_tracker.core.entities.deadline import (
    CalendarEvent,
    Deadline,
    DeadlineCategory,
    RecurrencePattern,
    UrgencyStatus,
    as_utc,
)
from deadline_tracker.core.entities.role_template import RoleTemplate, UserRole

__all__ = [
    # Deadline entities
    "Deadline",
    "DeadlineCategory",
    "RecurrencePattern",
    "UrgencyStatus",
    "CalendarEvent",
    "as_utc",
    # Template entities
    "RoleTemplate",
    "UserRole",
]
