"""Personalization resolver: initial deadline set for a new owner."""

from datetime import datetime, time, timedelta, timezone

from deadline_tracker.core.entities.deadline import Deadline, as_utc
from deadline_tracker.core.entities.role_template import RoleTemplate, UserRole
from deadline_tracker.core.services.template_catalog import (
    TemplateCatalog,
    get_template_catalog,
)


def resolve_due_at(template: RoleTemplate, now: datetime) -> datetime:
    """Fixed statutory date at midnight UTC, else ``now`` plus the offset."""
    if template.specific_date is not None:
        return datetime.combine(template.specific_date, time.min, tzinfo=timezone.utc)
    return as_utc(now) + timedelta(days=template.days_ahead or 0)


def resolve_initial_deadlines(
    owner_id: str,
    role: UserRole | str | None,
    now: datetime,
    catalog: TemplateCatalog | None = None,
) -> list[Deadline]:
    """
    Build the unsaved initial deadlines for an owner from the role catalog.

    Pure: performs no I/O. Callers are responsible for running this at most
    once per owner (see ``DeadlineService.ensure_personalized``).
    """
    catalog = catalog or get_template_catalog()
    return [
        Deadline(
            owner_id=owner_id,
            title=template.title,
            description=template.description,
            due_at=resolve_due_at(template, now),
            category=template.category.value,
            is_recurring=template.is_recurring,
            recurrence_pattern=template.recurrence_pattern,
            is_completed=False,
            reminder_enabled=True,
        )
        for template in catalog.templates_for(role)
    ]
