"""
Core business logic services.

Layer-pure services that depend only on:
- deadline_tracker/core/entities/*
- deadline_tracker/core/interfaces/*
- deadline_tracker/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from deadline_tracker.core.services.calendar_projection import (
    to_calendar_event,
    to_calendar_events,
)
from deadline_tracker.core.services.deadline_service import (
    DeadlineService,
    DeadlineSummary,
    PersonalizationResult,
    ToggleResult,
    parse_due_at,
)
from deadline_tracker.core.services.personalization import resolve_initial_deadlines
from deadline_tracker.core.services.recurrence import (
    RecurrenceEngine,
    add_months,
    add_period,
)
from deadline_tracker.core.services.template_catalog import (
    TemplateCatalog,
    get_template_catalog,
    reset_template_catalog,
)
from deadline_tracker.core.services.urgency import (
    DUE_SOON_DAYS,
    UrgencyClassifier,
    classify,
)

__all__ = [
    # Mutation service
    "DeadlineService",
    "DeadlineSummary",
    "PersonalizationResult",
    "ToggleResult",
    "parse_due_at",
    # Template catalog
    "TemplateCatalog",
    "get_template_catalog",
    "reset_template_catalog",
    # Personalization
    "resolve_initial_deadlines",
    # Recurrence
    "RecurrenceEngine",
    "add_months",
    "add_period",
    # Urgency
    "UrgencyClassifier",
    "DUE_SOON_DAYS",
    "classify",
    # Calendar
    "to_calendar_event",
    "to_calendar_events",
]
