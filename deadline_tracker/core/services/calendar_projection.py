"""Calendar projection of deadlines."""

from collections.abc import Iterable

from deadline_tracker.core.entities.deadline import CalendarEvent, Deadline


def to_calendar_event(deadline: Deadline) -> CalendarEvent:
    """Map a deadline to a zero-length calendar event on its due date."""
    return CalendarEvent(
        id=deadline.id,
        title=deadline.title,
        start=deadline.due_at,
        end=deadline.due_at,
    )


def to_calendar_events(deadlines: Iterable[Deadline]) -> list[CalendarEvent]:
    return [to_calendar_event(d) for d in deadlines]
