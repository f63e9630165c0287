"""Unit tests for the calendar projection."""

from datetime import datetime, timezone

from deadline_tracker.core.entities.deadline import Deadline
from deadline_tracker.core.services.calendar_projection import (
    to_calendar_event,
    to_calendar_events,
)


def _deadline(deadline_id: str, day: int) -> Deadline:
    return Deadline(
        id=deadline_id,
        owner_id="u1",
        title=f"Filing {day}",
        due_at=datetime(2024, 6, day, tzinfo=timezone.utc),
    )


class TestCalendarProjection:
    """Tests for to_calendar_event(s)."""

    def test_event_starts_and_ends_on_due_date(self):
        deadline = _deadline("d1", 20)
        event = to_calendar_event(deadline)
        assert event.id == "d1"
        assert event.title == "Filing 20"
        assert event.start == deadline.due_at
        assert event.end == deadline.due_at

    def test_preserves_order(self):
        events = to_calendar_events([_deadline("a", 3), _deadline("b", 1)])
        assert [e.id for e in events] == ["a", "b"]

    def test_empty(self):
        assert to_calendar_events([]) == []
