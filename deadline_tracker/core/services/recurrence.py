"""
Recurrence engine.

Expands a recurring deadline into its next instance by adding exactly one
calendar period to its current due date. When the original day does not
exist in the target month, the result is clamped to that month's last day.
"""

import calendar
from datetime import datetime

from deadline_tracker.config import get_logger
from deadline_tracker.core.entities.deadline import Deadline, RecurrencePattern
from deadline_tracker.core.exceptions import InvalidOperationError

logger = get_logger(__name__)

PERIOD_MONTHS: dict[RecurrencePattern, int] = {
    RecurrencePattern.MONTHLY: 1,
    RecurrencePattern.QUARTERLY: 3,
    RecurrencePattern.YEARLY: 12,
}


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month."""
    index = moment.month - 1 + months
    year = moment.year + index // 12
    month = index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def add_period(moment: datetime, pattern: RecurrencePattern | str) -> datetime:
    """Advance ``moment`` by one period of ``pattern``."""
    return add_months(moment, PERIOD_MONTHS[RecurrencePattern(pattern)])


class RecurrenceEngine:
    """Produces successor instances for recurring deadlines."""

    def next_due_at(self, deadline: Deadline) -> datetime:
        """Due date of the instance following ``deadline``."""
        if not deadline.is_recurring:
            raise InvalidOperationError(
                "Cannot advance a non-recurring deadline",
                deadline_id=deadline.id,
            )
        if deadline.recurrence_pattern is None:
            raise InvalidOperationError(
                "Recurring deadline has no recurrence pattern",
                deadline_id=deadline.id,
            )
        return add_period(deadline.due_at, deadline.recurrence_pattern)

    def advance(self, deadline: Deadline, now: datetime) -> Deadline:
        """
        Build the next instance of a recurring deadline.

        The successor is a new, unsaved entity one period after the current
        due date; ``now`` never shifts it. The input is left untouched.

        Raises:
            InvalidOperationError: if the deadline is not recurring.
        """
        due_at = self.next_due_at(deadline)
        successor = deadline.model_copy(
            update={
                "id": None,
                "due_at": due_at,
                "is_completed": False,
                "created_at": None,
                "updated_at": None,
            }
        )
        logger.debug(
            "recurrence_advanced",
            deadline_id=deadline.id,
            pattern=deadline.recurrence_pattern.value,
            previous_due_at=deadline.due_at.isoformat(),
            next_due_at=due_at.isoformat(),
            now=now.isoformat(),
        )
        return successor
