"""
Urgency classifier.

Pure read-side projection of a deadline at a point in time. Rules are
evaluated in order and the first match wins:

1. completed            -> COMPLETED
2. due before now       -> OVERDUE
3. due within horizon   -> DUE_SOON
4. otherwise            -> NORMAL
"""

from datetime import datetime, timedelta

from deadline_tracker.core.entities.deadline import Deadline, UrgencyStatus, as_utc

# Deadlines due within this many days are flagged "due soon" and get
# reminder emphasis. Overridable through DEADLINE_DUE_SOON_DAYS.
DUE_SOON_DAYS = 7


class UrgencyClassifier:
    """Derives urgency badges from deadline state and the current time."""

    def __init__(self, due_soon_days: int = DUE_SOON_DAYS):
        self.horizon = timedelta(days=due_soon_days)

    def classify(self, deadline: Deadline, now: datetime) -> UrgencyStatus:
        if deadline.is_completed:
            return UrgencyStatus.COMPLETED
        now = as_utc(now)
        if deadline.due_at < now:
            return UrgencyStatus.OVERDUE
        if deadline.due_at < now + self.horizon:
            return UrgencyStatus.DUE_SOON
        return UrgencyStatus.NORMAL

    def reminder_due(self, deadline: Deadline, now: datetime) -> bool:
        """Whether a notification should go out for this deadline now."""
        if not deadline.reminder_enabled:
            return False
        return self.classify(deadline, now) in (
            UrgencyStatus.OVERDUE,
            UrgencyStatus.DUE_SOON,
        )

    @staticmethod
    def is_upcoming(deadline: Deadline, now: datetime) -> bool:
        """Open and not yet due."""
        return not deadline.is_completed and deadline.due_at >= as_utc(now)


_default_classifier = UrgencyClassifier()


def classify(deadline: Deadline, now: datetime) -> UrgencyStatus:
    """Classify with the default horizon."""
    return _default_classifier.classify(deadline, now)
