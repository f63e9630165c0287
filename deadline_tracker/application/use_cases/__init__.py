"""Application use cases."""

from deadline_tracker.application.use_cases.collect_due_reminders import (
    CollectDueRemindersUseCase,
    ReminderScanResult,
)
from deadline_tracker.application.use_cases.start_session import (
    StartSessionResult,
    StartSessionUseCase,
)

__all__ = [
    "StartSessionUseCase",
    "StartSessionResult",
    "CollectDueRemindersUseCase",
    "ReminderScanResult",
]
