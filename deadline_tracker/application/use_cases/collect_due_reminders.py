"""
Collect Due Reminders Use Case.

Scans an owner's open deadlines and returns the ones a notification
layer should remind about now: reminders enabled and the deadline is
either overdue or inside the due-soon horizon.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from deadline_tracker.config import get_logger
from deadline_tracker.core.entities.deadline import Deadline, UrgencyStatus
from deadline_tracker.core.services import DeadlineService

logger = get_logger(__name__)


@dataclass
class ReminderScanResult:
    """Result of a reminder scan."""

    owner_id: str
    checked_at: datetime
    deadlines: list[Deadline] = field(default_factory=list)
    overdue: int = 0
    due_soon: int = 0


class CollectDueRemindersUseCase:
    """Use case for collecting deadlines whose reminder is due."""

    def __init__(self, service: DeadlineService | None = None):
        self._service = service

    async def _get_service(self) -> DeadlineService:
        if self._service is None:
            from deadline_tracker.application.services import get_deadline_service

            self._service = await get_deadline_service()
        return self._service

    async def execute(self, owner_id: str, now: datetime | None = None) -> ReminderScanResult:
        now = now or datetime.now(timezone.utc)
        service = await self._get_service()

        due = await service.list_due_reminders(owner_id, now)
        result = ReminderScanResult(owner_id=owner_id, checked_at=now, deadlines=due)
        for deadline in due:
            if service.classify(deadline, now) == UrgencyStatus.OVERDUE:
                result.overdue += 1
            else:
                result.due_soon += 1

        logger.info(
            "reminder_scan_complete",
            owner_id=owner_id,
            due=len(due),
            overdue=result.overdue,
            due_soon=result.due_soon,
        )
        return result
