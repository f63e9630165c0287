"""
Start Session Use Case.

Entry point for the authentication layer when an owner begins a session:
personalizes the owner on first contact and returns the state the
dashboard renders.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from deadline_tracker.config import get_logger
from deadline_tracker.core.entities.deadline import Deadline
from deadline_tracker.core.entities.role_template import UserRole
from deadline_tracker.core.services import DeadlineService, DeadlineSummary

logger = get_logger(__name__)


@dataclass
class StartSessionResult:
    """Result of starting a session."""

    owner_id: str
    seeded: bool = False
    seeded_deadlines: list[Deadline] = field(default_factory=list)
    deadlines: list[Deadline] = field(default_factory=list)
    upcoming: list[Deadline] = field(default_factory=list)
    summary: DeadlineSummary = field(default_factory=DeadlineSummary)


class StartSessionUseCase:
    """
    Use case for session start.

    Flow:
    1. Seed the owner's role templates unless already personalized
    2. Load all deadlines, the upcoming list and the summary counters
    """

    def __init__(self, service: DeadlineService | None = None):
        self._service = service

    async def _get_service(self) -> DeadlineService:
        if self._service is None:
            from deadline_tracker.application.services import get_deadline_service

            self._service = await get_deadline_service()
        return self._service

    async def execute(
        self,
        owner_id: str,
        role: UserRole | str | None = None,
        now: datetime | None = None,
    ) -> StartSessionResult:
        """
        Start a session for an owner.

        Args:
            owner_id: Authenticated owner identifier.
            role: Owner's role; unknown or missing roles get the baseline set.
            now: Reference time (defaults to the current UTC time).

        Returns:
            StartSessionResult with the seeding outcome and dashboard data.
        """
        now = now or datetime.now(timezone.utc)
        service = await self._get_service()

        personalization = await service.ensure_personalized(owner_id, role, now)
        deadlines = await service.list_for_owner(owner_id)
        upcoming = await service.list_upcoming(owner_id, now)
        summary = await service.summarize(owner_id, now)

        logger.info(
            "session_started",
            owner_id=owner_id,
            seeded=personalization.seeded,
            deadlines=len(deadlines),
            overdue=summary.overdue,
        )

        return StartSessionResult(
            owner_id=owner_id,
            seeded=personalization.seeded,
            seeded_deadlines=personalization.deadlines,
            deadlines=deadlines,
            upcoming=upcoming,
            summary=summary,
        )
