"""
Dependency injection container for FastAPI.

Provides service instances to route handlers.
"""

from datetime import datetime, timezone

from fastapi import Depends, Header

from deadline_tracker.application.services import get_deadline_service
from deadline_tracker.application.use_cases import (
    CollectDueRemindersUseCase,
    StartSessionUseCase,
)
from deadline_tracker.core.services import DeadlineService


def get_now() -> datetime:
    """Reference time for urgency and recurrence; overridden in tests."""
    return datetime.now(timezone.utc)


async def get_owner_id(
    x_owner_id: str = Header(..., description="Authenticated owner identifier"),
) -> str:
    """Owner of the request, supplied by the authentication layer."""
    return x_owner_id


# Service dependencies
async def get_service() -> DeadlineService:
    """Get deadline service."""
    return await get_deadline_service()


# Use case dependencies
def get_start_session_use_case(
    service: DeadlineService = Depends(get_service),
) -> StartSessionUseCase:
    """Get start session use case."""
    return StartSessionUseCase(service=service)


def get_collect_reminders_use_case(
    service: DeadlineService = Depends(get_service),
) -> CollectDueRemindersUseCase:
    """Get collect due reminders use case."""
    return CollectDueRemindersUseCase(service=service)
