"""
Deadline management endpoints.

Every route acts on behalf of the owner named in the X-Owner-Id header;
deadlines of other owners are reported as not found.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from deadline_tracker.api.dependencies import (
    get_collect_reminders_use_case,
    get_now,
    get_owner_id,
    get_service,
)
from deadline_tracker.application.dto.requests import (
    CreateDeadlineRequest,
    UpdateDeadlineRequest,
)
from deadline_tracker.application.dto.responses import (
    CalendarEventResponse,
    CalendarResponse,
    DeadlineListResponse,
    DeadlineResponse,
    ErrorResponse,
    ReminderScanResponse,
    SummaryResponse,
    ToggleResponse,
)
from deadline_tracker.application.use_cases import CollectDueRemindersUseCase
from deadline_tracker.core.entities.deadline import Deadline
from deadline_tracker.core.services import DeadlineService, DeadlineSummary

router = APIRouter(prefix="/api/deadlines", tags=["deadlines"])


def entity_to_response(
    deadline: Deadline,
    service: DeadlineService,
    now: datetime,
) -> DeadlineResponse:
    """Convert entity to response DTO, classifying urgency at ``now``."""
    return DeadlineResponse(
        id=deadline.id or "",
        owner_id=deadline.owner_id,
        title=deadline.title,
        description=deadline.description,
        due_at=deadline.due_at,
        category=deadline.category,
        effective_category=deadline.effective_category.value,
        is_recurring=deadline.is_recurring,
        recurrence_pattern=(
            deadline.recurrence_pattern.value if deadline.recurrence_pattern else None
        ),
        is_completed=deadline.is_completed,
        reminder_enabled=deadline.reminder_enabled,
        urgency=service.classify(deadline, now).value,
        created_at=deadline.created_at,
        updated_at=deadline.updated_at,
    )


def summary_to_response(summary: DeadlineSummary) -> SummaryResponse:
    return SummaryResponse(
        total=summary.total,
        completed=summary.completed,
        overdue=summary.overdue,
        due_soon=summary.due_soon,
        normal=summary.normal,
        upcoming=summary.upcoming,
    )


async def _get_owned(service: DeadlineService, deadline_id: str, owner_id: str) -> Deadline:
    deadline = await service.get(deadline_id)
    if deadline.owner_id != owner_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deadline not found: {deadline_id}",
        )
    return deadline


@router.post(
    "",
    response_model=DeadlineResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_deadline(
    request: CreateDeadlineRequest,
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> DeadlineResponse:
    """Create a new deadline."""
    created = await service.create(owner_id, request.model_dump())
    return entity_to_response(created, service, now)


@router.get("", response_model=DeadlineListResponse)
async def list_deadlines(
    include_completed: bool = True,
    limit: int = Query(default=500, ge=0),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> DeadlineListResponse:
    """List the owner's deadlines ordered by due date."""
    deadlines = await service.list_for_owner(
        owner_id, include_completed=include_completed, limit=limit, offset=offset
    )
    return DeadlineListResponse(
        items=[entity_to_response(d, service, now) for d in deadlines],
        total=len(deadlines),
    )


@router.get("/upcoming", response_model=DeadlineListResponse)
async def list_upcoming_deadlines(
    limit: int | None = Query(default=None, ge=0),
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> DeadlineListResponse:
    """Open deadlines not yet due, soonest first."""
    deadlines = await service.list_upcoming(owner_id, now, limit=limit)
    return DeadlineListResponse(
        items=[entity_to_response(d, service, now) for d in deadlines],
        total=len(deadlines),
    )


@router.get("/summary", response_model=SummaryResponse)
async def deadline_summary(
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> SummaryResponse:
    """Dashboard counters by urgency."""
    return summary_to_response(await service.summarize(owner_id, now))


@router.get("/calendar", response_model=CalendarResponse)
async def deadline_calendar(
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
) -> CalendarResponse:
    """All of the owner's deadlines as calendar events."""
    events = await service.calendar(owner_id)
    return CalendarResponse(
        events=[
            CalendarEventResponse(id=e.id, title=e.title, start=e.start, end=e.end)
            for e in events
        ]
    )


@router.get("/reminders", response_model=ReminderScanResponse)
async def due_reminders(
    owner_id: str = Depends(get_owner_id),
    use_case: CollectDueRemindersUseCase = Depends(get_collect_reminders_use_case),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> ReminderScanResponse:
    """Deadlines whose reminder is due now."""
    result = await use_case.execute(owner_id, now)
    return ReminderScanResponse(
        owner_id=result.owner_id,
        checked_at=result.checked_at,
        items=[entity_to_response(d, service, now) for d in result.deadlines],
        total=len(result.deadlines),
    )


@router.get(
    "/{deadline_id}",
    response_model=DeadlineResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_deadline(
    deadline_id: str,
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> DeadlineResponse:
    """Get a deadline by ID."""
    deadline = await _get_owned(service, deadline_id, owner_id)
    return entity_to_response(deadline, service, now)


@router.put(
    "/{deadline_id}",
    response_model=DeadlineResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def update_deadline(
    deadline_id: str,
    request: UpdateDeadlineRequest,
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> DeadlineResponse:
    """Update a deadline; fields left out of the body keep their value."""
    await _get_owned(service, deadline_id, owner_id)
    updated = await service.update(deadline_id, request.changes())
    return entity_to_response(updated, service, now)


@router.delete(
    "/{deadline_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_deadline(
    deadline_id: str,
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
) -> Response:
    """Delete a deadline."""
    await _get_owned(service, deadline_id, owner_id)
    await service.delete(deadline_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{deadline_id}/toggle",
    response_model=ToggleResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def toggle_deadline(
    deadline_id: str,
    owner_id: str = Depends(get_owner_id),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> ToggleResponse:
    """Complete or reopen a deadline; completing a recurring one schedules the next."""
    await _get_owned(service, deadline_id, owner_id)
    result = await service.toggle_complete(deadline_id, now)
    return ToggleResponse(
        deadline=entity_to_response(result.deadline, service, now),
        successor=(
            entity_to_response(result.successor, service, now)
            if result.successor is not None
            else None
        ),
    )
