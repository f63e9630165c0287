"""
Session start endpoint.

Called by the authentication layer when an owner signs in.
"""

from datetime import datetime

from fastapi import APIRouter, Depends

from deadline_tracker.api.dependencies import (
    get_now,
    get_owner_id,
    get_service,
    get_start_session_use_case,
)
from deadline_tracker.api.routes.deadlines import entity_to_response, summary_to_response
from deadline_tracker.application.dto.requests import StartSessionRequest
from deadline_tracker.application.dto.responses import ErrorResponse, SessionStartResponse
from deadline_tracker.application.use_cases import StartSessionUseCase
from deadline_tracker.core.exceptions import ValidationError
from deadline_tracker.core.services import DeadlineService

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post(
    "/start",
    response_model=SessionStartResponse,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def start_session(
    request: StartSessionRequest,
    owner_id: str = Depends(get_owner_id),
    use_case: StartSessionUseCase = Depends(get_start_session_use_case),
    service: DeadlineService = Depends(get_service),
    now: datetime = Depends(get_now),
) -> SessionStartResponse:
    """Personalize the owner on first contact and return the dashboard state."""
    if request.owner_id is not None and request.owner_id != owner_id:
        raise ValidationError("owner_id", "Owner id does not match the caller", request.owner_id)
    result = await use_case.execute(owner_id, request.role, now)
    return SessionStartResponse(
        owner_id=result.owner_id,
        seeded=result.seeded,
        seeded_count=len(result.seeded_deadlines),
        deadlines=[entity_to_response(d, service, now) for d in result.deadlines],
        upcoming=[entity_to_response(d, service, now) for d in result.upcoming],
        summary=summary_to_response(result.summary),
    )
