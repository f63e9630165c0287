"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from deadline_tracker.application.dto.requests import (
    CreateDeadlineRequest,
    StartSessionRequest,
    UpdateDeadlineRequest,
)
from deadline_tracker.application.dto.responses import (
    CalendarEventResponse,
    CalendarResponse,
    DeadlineListResponse,
    DeadlineResponse,
    ErrorResponse,
    HealthResponse,
    ProviderHealthResponse,
    ReminderScanResponse,
    SessionStartResponse,
    SummaryResponse,
    ToggleResponse,
)

__all__ = [
    # Requests
    "CreateDeadlineRequest",
    "UpdateDeadlineRequest",
    "StartSessionRequest",
    # Responses
    "DeadlineResponse",
    "DeadlineListResponse",
    "ToggleResponse",
    "SummaryResponse",
    "CalendarEventResponse",
    "CalendarResponse",
    "SessionStartResponse",
    "ReminderScanResponse",
    "ProviderHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
