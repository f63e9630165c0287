"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class DeadlineResponse(BaseModel):
    """Deadline with its urgency at request time."""

    id: str = Field(..., description="Deadline ID")
    owner_id: str = Field(..., description="Owning user")
    title: str
    description: str | None = None
    due_at: datetime
    category: str = Field(..., description="Stored category literal")
    effective_category: str = Field(
        ..., description="Category used for display; unknown values read as custom"
    )
    is_recurring: bool = False
    recurrence_pattern: str | None = None
    is_completed: bool = False
    reminder_enabled: bool = True
    urgency: str = Field(..., description="completed, overdue, due_soon or normal")
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DeadlineListResponse(BaseModel):
    """List of deadlines."""

    items: list[DeadlineResponse] = Field(default_factory=list)
    total: int = 0


class ToggleResponse(BaseModel):
    """Result of toggling completion."""

    deadline: DeadlineResponse
    successor: DeadlineResponse | None = Field(
        default=None, description="Next instance created for a recurring deadline"
    )


class SummaryResponse(BaseModel):
    """Dashboard counters."""

    total: int = 0
    completed: int = 0
    overdue: int = 0
    due_soon: int = 0
    normal: int = 0
    upcoming: int = 0


class CalendarEventResponse(BaseModel):
    """Calendar event projected from a deadline."""

    id: str | None
    title: str
    start: datetime
    end: datetime


class CalendarResponse(BaseModel):
    events: list[CalendarEventResponse] = Field(default_factory=list)


class SessionStartResponse(BaseModel):
    """State returned to the client when a session starts."""

    owner_id: str
    seeded: bool = Field(..., description="Initial deadlines were created by this call")
    seeded_count: int = 0
    deadlines: list[DeadlineResponse] = Field(default_factory=list)
    upcoming: list[DeadlineResponse] = Field(default_factory=list)
    summary: SummaryResponse


class ReminderScanResponse(BaseModel):
    """Deadlines whose reminder is due."""

    owner_id: str
    checked_at: datetime
    items: list[DeadlineResponse] = Field(default_factory=list)
    total: int = 0


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. DEADLINE_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    field: str | None = Field(default=None, description="Offending field, if any")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
