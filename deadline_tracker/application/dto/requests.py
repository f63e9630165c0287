"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Field content (empty titles, unparseable dates, unknown recurrence
patterns) is validated by DeadlineService so that every client gets the
same field-level messages; these models only check shape.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateDeadlineRequest(BaseModel):
    """Request to create a deadline for the calling owner."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(
        ...,
        description="Short name of the obligation",
        examples=["GST Return Filing"],
    )
    description: str | None = Field(default=None, description="Free-form notes")
    due_at: datetime | str = Field(
        ...,
        description="Due date (ISO-8601 date or datetime; naive values are UTC)",
        examples=["2024-07-31", "2024-07-31T17:00:00Z"],
    )
    category: str | None = Field(
        default=None,
        description="tax, legal, contracts or custom",
        examples=["tax"],
    )
    is_recurring: bool = Field(default=False, description="Repeats after completion")
    recurrence_pattern: str | None = Field(
        default=None,
        description="monthly, quarterly or yearly; required when recurring",
        examples=["monthly"],
    )
    reminder_enabled: bool = Field(default=True, description="Send reminders")


class UpdateDeadlineRequest(BaseModel):
    """Partial update of a deadline; only fields that are set are applied."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    due_at: datetime | str | None = None
    category: str | None = None
    is_recurring: bool | None = None
    recurrence_pattern: str | None = None
    reminder_enabled: bool | None = None

    def changes(self) -> dict:
        """Fields explicitly sent by the client."""
        return self.model_dump(exclude_unset=True)


class StartSessionRequest(BaseModel):
    """Session start notification from the authentication layer."""

    owner_id: str | None = Field(
        default=None,
        description="Must match the X-Owner-Id header when sent",
    )
    role: str | None = Field(
        default=None,
        description="Owner's role: startup, small_business, freelancer, ca or lawyer",
        examples=["startup"],
    )
