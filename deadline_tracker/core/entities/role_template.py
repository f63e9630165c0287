"""Role templates: static descriptions of obligations attached to a user role."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from deadline_tracker.core.entities.deadline import DeadlineCategory, RecurrencePattern


class UserRole(str, Enum):
    """Regulatory profile of an owner."""

    STARTUP = "startup"
    SMALL_BUSINESS = "small_business"
    FREELANCER = "freelancer"
    CA = "ca"
    LAWYER = "lawyer"


class RoleTemplate(BaseModel):
    """
    Obligation class expected for a role.

    Exactly one of ``days_ahead`` (relative to resolution time) or
    ``specific_date`` (fixed statutory date) is set.
    """

    model_config = {"frozen": True}

    title: str = Field(..., min_length=1)
    description: str | None = None
    category: DeadlineCategory = DeadlineCategory.CUSTOM
    is_recurring: bool = False
    recurrence_pattern: RecurrencePattern | None = None
    days_ahead: int | None = Field(default=None, ge=0)
    specific_date: date | None = None

    @model_validator(mode="after")
    def check_schedule(self) -> "RoleTemplate":
        if (self.days_ahead is None) == (self.specific_date is None):
            raise ValueError(
                f"Template '{self.title}' needs exactly one of days_ahead or specific_date"
            )
        if self.is_recurring and self.recurrence_pattern is None:
            raise ValueError(
                f"Recurring template '{self.title}' needs a recurrence_pattern"
            )
        return self
