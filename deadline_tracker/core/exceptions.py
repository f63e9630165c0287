"""
Domain exceptions for the deadline tracker.

Every error raised by the core derives from DeadlineTrackerError and carries
a machine-readable code plus a details mapping suitable for field-level
messages in a UI.
"""

from typing import Any


class DeadlineTrackerError(Exception):
    """Base exception for all deadline tracker errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(DeadlineTrackerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )
        self.field = field
        self.reason = message


# Lookup Exceptions
class NotFoundError(DeadlineTrackerError):
    """Requested entity does not exist."""

    pass


class DeadlineNotFoundError(NotFoundError):
    """Deadline not found in storage."""

    def __init__(self, deadline_id: str):
        super().__init__(
            f"Deadline not found: {deadline_id}",
            code="DEADLINE_NOT_FOUND",
            details={"deadline_id": deadline_id},
        )


# Concurrency Exceptions
class ConflictError(DeadlineTrackerError):
    """A concurrent write won; the caller's view of the data is stale."""

    pass


class SeedConflictError(ConflictError):
    """Another session already personalized this owner."""

    def __init__(self, owner_id: str):
        super().__init__(
            f"Owner already personalized: {owner_id}",
            code="SEED_CONFLICT",
            details={"owner_id": owner_id},
        )


class EditConflictError(ConflictError):
    """Deadline changed since it was read."""

    def __init__(self, deadline_id: str):
        super().__init__(
            f"Deadline was modified concurrently: {deadline_id}",
            code="EDIT_CONFLICT",
            details={"deadline_id": deadline_id},
        )


class CompletionConflictError(ConflictError):
    """Deadline was already completed by another request."""

    def __init__(self, deadline_id: str):
        super().__init__(
            f"Deadline is no longer open: {deadline_id}",
            code="COMPLETION_CONFLICT",
            details={"deadline_id": deadline_id},
        )


# Storage Exceptions
class PersistenceError(DeadlineTrackerError):
    """Storage unavailable or failed; nothing was applied."""

    retryable = True

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Storage error during {operation}: {error}",
            code="PERSISTENCE_ERROR",
            details={"operation": operation, "error": error},
        )


# Engine Exceptions
class InvalidOperationError(DeadlineTrackerError):
    """Operation is not valid for the entity's current state."""

    def __init__(self, message: str, deadline_id: str | None = None):
        super().__init__(
            message,
            code="INVALID_OPERATION",
            details={"deadline_id": deadline_id},
        )


class ConfigurationError(DeadlineTrackerError):
    """Configuration error."""

    pass
