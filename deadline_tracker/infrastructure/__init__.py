"""Infrastructure layer implementations."""

from deadline_tracker.infrastructure import storage

__all__ = ["storage"]
