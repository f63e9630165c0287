"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from deadline_tracker.config import get_settings
from deadline_tracker.core.services import (
    DeadlineService,
    RecurrenceEngine,
    UrgencyClassifier,
    get_template_catalog,
)

if TYPE_CHECKING:
    from deadline_tracker.core.interfaces import IDeadlineStore, IOwnerDirectory


# Singleton service instance
_deadline_service: DeadlineService | None = None


async def get_deadline_service(
    store: "IDeadlineStore | None" = None,
    owner_directory: "IOwnerDirectory | None" = None,
) -> DeadlineService:
    """
    Get or create the DeadlineService instance.

    Creates infrastructure dependencies if not provided. Passing a store
    or owner directory builds a fresh, uncached service around them.

    Args:
        store: Optional deadline store override
        owner_directory: Optional owner directory used to reject unknown owners

    Returns:
        Configured DeadlineService
    """
    global _deadline_service

    overridden = store is not None or owner_directory is not None
    if _deadline_service is not None and not overridden:
        return _deadline_service

    if store is None:
        # Lazy import infrastructure to avoid circular imports
        from deadline_tracker.infrastructure.storage import get_deadline_store

        store = await get_deadline_store()

    policy = get_settings().deadlines
    service = DeadlineService(
        store=store,
        classifier=UrgencyClassifier(due_soon_days=policy.due_soon_days),
        engine=RecurrenceEngine(),
        catalog=get_template_catalog(),
        owner_directory=owner_directory,
        upcoming_limit=policy.upcoming_limit,
    )

    if not overridden:
        _deadline_service = service
    return service


def reset_services() -> None:
    """Reset all service singletons (for testing)."""
    global _deadline_service
    _deadline_service = None
