"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection
"""

from deadline_tracker.application.services import get_deadline_service, reset_services
from deadline_tracker.application.use_cases import (
    CollectDueRemindersUseCase,
    ReminderScanResult,
    StartSessionResult,
    StartSessionUseCase,
)

__all__ = [
    # Services
    "get_deadline_service",
    "reset_services",
    # Use cases
    "StartSessionUseCase",
    "StartSessionResult",
    "CollectDueRemindersUseCase",
    "ReminderScanResult",
]
