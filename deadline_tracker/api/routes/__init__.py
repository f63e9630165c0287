"""API route modules."""

from deadline_tracker.api.routes.deadlines import router as deadlines_router
from deadline_tracker.api.routes.health import router as health_router
from deadline_tracker.api.routes.sessions import router as sessions_router

__all__ = [
    "health_router",
    "deadlines_router",
    "sessions_router",
]
