"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from deadline_tracker.application.dto.responses import HealthResponse, ProviderHealthResponse
from deadline_tracker.config import get_settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Storage health check.

    Tests SQLite connectivity and response time; the in-memory backend is
    always available.
    """
    settings = get_settings()
    backend = settings.storage.backend

    if backend == "memory":
        db_status = ProviderHealthResponse(name="memory", available=True, latency_ms=0.0)
    else:
        from deadline_tracker.infrastructure.storage.sqlite import get_pool

        try:
            pool = await get_pool()
            start = time.time()
            async with pool.acquire() as conn:
                await conn.execute("SELECT 1")
            db_status = ProviderHealthResponse(
                name="sqlite",
                available=True,
                latency_ms=(time.time() - start) * 1000,
            )
        except Exception as e:
            db_status = ProviderHealthResponse(name="sqlite", available=False, error=str(e))

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
