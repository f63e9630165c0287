"""Fixtures for API tests."""

from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from deadline_tracker.api.dependencies import get_now, get_service
from deadline_tracker.api.main import app
from deadline_tracker.core.services import DeadlineService


@pytest.fixture
async def client(service: DeadlineService, now: datetime):
    """Async client wired to an in-memory service at a fixed time."""
    app.dependency_overrides[get_service] = lambda: service
    app.dependency_overrides[get_now] = lambda: now
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Owner-Id": "u1"},
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_service, None)
    app.dependency_overrides.pop(get_now, None)
