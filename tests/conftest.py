from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import get_settings
from app.main import app
from app.observability.metrics import reset_metrics
from app.services.simulation import reset_leak_store


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    # Never try to reach a real Loki from tests.
    monkeypatch.setenv("LOKI_ENABLED", "false")
    get_settings.cache_clear()
    reset_metrics()
    reset_leak_store()

    yield

    get_settings.cache_clear()


@pytest.fixture
async def api_client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def lenient_client() -> AsyncIterator[AsyncClient]:
    """Client that returns the 500 response instead of re-raising app exceptions."""

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
