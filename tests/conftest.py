"""Shared test fixtures for all test modules."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import httpx
import pytest

from applogs.adapters.storage import InMemoryAppRegistry, InMemoryStoreFactory
from applogs.config import Settings
from applogs.service.client import LogsClient
from applogs.service.registry import CoordinatorRegistry


class FakeClock:
    """Settable time source for stores and stats."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2024-01-15T12:00:00Z."""
    return FakeClock(datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite storage tests."""
    return str(tmp_path / "app.db")


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def memory_factory(clock: FakeClock) -> InMemoryStoreFactory:
    return InMemoryStoreFactory(clock=clock)


@pytest.fixture
async def registry(
    memory_factory: InMemoryStoreFactory, settings: Settings
) -> AsyncIterator[CoordinatorRegistry]:
    """In-memory coordinator registry, closed after the test."""
    async with CoordinatorRegistry(memory_factory, settings) as registry:
        yield registry


@pytest.fixture
def app_registry(clock: FakeClock) -> InMemoryAppRegistry:
    return InMemoryAppRegistry(clock=clock)


@pytest.fixture
def logs_client(registry: CoordinatorRegistry) -> LogsClient:
    return LogsClient(registry)


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(registry, apps)
            async with asgi_test_client(app) as client:
                response = await client.get("/")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
