"""Tests for ASGI error handling and lifespan."""

import logging

import pytest

from applogs.adapters.frameworks.asgi import create_asgi_app
from applogs.service.registry import CoordinatorRegistry

pytestmark = [pytest.mark.tier(2), pytest.mark.asgi]


class _BrokenApps:
    """App registry whose reads fail."""

    async def list_ids(self) -> list[str]:
        raise RuntimeError("registry offline")

    async def close(self) -> None:
        self.closed = True


class TestErrorHandling:
    async def test_unexpected_error_is_500_envelope(
        self,
        registry: CoordinatorRegistry,
        asgi_test_client,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        app = create_asgi_app(registry, _BrokenApps())
        with caplog.at_level(logging.ERROR, logger="applogs.adapters.frameworks.asgi"):
            async with asgi_test_client(app) as client:
                response = await client.get("/apps")
        assert response.status_code == 500
        assert response.json() == {
            "ok": False,
            "error": {"code": "INTERNAL_ERROR", "message": "registry offline"},
        }
        assert "Error handling GET /apps" in caplog.text

    async def test_wrong_method_is_not_found(
        self, registry: CoordinatorRegistry, app_registry, asgi_test_client
    ) -> None:
        app = create_asgi_app(registry, app_registry)
        async with asgi_test_client(app) as client:
            response = await client.put("/logs", json={})
        assert response.status_code == 404


class TestLifespan:
    async def test_shutdown_closes_stores(self, memory_factory) -> None:
        registry = CoordinatorRegistry(memory_factory)
        apps = _BrokenApps()
        registry.get("a")
        app = create_asgi_app(registry, apps)

        messages = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict] = []

        async def receive() -> dict:
            return messages.pop(0)

        async def send(message: dict) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert len(registry) == 0
        assert apps.closed is True
