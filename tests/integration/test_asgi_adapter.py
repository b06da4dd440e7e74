"""Tests for the ASGI service adapter."""

import json

import httpx
import pytest

from applogs.adapters.frameworks.asgi import create_asgi_app
from applogs.adapters.storage import InMemoryAppRegistry
from applogs.service.health import HealthProber
from applogs.service.registry import CoordinatorRegistry

pytestmark = [pytest.mark.tier(2), pytest.mark.asgi]

HEADERS = {"X-App-ID": "billing"}


@pytest.fixture
def app(registry: CoordinatorRegistry, app_registry: InMemoryAppRegistry):
    return create_asgi_app(registry, app_registry)


class TestServiceInfo:
    async def test_root_lists_endpoints(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        body = response.json()
        assert body["ok"] is True
        assert body["data"]["service"] == "applogs"
        assert "POST /logs" in body["data"]["endpoints"]

    async def test_unknown_route_is_not_found_envelope(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.get("/nope/nothing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestLogsEndpoint:
    async def test_app_id_header_required(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            post = await client.post("/logs", json={"level": "INFO", "message": "x"})
            get = await client.get("/logs")
        assert post.status_code == 400
        assert get.status_code == 400
        assert post.json()["error"]["message"] == "X-App-ID header required"

    async def test_single_write_then_query(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            written = await client.post(
                "/logs", json={"level": "INFO", "message": "hello"}, headers=HEADERS
            )
            queried = await client.get("/logs", headers=HEADERS)
            stats = await client.get("/stats/billing", params={"days": 1})

        assert written.status_code == 200
        assert written.json()["data"]["message"] == "hello"
        assert [e["message"] for e in queried.json()["data"]] == ["hello"]
        assert stats.json()["data"][0]["info"] == 1

    async def test_batch_write_counts_per_level(self, app, asgi_test_client) -> None:
        batch = {
            "logs": [
                {"level": "ERROR", "message": "a"},
                {"level": "ERROR", "message": "b"},
                {"level": "DEBUG", "message": "c"},
            ]
        }
        async with asgi_test_client(app) as client:
            written = await client.post("/logs", json=batch, headers=HEADERS)
            stats = await client.get("/stats/billing")

        assert len(written.json()["data"]) == 3
        today = stats.json()["data"][0]
        assert (today["error"], today["debug"]) == (2, 1)
        assert len(stats.json()["data"]) == 7

    async def test_invalid_entry_is_422_and_not_counted(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post(
                "/logs", json={"level": "LOUD", "message": "x"}, headers=HEADERS
            )
            stats = await client.get("/stats/billing", params={"days": 1})
        assert response.status_code == 422
        assert response.json()["ok"] is False
        assert stats.json()["data"][0]["info"] == 0

    async def test_invalid_json_is_bad_request(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post(
                "/logs",
                content=b"{not json",
                headers={**HEADERS, "content-type": "application/json"},
            )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    async def test_timestamp_outside_utc_range_is_422(self, app, asgi_test_client) -> None:
        stamp = "0001-01-01T00:00:00+01:00"
        async with asgi_test_client(app) as client:
            written = await client.post(
                "/logs",
                json={"level": "INFO", "message": "x", "timestamp": stamp},
                headers=HEADERS,
            )
            queried = await client.get("/logs", params={"since": stamp}, headers=HEADERS)
        assert written.status_code == 422
        assert queried.status_code == 422
        assert written.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_query_string_is_forwarded(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            for level in ("INFO", "ERROR", "INFO"):
                await client.post(
                    "/logs", json={"level": level, "message": level}, headers=HEADERS
                )
            errors = await client.get("/logs", params={"level": "ERROR"}, headers=HEADERS)
            bad = await client.get("/logs", params={"limit": "5000"}, headers=HEADERS)
        assert [e["level"] for e in errors.json()["data"]] == ["ERROR"]
        assert bad.status_code == 422


class TestAppRoutes:
    async def test_prune_requires_before(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            missing = await client.post("/apps/billing/prune", json={})
            ok = await client.post(
                "/apps/billing/prune", json={"before": "2030-01-01T00:00:00Z"}
            )
        assert missing.status_code == 400
        assert ok.json() == {"ok": True, "data": {"deleted": 0}}

    async def test_health_urls_require_array(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            response = await client.post("/apps/billing/health-urls", json={"urls": "x"})
        assert response.status_code == 400

    async def test_register_and_manage_apps(self, app, asgi_test_client) -> None:
        async with asgi_test_client(app) as client:
            missing = await client.post("/apps", json={"app_id": "billing"})
            created = await client.post(
                "/apps", json={"app_id": "billing", "name": "Billing"}
            )
            listed = await client.get("/apps")
            fetched = await client.get("/apps/billing")
            urls = await client.post(
                "/apps/billing/health-urls", json={"urls": ["http://b/health"]}
            )
            refetched = await client.get("/apps/billing")
            deleted = await client.delete("/apps/billing")
            gone = await client.get("/apps/billing")
            delete_again = await client.delete("/apps/billing")

        assert missing.status_code == 400
        assert created.status_code == 201
        assert len(created.json()["data"]["api_key"]) == 48
        assert listed.json()["data"] == ["billing"]
        assert fetched.json()["data"]["name"] == "Billing"
        assert urls.json()["data"] == {"urls": ["http://b/health"]}
        assert refetched.json()["data"]["health_urls"] == ["http://b/health"]
        assert deleted.json() == {"ok": True, "data": {"deleted": True}}
        assert gone.status_code == 404
        assert delete_again.status_code == 404

    async def test_path_segments_are_not_decoded_twice(
        self, app, app_registry: InMemoryAppRegistry
    ) -> None:
        await app_registry.register("a%25b", "Escaped")
        messages: list[dict] = []

        async def receive() -> dict:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: dict) -> None:
            messages.append(message)

        # Servers hand over scope["path"] already percent-decoded once
        scope = {"type": "http", "method": "GET", "path": "/apps/a%25b", "headers": []}
        await app(scope, receive, send)

        assert messages[0]["status"] == 200
        assert json.loads(messages[1]["body"])["data"]["app_id"] == "a%25b"

    async def test_health_history_and_check(
        self, registry, app_registry, asgi_test_client
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200)

        prober_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app = create_asgi_app(
            registry, app_registry, prober=HealthProber(client=prober_client)
        )
        async with asgi_test_client(app) as client:
            await client.post("/apps", json={
                "app_id": "shop", "name": "Shop", "health_urls": ["http://shop/health"]
            })
            checked = await client.post("/apps/shop/health-check")
            history = await client.get("/health/shop")
        await prober_client.aclose()

        assert checked.status_code == 200
        assert checked.json()["data"][0]["ok"] is True
        assert [h["url"] for h in history.json()["data"]] == ["http://shop/health"]
