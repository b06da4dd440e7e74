"""ASGI adapter exposing the multi-app log service over HTTP.

A framework-free ASGI application that can be served by any ASGI server
(uvicorn, hypercorn, daphne). Every response is a JSON result envelope.
"""

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from applogs import __version__
from applogs.config import Settings
from applogs.core.ports import AppRegistryPort
from applogs.core.result import (
    AppLogsError,
    BadRequestError,
    ErrorCode,
    Ok,
    Result,
    ValidationError,
    err,
    wrap_error,
)
from applogs.core.validation import parse_urls
from applogs.service.health import HealthProber
from applogs.service.ingest import ingest
from applogs.service.registry import CoordinatorRegistry

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

# Result envelope plus an optional status override
EndpointResult = tuple[Result, int | None]
Endpoint = Callable[[Scope, Receive], Coroutine[Any, Any, EndpointResult]]

APP_ID_HEADER = "X-App-ID"

ENDPOINTS = {
    "POST /logs": "Write log entries (requires X-App-ID header)",
    "GET /logs": "Query log entries (requires X-App-ID header)",
    "GET /health/:app_id": "Get health check history",
    "GET /stats/:app_id": "Get daily stats (last 7 days)",
    "POST /apps/:app_id/prune": "Delete old logs",
    "POST /apps/:app_id/health-urls": "Set health check URLs",
    "POST /apps/:app_id/health-check": "Run health checks now",
    "GET /apps": "List registered apps",
    "POST /apps": "Register a new app",
    "GET /apps/:app_id": "Get app details",
    "DELETE /apps/:app_id": "Delete an app",
}


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary.

    Args:
        scope: ASGI scope dictionary containing request metadata.

    Returns:
        Dictionary mapping parameter names to lists of values.
        Returns empty dict if query_string is missing or empty.
    """
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


def _get_header(scope: Scope, header_name: str) -> str | None:
    """Return a request header value (case-insensitive), or None."""
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in headers:
        if name.lower() == header_bytes:
            return value.decode("utf-8", errors="replace")
    return None


async def _read_json(receive: Receive) -> Any:
    """Read the full request body and decode it as JSON.

    An empty body decodes to None.

    Raises:
        BadRequestError: If the body is not valid JSON.
    """
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    raw = b"".join(chunks)
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BadRequestError("Invalid JSON body") from exc


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _send_result(send: Send, result: Result, status: int | None = None) -> None:
    """Send a result envelope; status defaults to the envelope's own."""
    await _send_response(
        send,
        status or result.http_status,
        "application/json",
        json.dumps(result.to_dict()),
    )


async def _handle_endpoint(
    send: Send,
    endpoint_func: Callable[[], Coroutine[Any, Any, EndpointResult]],
    log_message: str,
) -> None:
    """Execute an endpoint function with error handling and send response.

    Args:
        send: ASGI send callable for writing response.
        endpoint_func: Async function returning a result and an optional
            status override.
        log_message: Message to log on unexpected errors.
    """
    try:
        result, status = await endpoint_func()
    except AppLogsError as exc:
        result, status = wrap_error(exc), None
    except Exception as exc:
        logger.exception(log_message)
        result, status = wrap_error(exc), None
    await _send_result(send, result, status)


def _split_path(path: str) -> list[str]:
    return [part for part in path.strip("/").split("/") if part]


def _require_mapping(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise BadRequestError("JSON object body required")
    return body


def create_asgi_app(
    registry: CoordinatorRegistry,
    apps: AppRegistryPort,
    settings: Settings | None = None,
    prober: HealthProber | None = None,
) -> ASGIApp:
    """Create an ASGI app serving the log service routes.

    Args:
        registry: Coordinator registry; one coordinator per app id.
        apps: Registry of app records (ids, names, API keys).
        settings: Runtime settings. Defaults to ``Settings()``.
        prober: Health prober for POST /apps/{app_id}/health-check.

    Returns:
        ASGI application callable. Lifespan shutdown closes the stores.
    """
    settings = settings or Settings()
    prober = prober or HealthProber(timeout=settings.health_timeout)

    async def service_info(scope: Scope, receive: Receive) -> EndpointResult:
        info = {
            "service": "applogs",
            "version": __version__,
            "description": "Centralized per-app log storage",
            "endpoints": ENDPOINTS,
        }
        return Ok(info), None

    def require_app_id(scope: Scope) -> str:
        app_id = _get_header(scope, APP_ID_HEADER)
        if not app_id:
            raise BadRequestError(f"{APP_ID_HEADER} header required")
        return app_id

    async def write_logs(scope: Scope, receive: Receive) -> EndpointResult:
        app_id = require_app_id(scope)
        body = await _read_json(receive)
        return await ingest(registry.get(app_id), body), None

    async def query_logs(scope: Scope, receive: Receive) -> EndpointResult:
        app_id = require_app_id(scope)
        params = _parse_query_params(scope)
        return await registry.get(app_id).dispatch("GET", "/logs", params=params), None

    async def get_stats(
        scope: Scope, receive: Receive, app_id: str
    ) -> EndpointResult:
        params = _parse_query_params(scope)
        return await registry.get(app_id).dispatch("GET", "/stats", params=params), None

    async def get_health(
        scope: Scope, receive: Receive, app_id: str
    ) -> EndpointResult:
        params = _parse_query_params(scope)
        return await registry.get(app_id).dispatch("GET", "/health", params=params), None

    async def prune(scope: Scope, receive: Receive, app_id: str) -> EndpointResult:
        body = _require_mapping(await _read_json(receive))
        if not body.get("before"):
            raise BadRequestError('"before" timestamp required')
        return await registry.get(app_id).dispatch("POST", "/prune", body), None

    async def set_health_urls(
        scope: Scope, receive: Receive, app_id: str
    ) -> EndpointResult:
        body = _require_mapping(await _read_json(receive))
        if not isinstance(body.get("urls"), list):
            raise BadRequestError('"urls" array required')
        result = await registry.get(app_id).dispatch("POST", "/health-urls", body)
        if result.ok:
            await apps.set_health_urls(app_id, parse_urls(body))
        return result, None

    async def run_health_check(
        scope: Scope, receive: Receive, app_id: str
    ) -> EndpointResult:
        return Ok(await prober.run_checks(registry.get(app_id))), None

    async def list_apps(scope: Scope, receive: Receive) -> EndpointResult:
        return Ok(await apps.list_ids()), None

    async def register_app(scope: Scope, receive: Receive) -> EndpointResult:
        body = _require_mapping(await _read_json(receive))
        app_id = body.get("app_id")
        name = body.get("name")
        if not app_id or not name:
            raise BadRequestError('"app_id" and "name" required')
        if not isinstance(app_id, str) or not isinstance(name, str):
            raise ValidationError('"app_id" and "name" must be strings')
        health_urls = body.get("health_urls")
        urls = parse_urls({"urls": health_urls}) if health_urls is not None else None
        record = await apps.register(app_id, name, urls)
        if urls is not None:
            await registry.get(app_id).dispatch("POST", "/health-urls", {"urls": urls})
        logger.info("Registered app %r", app_id)
        return Ok(record), 201

    async def get_app(scope: Scope, receive: Receive, app_id: str) -> EndpointResult:
        record = await apps.get(app_id)
        if record is None:
            return err(ErrorCode.NOT_FOUND, f"App '{app_id}' not found"), None
        return Ok(record), None

    async def delete_app(
        scope: Scope, receive: Receive, app_id: str
    ) -> EndpointResult:
        if not await apps.delete(app_id):
            return err(ErrorCode.NOT_FOUND, f"App '{app_id}' not found"), None
        logger.info("Deleted app %r", app_id)
        return Ok({"deleted": True}), None

    async def not_found(scope: Scope, receive: Receive) -> EndpointResult:
        return err(ErrorCode.NOT_FOUND, f"Not found: {scope['method']} {scope['path']}"), None

    def resolve(
        method: str, parts: list[str]
    ) -> Endpoint:
        """Pick the endpoint for a method and path segments."""
        if not parts:
            return service_info if method == "GET" else not_found
        head, rest = parts[0], parts[1:]

        def bind(
            func: Callable[..., Coroutine[Any, Any, EndpointResult]], app_id: str
        ) -> Endpoint:
            return lambda scope, receive: func(scope, receive, app_id)

        if head == "logs" and not rest:
            return {"POST": write_logs, "GET": query_logs}.get(method, not_found)
        if head == "stats" and len(rest) == 1 and method == "GET":
            return bind(get_stats, rest[0])
        if head == "health" and len(rest) == 1 and method == "GET":
            return bind(get_health, rest[0])
        if head == "apps":
            if not rest:
                return {"GET": list_apps, "POST": register_app}.get(method, not_found)
            if len(rest) == 1:
                handler = {"GET": get_app, "DELETE": delete_app}.get(method)
                return bind(handler, rest[0]) if handler else not_found
            if len(rest) == 2 and method == "POST":
                action = {
                    "prune": prune,
                    "health-urls": set_health_urls,
                    "health-check": run_health_check,
                }.get(rest[1])
                return bind(action, rest[0]) if action else not_found
        return not_found

    async def lifespan(receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await registry.close()
                await apps.close()
                logger.info("Closed all app stores")
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        method = scope["method"].upper()
        endpoint = resolve(method, _split_path(scope["path"]))
        await _handle_endpoint(
            send,
            lambda: endpoint(scope, receive),
            f"Error handling {method} {scope['path']}",
        )

    return app
