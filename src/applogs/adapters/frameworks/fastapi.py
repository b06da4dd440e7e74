"""FastAPI adapter for the log service endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Header, Request
from fastapi.responses import JSONResponse

from applogs.core.result import Result
from applogs.service.ingest import ingest
from applogs.service.registry import CoordinatorRegistry


def _respond(result: Result) -> JSONResponse:
    return JSONResponse(content=result.to_dict(), status_code=result.http_status)


def create_applogs_router(registry: CoordinatorRegistry) -> APIRouter:
    """Create a FastAPI router with the per-app log, stats and health endpoints.

    Args:
        registry: Coordinator registry; one coordinator per app id.

    Returns:
        APIRouter with /logs, /stats/{app_id} and /health/{app_id} configured.
    """
    router = APIRouter()

    @router.post("/logs")
    async def write_logs(
        body: Any = Body(...),
        x_app_id: str = Header(..., alias="X-App-ID"),
    ) -> JSONResponse:
        """Write one entry, or a batch under "logs", and count it in stats."""
        return _respond(await ingest(registry.get(x_app_id), body))

    @router.get("/logs")
    async def query_logs(
        request: Request,
        x_app_id: str = Header(..., alias="X-App-ID"),
    ) -> JSONResponse:
        """Query entries; filters are passed through from the query string."""
        params = dict(request.query_params)
        return _respond(
            await registry.get(x_app_id).dispatch("GET", "/logs", params=params)
        )

    @router.get("/stats/{app_id}")
    async def get_stats(app_id: str, request: Request) -> JSONResponse:
        """Return daily stats, newest first (default 7 days)."""
        params = dict(request.query_params)
        return _respond(await registry.get(app_id).dispatch("GET", "/stats", params=params))

    @router.get("/health/{app_id}")
    async def get_health(app_id: str, request: Request) -> JSONResponse:
        """Return health check history, newest first."""
        params = dict(request.query_params)
        return _respond(
            await registry.get(app_id).dispatch("GET", "/health", params=params)
        )

    return router
