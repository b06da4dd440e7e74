"""Example FastAPI application with per-app log endpoints.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    POST /logs             - write an entry or {"logs": [...]} (X-App-ID header)
    GET  /logs             - query entries (X-App-ID header; level, since, until,
                             request_id, limit, offset)
    GET  /stats/<app_id>   - daily stats, newest first (?days=N, default 7)
    GET  /health/<app_id>  - health check history
    GET  /orders           - demo endpoint that logs through LogsClient
"""

from fastapi import FastAPI

from applogs import CoordinatorRegistry, LogsClient
from applogs.adapters.frameworks.fastapi import create_applogs_router
from applogs.adapters.storage import InMemoryStoreFactory

# One registry holds a coordinator per app id
registry = CoordinatorRegistry(InMemoryStoreFactory())
client = LogsClient(registry)

app = FastAPI(title="applogs example")
app.include_router(create_applogs_router(registry))


@app.get("/orders")
async def list_orders() -> dict[str, list[dict[str, str]]]:
    """Return demo orders and record the request under the "shop" app."""
    orders = [{"id": "A-1", "status": "paid"}, {"id": "A-2", "status": "open"}]
    await client.info("shop", "Listed orders", {"count": len(orders)})
    return {"orders": orders}
