"""Write-then-count ingestion shared by the HTTP adapters."""

from typing import Any

from applogs.core.models import LogEntry
from applogs.core.result import Ok, Result
from applogs.core.validation import count_by_level
from applogs.service.coordinator import AppStoreCoordinator


async def ingest(coordinator: AppStoreCoordinator, body: Any) -> Result:
    """Append one entry or a ``{"logs": [...]}`` batch, then count it.

    The stats increment is a second serialized operation and only runs
    when the write succeeded. The write's envelope is returned.
    """
    if isinstance(body, dict) and "logs" in body:
        result = await coordinator.dispatch("POST", "/logs", body)
        if isinstance(result, Ok) and result.data:
            counts = count_by_level(result.data)
            await coordinator.dispatch(
                "POST",
                "/stats",
                {"counts": [{"level": c.level.value, "count": c.count} for c in counts]},
            )
        return result

    result = await coordinator.dispatch("POST", "/log", body)
    if isinstance(result, Ok) and isinstance(result.data, LogEntry):
        await coordinator.dispatch("POST", "/stats", {"level": result.data.level.value})
    return result
