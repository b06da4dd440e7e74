"""In-process client for writing and reading app logs.

Mirrors a service binding: callers address apps by id and never see the
envelope unless something goes wrong.
"""

from collections.abc import Mapping
from typing import Any

from applogs.core import logs
from applogs.core.models import DailyStat, LogEntry, LogInput
from applogs.core.result import AppLogsError, ApiError, Err, Result
from applogs.core.validation import count_by_level, parse_log_batch
from applogs.service.registry import CoordinatorRegistry


class ClientError(AppLogsError):
    """Raised when an operation returns an error envelope."""

    def __init__(self, error: ApiError) -> None:
        super().__init__(error.message, error.details)
        self.code = error.code
        self.error = error


def unwrap(result: Result) -> Any:
    """Return the payload of an Ok result or raise ClientError."""
    if isinstance(result, Err):
        raise ClientError(result.error)
    return result.data


class LogsClient:
    """Typed access to per-app coordinators.

    ``log`` and ``log_batch`` write the entries and then record the
    matching stat increments as a second serialized operation.
    """

    def __init__(self, registry: CoordinatorRegistry) -> None:
        self._registry = registry

    async def log(self, app_id: str, entry: Mapping[str, Any] | LogInput) -> LogEntry:
        """Write one entry and count it in today's stats."""
        coordinator = self._registry.get(app_id)
        body = entry.to_payload() if isinstance(entry, LogInput) else entry
        created: LogEntry = unwrap(await coordinator.dispatch("POST", "/log", body))
        unwrap(
            await coordinator.dispatch("POST", "/stats", {"level": created.level.value})
        )
        return created

    async def log_batch(
        self, app_id: str, entries: list[Mapping[str, Any]]
    ) -> list[LogEntry]:
        """Write entries atomically and count them per level."""
        coordinator = self._registry.get(app_id)
        body = {"logs": list(entries)}
        created: list[LogEntry] = unwrap(await coordinator.dispatch("POST", "/logs", body))
        counts = count_by_level(parse_log_batch(body))
        if counts:
            payload = {
                "counts": [{"level": c.level.value, "count": c.count} for c in counts]
            }
            unwrap(await coordinator.dispatch("POST", "/stats", payload))
        return created

    async def query(self, app_id: str, **filters: Any) -> list[LogEntry]:
        """Query entries; keyword filters match the GET /logs parameters."""
        params = {key: value for key, value in filters.items() if value is not None}
        return unwrap(await self._registry.get(app_id).dispatch("GET", "/logs", params=params))

    async def get_stats(self, app_id: str, days: int = 7) -> list[DailyStat]:
        return unwrap(
            await self._registry.get(app_id).dispatch("GET", "/stats", params={"days": days})
        )

    async def prune(self, app_id: str, before: str) -> int:
        result = await self._registry.get(app_id).dispatch(
            "POST", "/prune", {"before": before}
        )
        return unwrap(result)["deleted"]

    async def debug(self, app_id: str, message: str, context: Any = None) -> LogEntry:
        return await self.log(app_id, logs.debug(message, context))

    async def info(self, app_id: str, message: str, context: Any = None) -> LogEntry:
        return await self.log(app_id, logs.info(message, context))

    async def warn(self, app_id: str, message: str, context: Any = None) -> LogEntry:
        return await self.log(app_id, logs.warn(message, context))

    async def error(self, app_id: str, message: str, context: Any = None) -> LogEntry:
        return await self.log(app_id, logs.error(message, context))

