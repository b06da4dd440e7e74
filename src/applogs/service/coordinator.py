"""Per-app coordinator: one serialized entry point over an app's stores.

Every operation against an app runs while holding that app's lock, from
validation through the last storage await. asyncio.Lock admits waiters in
FIFO order, so operations take effect in the order they were admitted.
Different apps hold different locks and never wait on each other.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any
from urllib.parse import parse_qs, urlsplit

from applogs.config import Settings
from applogs.core.models import LevelCount
from applogs.core.ports import AppStores
from applogs.core.result import (
    AppLogsError,
    ErrorCode,
    Ok,
    Result,
    err,
    wrap_error,
)
from applogs.core.stats import sum_totals
from applogs.core.validation import (
    parse_days,
    parse_health_query,
    parse_health_result,
    parse_log_batch,
    parse_log_input,
    parse_log_query,
    parse_prune,
    parse_stats_increment,
    parse_urls,
)

logger = logging.getLogger(__name__)

Params = Mapping[str, Any]
Handler = Callable[[Any, Params], Awaitable[Any]]

TOTALS_DEFAULT_DAYS = 30


def _split_path(path: str, params: Params | None) -> tuple[str, dict[str, Any]]:
    """Separate an inline query string from the path and merge params."""
    parts = urlsplit(path)
    merged: dict[str, Any] = dict(parse_qs(parts.query)) if parts.query else {}
    if params:
        merged.update(params)
    return parts.path or "/", merged


class AppStoreCoordinator:
    """Single-writer unit owning one app's entries, stats and health history.

    Example:
        ```python
        coordinator = AppStoreCoordinator("billing", factory.create("billing"))
        result = await coordinator.dispatch(
            "POST", "/log", {"level": "INFO", "message": "started"}
        )
        ```
    """

    def __init__(
        self,
        app_id: str,
        stores: AppStores,
        settings: Settings | None = None,
    ) -> None:
        self.app_id = app_id
        self._stores = stores
        self._settings = settings or Settings()
        self._lock = asyncio.Lock()
        self._routes: dict[tuple[str, str], Handler] = {
            ("POST", "/log"): self._append,
            ("POST", "/logs"): self._append_batch,
            ("GET", "/logs"): self._query,
            ("POST", "/stats"): self._increment,
            ("GET", "/stats"): self._stats_range,
            ("GET", "/stats/totals"): self._stats_totals,
            ("POST", "/prune"): self._prune,
            ("POST", "/health-urls"): self._set_health_urls,
            ("GET", "/health-urls"): self._get_health_urls,
            ("POST", "/health"): self._record_health,
            ("GET", "/health"): self._health_history,
        }

    @property
    def stores(self) -> AppStores:
        return self._stores

    async def dispatch(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Params | None = None,
    ) -> Result:
        """Run one logical operation and return an Ok/Err envelope.

        Args:
            method: HTTP-style method name ("GET" or "POST").
            path: Logical path, optionally with a query string.
            body: Already-parsed JSON request body.
            params: Query parameters, plain or ``parse_qs`` style.

        Returns:
            Ok with the operation payload, or Err. Never raises for
            validation or storage failures.
        """
        route, merged = _split_path(path, params)
        handler = self._routes.get((method.upper(), route))
        if handler is None:
            return err(ErrorCode.NOT_FOUND, f"Unknown operation: {method.upper()} {route}")

        async with self._lock:
            try:
                return Ok(await handler(body, merged))
            except AppLogsError as exc:
                return wrap_error(exc)
            except Exception as exc:
                logger.exception(
                    "Operation %s %s failed for app %r", method.upper(), route, self.app_id
                )
                return wrap_error(exc)

    async def close(self) -> None:
        """Close the underlying stores once pending operations finish."""
        async with self._lock:
            await self._stores.close()

    # --- Entry store ---

    async def _append(self, body: Any, params: Params) -> Any:
        item = parse_log_input(body)
        return await self._stores.entries.append(item)

    async def _append_batch(self, body: Any, params: Params) -> Any:
        items = parse_log_batch(body)
        return await self._stores.entries.append_batch(items)

    async def _query(self, body: Any, params: Params) -> Any:
        query = parse_log_query(
            params,
            default_limit=self._settings.default_query_limit,
            max_limit=self._settings.max_query_limit,
        )
        return await self._stores.entries.query(query)

    async def _prune(self, body: Any, params: Params) -> Any:
        before = parse_prune(body)
        deleted = await self._stores.entries.prune(before)
        logger.info("Pruned %d entries before %s for app %r", deleted, before, self.app_id)
        return {"deleted": deleted}

    # --- Stats aggregator ---

    async def _increment(self, body: Any, params: Params) -> Any:
        counts: list[LevelCount] = parse_stats_increment(body)
        return await self._stores.stats.increment(counts)

    async def _stats_range(self, body: Any, params: Params) -> Any:
        days = parse_days(params, maximum=self._settings.max_stats_days)
        return await self._stores.stats.get_range(days)

    async def _stats_totals(self, body: Any, params: Params) -> Any:
        days = parse_days(
            params, default=TOTALS_DEFAULT_DAYS, maximum=self._settings.max_stats_days
        )
        return sum_totals(await self._stores.stats.get_range(days))

    # --- Health history ---

    async def _set_health_urls(self, body: Any, params: Params) -> Any:
        urls = parse_urls(body)
        return {"urls": await self._stores.health.set_urls(urls)}

    async def _get_health_urls(self, body: Any, params: Params) -> Any:
        return {"urls": await self._stores.health.get_urls()}

    async def _record_health(self, body: Any, params: Params) -> Any:
        item = parse_health_result(body)
        return await self._stores.health.record(item)

    async def _health_history(self, body: Any, params: Params) -> Any:
        query = parse_health_query(
            params,
            default_limit=self._settings.default_query_limit,
            max_limit=self._settings.max_query_limit,
        )
        return await self._stores.health.history(query)
