"""HTTP health probes for an app's configured URLs."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from applogs.core.models import HealthCheckInput, HealthCheckResult
from applogs.service.client import unwrap
from applogs.service.coordinator import AppStoreCoordinator

logger = logging.getLogger(__name__)


def _payload(item: HealthCheckInput) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "url": item.url,
        "ok": item.ok,
        "status_code": item.status_code,
        "latency_ms": item.latency_ms,
        "error": item.error,
    }
    if item.timestamp is not None:
        payload["timestamp"] = item.timestamp
    return payload


class HealthProber:
    """Probes URLs with GET requests and records the outcomes.

    A probe is ok when the response status is 2xx. Transport failures and
    timeouts are recorded as failed probes rather than raised.
    """

    def __init__(
        self, timeout: float = 5.0, client: httpx.AsyncClient | None = None
    ) -> None:
        """Initialize the prober.

        Args:
            timeout: Seconds before a single probe gives up.
            client: Client to reuse. When omitted a client is opened per
                ``run_checks`` call and closed afterwards.
        """
        self._timeout = timeout
        self._client = client

    @asynccontextmanager
    async def _open_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def probe(
        self, url: str, client: httpx.AsyncClient | None = None
    ) -> HealthCheckInput:
        """Probe one URL."""
        if client is None:
            async with self._open_client() as opened:
                return await self.probe(url, opened)

        start = time.perf_counter()
        try:
            response = await client.get(url, timeout=self._timeout)
        except httpx.HTTPError as exc:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.info("Health probe for %s failed: %s", url, exc)
            return HealthCheckInput(
                url=url,
                ok=False,
                latency_ms=latency_ms,
                error=str(exc) or type(exc).__name__,
            )
        latency_ms = (time.perf_counter() - start) * 1000
        ok = response.is_success
        return HealthCheckInput(
            url=url,
            ok=ok,
            status_code=response.status_code,
            latency_ms=latency_ms,
            error=None if ok else f"HTTP {response.status_code}",
        )

    async def run_checks(
        self, coordinator: AppStoreCoordinator
    ) -> list[HealthCheckResult]:
        """Probe every URL configured for the coordinator's app.

        Args:
            coordinator: Coordinator of the app to check.

        Returns:
            The recorded results, in URL order.

        Raises:
            ClientError: If reading the URLs or recording a result fails.
        """
        listed = unwrap(await coordinator.dispatch("GET", "/health-urls"))
        urls: list[str] = listed["urls"]

        results: list[HealthCheckResult] = []
        async with self._open_client() as client:
            for url in urls:
                item = await self.probe(url, client)
                recorded = await coordinator.dispatch("POST", "/health", _payload(item))
                results.append(unwrap(recorded))
        logger.debug(
            "Ran %d health checks for app %r", len(results), coordinator.app_id
        )
        return results
