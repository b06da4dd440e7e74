"""BDD tests for per-app log storage."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from applogs.adapters.storage import InMemoryStoreFactory
from applogs.core.result import Err, Result
from applogs.service.client import LogsClient
from applogs.service.registry import CoordinatorRegistry

scenarios("per_app_logging.feature")

pytestmark = [pytest.mark.tier(2), pytest.mark.integration]


def run_async(coro: Any) -> Any:
    """Run a coroutine in a new event loop (for sync step functions)."""
    return asyncio.run(coro)


@dataclass
class ServiceScenarioContext:
    """Shared state between steps in a scenario."""

    registry: CoordinatorRegistry = field(
        default_factory=lambda: CoordinatorRegistry(InMemoryStoreFactory())
    )
    last_result: Result | None = None

    @property
    def client(self) -> LogsClient:
        return LogsClient(self.registry)


@given("a log service with in-memory stores", target_fixture="ctx")
def given_log_service() -> ServiceScenarioContext:
    return ServiceScenarioContext()


@when(parsers.parse('app "{app_id}" logs "{message}" at level "{level}"'))
def when_app_logs(ctx: ServiceScenarioContext, app_id: str, message: str, level: str) -> None:
    run_async(ctx.client.log(app_id, {"level": level, "message": message}))


@when(parsers.parse('app "{app_id}" receives {n:d} concurrent "{level}" increments'))
def when_concurrent_increments(
    ctx: ServiceScenarioContext, app_id: str, n: int, level: str
) -> None:
    coordinator = ctx.registry.get(app_id)

    async def burst() -> None:
        await asyncio.gather(
            *(coordinator.dispatch("POST", "/stats", {"level": level}) for _ in range(n))
        )

    run_async(burst())


@when(parsers.parse('app "{app_id}" writes a batch with an entry at level "{level}"'))
def when_invalid_batch(ctx: ServiceScenarioContext, app_id: str, level: str) -> None:
    body = {
        "logs": [
            {"level": "INFO", "message": "valid"},
            {"level": level, "message": "invalid"},
        ]
    }
    ctx.last_result = run_async(ctx.registry.get(app_id).dispatch("POST", "/logs", body))


@then(parsers.parse('querying app "{app_id}" returns messages "{messages}"'))
def then_messages(ctx: ServiceScenarioContext, app_id: str, messages: str) -> None:
    entries = run_async(ctx.client.query(app_id))
    assert [e.message for e in entries] == messages.split(",")


@then(parsers.parse('querying app "{app_id}" returns no messages'))
def then_no_messages(ctx: ServiceScenarioContext, app_id: str) -> None:
    assert run_async(ctx.client.query(app_id)) == []


@then(
    parsers.parse(
        "today's stats for app \"{app_id}\" show debug {debug:d}, info {info:d}, "
        "warn {warn:d}, error {error:d}"
    )
)
def then_stats(
    ctx: ServiceScenarioContext, app_id: str, debug: int, info: int, warn: int, error: int
) -> None:
    today = run_async(ctx.client.get_stats(app_id, days=1))[0]
    assert (today.debug, today.info, today.warn, today.error) == (debug, info, warn, error)


@then(parsers.parse('the operation fails with "{code}"'))
def then_fails(ctx: ServiceScenarioContext, code: str) -> None:
    assert isinstance(ctx.last_result, Err)
    assert ctx.last_result.error.code == code
