"""Serialization tests for a coordinator over SQLite-backed stores."""

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from applogs.adapters.storage import SQLiteStoreFactory
from applogs.service.coordinator import AppStoreCoordinator

pytestmark = [pytest.mark.tier(2), pytest.mark.storage]


@pytest.fixture
async def coordinator(tmp_path: Path, clock) -> AsyncIterator[AppStoreCoordinator]:
    factory = SQLiteStoreFactory(tmp_path, clock=clock)
    coordinator = AppStoreCoordinator("billing", factory.create("billing"))
    yield coordinator
    await coordinator.close()


class TestSQLiteSerialization:
    async def test_concurrent_increments_are_not_lost(self, coordinator) -> None:
        results = await asyncio.gather(
            *(coordinator.dispatch("POST", "/stats", {"level": "INFO"}) for _ in range(10))
        )
        assert all(result.ok for result in results)
        today = (await coordinator.dispatch("GET", "/stats", params={"days": 1})).data[0]
        assert today.info == 10

    async def test_concurrent_batch_increments_add_up(self, coordinator) -> None:
        body = {"counts": [{"level": "ERROR", "count": 2}, {"level": "DEBUG", "count": 1}]}
        await asyncio.gather(
            *(coordinator.dispatch("POST", "/stats", body) for _ in range(5))
        )
        result = await coordinator.dispatch("GET", "/stats/totals")
        assert (result.data.error, result.data.debug) == (10, 5)

    async def test_operations_run_in_admission_order(self, coordinator) -> None:
        results = await asyncio.gather(
            coordinator.dispatch("POST", "/log", {"level": "INFO", "message": "a"}),
            coordinator.dispatch("POST", "/prune", {"before": "2030-01-01T00:00:00Z"}),
            coordinator.dispatch("POST", "/log", {"level": "INFO", "message": "b"}),
        )
        assert results[1].data == {"deleted": 1}
        entries = (await coordinator.dispatch("GET", "/logs")).data
        assert [e.message for e in entries] == ["b"]

    async def test_concurrent_appends_all_land(self, coordinator) -> None:
        await asyncio.gather(
            *(
                coordinator.dispatch("POST", "/log", {"level": "INFO", "message": f"m{i}"})
                for i in range(20)
            )
        )
        entries = (await coordinator.dispatch("GET", "/logs", params={"limit": "50"})).data
        assert sorted(e.message for e in entries) == sorted(f"m{i}" for i in range(20))
