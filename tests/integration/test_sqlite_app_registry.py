"""Tests for the SQLite app registry and store factories."""

import asyncio
from pathlib import Path

import pytest

from applogs.adapters.storage import (
    InMemoryAppRegistry,
    InMemoryStoreFactory,
    SQLiteAppRegistry,
    SQLiteStoreFactory,
    create_app_registry,
)
from applogs.adapters.storage.factory import REGISTRY_FILENAME, db_filename
from applogs.core import logs
from applogs.core.models import LogQuery
from applogs.core.ports import AppRegistryPort, StoreFactoryPort

pytestmark = [pytest.mark.tier(2), pytest.mark.storage]


class TestSQLiteAppRegistry:
    def test_implements_port(self) -> None:
        assert isinstance(SQLiteAppRegistry(":memory:"), AppRegistryPort)

    async def test_register_get_list_delete(self, clock) -> None:
        registry = SQLiteAppRegistry(":memory:", clock=clock)
        try:
            record = await registry.register("billing", "Billing", ["http://b/health"])
            await registry.register("auth", "Auth")

            assert record.created_at == "2024-01-15T12:00:00.000Z"
            assert len(record.api_key) == 48
            assert await registry.get("billing") == record
            assert await registry.list_ids() == ["billing", "auth"]

            assert await registry.delete("billing") is True
            assert await registry.delete("billing") is False
            assert await registry.get("billing") is None
        finally:
            await registry.close()

    async def test_reregister_keeps_key(self, clock) -> None:
        registry = SQLiteAppRegistry(":memory:", clock=clock)
        try:
            first = await registry.register("billing", "Billing")
            clock.advance(days=1)
            second = await registry.register("billing", "Billing 2")
            assert (second.api_key, second.created_at) == (first.api_key, first.created_at)
            assert second.name == "Billing 2"
        finally:
            await registry.close()

    async def test_set_health_urls(self) -> None:
        registry = SQLiteAppRegistry(":memory:")
        try:
            assert await registry.set_health_urls("ghost", ["http://x"]) is None
            await registry.register("shop", "Shop")
            updated = await registry.set_health_urls("shop", ["http://x"])
            assert updated is not None and updated.health_urls == ["http://x"]
            assert (await registry.get("shop")).health_urls == ["http://x"]
        finally:
            await registry.close()

    async def test_set_health_urls_leaves_other_fields_alone(self) -> None:
        registry = SQLiteAppRegistry(":memory:")
        try:
            created = await registry.register("shop", "Shop")
            await asyncio.gather(
                registry.register("shop", "Renamed", ["http://x"]),
                registry.set_health_urls("shop", ["http://y"]),
            )
            record = await registry.get("shop")
            assert record.name == "Renamed"
            assert record.api_key == created.api_key
            assert record.created_at == created.created_at
        finally:
            await registry.close()


class TestStoreFactories:
    def test_factories_implement_port(self, tmp_path: Path) -> None:
        assert isinstance(InMemoryStoreFactory(), StoreFactoryPort)
        assert isinstance(SQLiteStoreFactory(str(tmp_path)), StoreFactoryPort)

    def test_db_filename_is_safe_and_distinct(self) -> None:
        assert db_filename("my app/1").startswith("my_app_1-")
        assert db_filename("a/b") != db_filename("a_b")
        assert db_filename("x").endswith(".db")

    async def test_one_file_per_app(self, tmp_path: Path) -> None:
        factory = SQLiteStoreFactory(tmp_path / "data")
        for app_id in ("a", "b"):
            stores = factory.create(app_id)
            await stores.entries.append(logs.info(f"from {app_id}"))
            await stores.close()

        files = sorted(p.name for p in (tmp_path / "data").iterdir() if p.suffix == ".db")
        assert files == sorted([db_filename("a"), db_filename("b")])

        stores = factory.create("a")
        try:
            assert [e.message for e in await stores.entries.query(LogQuery())] == ["from a"]
        finally:
            await stores.close()

    async def test_create_app_registry_variants(self, tmp_path: Path) -> None:
        assert isinstance(create_app_registry(None), InMemoryAppRegistry)

        registry = create_app_registry(str(tmp_path))
        assert isinstance(registry, SQLiteAppRegistry)
        await registry.register("a", "A")
        await registry.close()
        assert (tmp_path / REGISTRY_FILENAME).exists()
