"""Storage adapters implementing core ports."""

from applogs.adapters.storage.factory import (
    InMemoryStoreFactory,
    SQLiteStoreFactory,
    create_app_registry,
)
from applogs.adapters.storage.in_memory import (
    InMemoryAppRegistry,
    InMemoryEntryStorage,
    InMemoryHealthStorage,
    InMemoryStatsStorage,
)
from applogs.adapters.storage.sqlite_apps import SQLiteAppRegistry
from applogs.adapters.storage.sqlite_entries import SQLiteEntryStorage
from applogs.adapters.storage.sqlite_health import SQLiteHealthStorage
from applogs.adapters.storage.sqlite_stats import SQLiteStatsStorage

__all__ = [
    "InMemoryAppRegistry",
    "InMemoryEntryStorage",
    "InMemoryHealthStorage",
    "InMemoryStatsStorage",
    "InMemoryStoreFactory",
    "SQLiteAppRegistry",
    "SQLiteEntryStorage",
    "SQLiteHealthStorage",
    "SQLiteStatsStorage",
    "SQLiteStoreFactory",
    "create_app_registry",
]
