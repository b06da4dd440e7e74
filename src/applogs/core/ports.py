"""Port interfaces for per-app storage adapters.

These protocols define the contracts that storage adapters must implement.
The coordinator depends only on these interfaces, not concrete implementations.
An adapter instance belongs to exactly one app and is never called
concurrently; the coordinator serializes access.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from applogs.core.models import (
    AppRecord,
    DailyStat,
    HealthCheckInput,
    HealthCheckResult,
    HealthQuery,
    LevelCount,
    LogEntry,
    LogInput,
    LogQuery,
)


@runtime_checkable
class EntryStoragePort(Protocol):
    """Port for log entry storage.

    Examples: InMemoryEntryStorage, SQLiteEntryStorage.
    """

    async def append(self, item: LogInput) -> LogEntry:
        """Store one entry, assigning its id and (if absent) timestamp."""
        ...

    async def append_batch(self, items: list[LogInput]) -> list[LogEntry]:
        """Store all entries atomically, returning them in input order."""
        ...

    async def query(self, query: LogQuery) -> list[LogEntry]:
        """Return matching entries, newest first.

        Args:
            query: Filters. ``since`` is inclusive, ``until`` exclusive.
        """
        ...

    async def prune(self, before: str) -> int:
        """Delete entries with timestamp < before and return the count."""
        ...

    async def count(self) -> int:
        """Return the number of stored entries."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...


@runtime_checkable
class StatsStoragePort(Protocol):
    """Port for per-day counters.

    Examples: InMemoryStatsStorage, SQLiteStatsStorage.
    """

    async def increment(self, counts: list[LevelCount]) -> DailyStat:
        """Apply all increments to today's record as one update."""
        ...

    async def get_range(self, days: int) -> list[DailyStat]:
        """Return exactly ``days`` records from today backwards."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...


@runtime_checkable
class HealthStoragePort(Protocol):
    """Port for health check URLs and probe history.

    Examples: InMemoryHealthStorage, SQLiteHealthStorage.
    """

    async def set_urls(self, urls: list[str]) -> list[str]:
        """Replace the configured URL list."""
        ...

    async def get_urls(self) -> list[str]:
        """Return the configured URL list."""
        ...

    async def record(self, item: HealthCheckInput) -> HealthCheckResult:
        """Append one probe outcome."""
        ...

    async def history(self, query: HealthQuery) -> list[HealthCheckResult]:
        """Return probe outcomes, newest first."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...


@dataclass
class AppStores:
    """The three store families owned by one app."""

    entries: EntryStoragePort
    stats: StatsStoragePort
    health: HealthStoragePort

    async def close(self) -> None:
        await self.entries.close()
        await self.stats.close()
        await self.health.close()


@runtime_checkable
class StoreFactoryPort(Protocol):
    """Builds the stores for an app the first time it is addressed."""

    def create(self, app_id: str) -> AppStores:
        """Return fresh stores for ``app_id``."""
        ...


@runtime_checkable
class AppRegistryPort(Protocol):
    """Port for app registration records.

    Examples: InMemoryAppRegistry, SQLiteAppRegistry.
    """

    async def register(
        self, app_id: str, name: str, health_urls: list[str] | None = None
    ) -> AppRecord:
        """Create an app, or update name and URLs of an existing one."""
        ...

    async def get(self, app_id: str) -> AppRecord | None:
        """Return the record, or None if the app is not registered."""
        ...

    async def list_ids(self) -> list[str]:
        """Return registered app ids in registration order."""
        ...

    async def set_health_urls(self, app_id: str, urls: list[str]) -> AppRecord | None:
        """Replace the health URLs on an existing record."""
        ...

    async def delete(self, app_id: str) -> bool:
        """Remove a record; returns True if it existed."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        ...
