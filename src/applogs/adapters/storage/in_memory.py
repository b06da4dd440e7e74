"""In-memory storage adapters for entries, stats and health history."""

from dataclasses import replace
from datetime import date

from applogs.core.logs import matches, materialize, new_api_key, new_id
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
    RetentionPolicy,
)
from applogs.core.stats import apply_increments, dense_range, expiry_cutoff
from applogs.core.timestamps import (
    Clock,
    date_key,
    format_timestamp,
    utc_date,
    utcnow,
)


class InMemoryEntryStorage:
    """In-memory implementation of EntryStoragePort.

    Stores entries in a list in write order. Suitable for testing and
    low-volume deployments where persistence is not required.
    """

    def __init__(self, clock: Clock = utcnow) -> None:
        self._entries: list[LogEntry] = []
        self._clock = clock

    async def append(self, item: LogInput) -> LogEntry:
        entry = materialize(item, self._clock)
        self._entries.append(entry)
        return entry

    async def append_batch(self, items: list[LogInput]) -> list[LogEntry]:
        entries = [materialize(item, self._clock) for item in items]
        self._entries.extend(entries)
        return entries

    async def query(self, query: LogQuery) -> list[LogEntry]:
        """Return matching entries newest first, ties by latest write."""
        indexed = [
            (entry.timestamp, position, entry)
            for position, entry in enumerate(self._entries)
            if matches(entry, query)
        ]
        indexed.sort(key=lambda row: (row[0], row[1]), reverse=True)
        window = indexed[query.offset : query.offset + query.limit]
        return [row[2] for row in window]

    async def prune(self, before: str) -> int:
        kept = [e for e in self._entries if e.timestamp >= before]
        deleted = len(self._entries) - len(kept)
        self._entries = kept
        return deleted

    async def count(self) -> int:
        return len(self._entries)

    async def close(self) -> None:
        pass


class InMemoryStatsStorage:
    """In-memory implementation of StatsStoragePort.

    Keeps one DailyStat per date key. Records older than the retention
    window read back as zero and are dropped on the next write.
    """

    def __init__(
        self,
        retention: RetentionPolicy | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._stats: dict[str, DailyStat] = {}
        self._retention = retention or RetentionPolicy()
        self._clock = clock

    async def increment(self, counts: list[LevelCount]) -> DailyStat:
        today = self._clock()
        key = date_key(today)
        current = self._stats.get(key) or DailyStat(date=key)
        updated = apply_increments(current, counts)
        self._stats[key] = updated
        self._expire(utc_date(today))
        return updated

    def _expire(self, today: date) -> None:
        cutoff = expiry_cutoff(today, self._retention)
        for key in [k for k in self._stats if k < cutoff]:
            del self._stats[key]

    async def get_range(self, days: int) -> list[DailyStat]:
        return dense_range(self._stats, utc_date(self._clock()), days, self._retention)

    async def close(self) -> None:
        pass


class InMemoryHealthStorage:
    """In-memory implementation of HealthStoragePort."""

    def __init__(self, clock: Clock = utcnow) -> None:
        self._urls: list[str] = []
        self._results: list[HealthCheckResult] = []
        self._clock = clock

    async def set_urls(self, urls: list[str]) -> list[str]:
        self._urls = list(urls)
        return list(self._urls)

    async def get_urls(self) -> list[str]:
        return list(self._urls)

    async def record(self, item: HealthCheckInput) -> HealthCheckResult:
        result = HealthCheckResult(
            id=new_id(),
            url=item.url,
            ok=item.ok,
            timestamp=item.timestamp or format_timestamp(self._clock()),
            status_code=item.status_code,
            latency_ms=item.latency_ms,
            error=item.error,
        )
        self._results.append(result)
        return result

    async def history(self, query: HealthQuery) -> list[HealthCheckResult]:
        rows = [
            (result.timestamp, position, result)
            for position, result in enumerate(self._results)
            if (query.since is None or result.timestamp >= query.since)
            and (query.until is None or result.timestamp < query.until)
        ]
        rows.sort(key=lambda row: (row[0], row[1]), reverse=True)
        return [row[2] for row in rows[: query.limit]]

    async def close(self) -> None:
        pass


class InMemoryAppRegistry:
    """In-memory implementation of AppRegistryPort."""

    def __init__(self, clock: Clock = utcnow) -> None:
        self._apps: dict[str, AppRecord] = {}
        self._clock = clock

    async def register(
        self, app_id: str, name: str, health_urls: list[str] | None = None
    ) -> AppRecord:
        urls = list(health_urls or [])
        existing = self._apps.get(app_id)
        if existing is not None:
            record = replace(existing, name=name, health_urls=urls)
        else:
            record = AppRecord(
                app_id=app_id,
                name=name,
                api_key=new_api_key(),
                created_at=format_timestamp(self._clock()),
                health_urls=urls,
            )
        self._apps[app_id] = record
        return record

    async def get(self, app_id: str) -> AppRecord | None:
        return self._apps.get(app_id)

    async def list_ids(self) -> list[str]:
        return list(self._apps)

    async def set_health_urls(self, app_id: str, urls: list[str]) -> AppRecord | None:
        existing = self._apps.get(app_id)
        if existing is None:
            return None
        record = replace(existing, health_urls=list(urls))
        self._apps[app_id] = record
        return record

    async def delete(self, app_id: str) -> bool:
        return self._apps.pop(app_id, None) is not None

    async def close(self) -> None:
        pass
