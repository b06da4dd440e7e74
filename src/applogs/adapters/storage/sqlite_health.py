"""SQLite storage adapter for health check URLs and results."""

from typing import Any

from applogs.adapters.storage.sqlite_base import SQLiteStorageBase
from applogs.core.logs import new_id
from applogs.core.models import HealthCheckInput, HealthCheckResult, HealthQuery
from applogs.core.timestamps import Clock, format_timestamp, utcnow

_HEALTH_SCHEMA = """
CREATE TABLE IF NOT EXISTS health_urls (
    position INTEGER PRIMARY KEY,
    url TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS health_checks (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    url TEXT NOT NULL,
    ok INTEGER NOT NULL,
    status_code INTEGER,
    latency_ms REAL,
    error TEXT,
    timestamp TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_health_checks_timestamp
    ON health_checks(timestamp, seq);
"""

_DELETE_URLS = "DELETE FROM health_urls"

_INSERT_URL = "INSERT INTO health_urls (position, url) VALUES (?, ?)"

_SELECT_URLS = "SELECT url FROM health_urls ORDER BY position ASC"

_INSERT_CHECK = """
INSERT INTO health_checks (id, url, ok, status_code, latency_ms, error, timestamp)
VALUES (?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_CHECKS = """
SELECT id, url, ok, status_code, latency_ms, error, timestamp
FROM health_checks
"""


class SQLiteHealthStorage(SQLiteStorageBase):
    """SQLite implementation of HealthStoragePort.

    URLs are stored with their list position so the configured order
    survives a round trip. Results are append-only.
    """

    _schema = _HEALTH_SCHEMA

    def __init__(self, db_path: str, clock: Clock = utcnow) -> None:
        super().__init__(db_path)
        self._clock = clock

    async def set_urls(self, urls: list[str]) -> list[str]:
        """Replace the configured URL list in one transaction."""
        async with self.transaction() as db:
            await db.execute(_DELETE_URLS)
            await db.executemany(_INSERT_URL, list(enumerate(urls)))
        return list(urls)

    async def get_urls(self) -> list[str]:
        async with self.async_connection() as db:
            async with db.execute(_SELECT_URLS) as cursor:
                return [row[0] async for row in cursor]

    async def record(self, item: HealthCheckInput) -> HealthCheckResult:
        """Append one probe outcome."""
        result = HealthCheckResult(
            id=new_id(),
            url=item.url,
            ok=item.ok,
            timestamp=item.timestamp or format_timestamp(self._clock()),
            status_code=item.status_code,
            latency_ms=item.latency_ms,
            error=item.error,
        )
        async with self.transaction() as db:
            await db.execute(
                _INSERT_CHECK,
                (
                    result.id,
                    result.url,
                    int(result.ok),
                    result.status_code,
                    result.latency_ms,
                    result.error,
                    result.timestamp,
                ),
            )
        return result

    async def history(self, query: HealthQuery) -> list[HealthCheckResult]:
        """Read probe outcomes, newest first."""
        clauses: list[str] = []
        params: list[Any] = []
        if query.since is not None:
            clauses.append("timestamp >= ?")
            params.append(query.since)
        if query.until is not None:
            clauses.append("timestamp < ?")
            params.append(query.until)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = f"{_SELECT_CHECKS} {where} ORDER BY timestamp DESC, seq DESC LIMIT ?"
        params.append(query.limit)
        async with self.async_connection() as db:
            async with db.execute(sql, params) as cursor:
                return [
                    HealthCheckResult(
                        id=row[0],
                        url=row[1],
                        ok=bool(row[2]),
                        status_code=row[3],
                        latency_ms=row[4],
                        error=row[5],
                        timestamp=row[6],
                    )
                    async for row in cursor
                ]
