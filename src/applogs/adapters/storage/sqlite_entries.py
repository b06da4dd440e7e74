"""SQLite storage adapter for log entries."""

import logging
from typing import Any

from applogs.adapters.storage.sqlite_base import (
    SQLiteStorageBase,
    _json_dumps,
    _safe_json_loads,
)
from applogs.core.logs import materialize
from applogs.core.models import LogEntry, LogInput, LogLevel, LogQuery
from applogs.core.timestamps import Clock, utcnow

logger = logging.getLogger(__name__)

_ENTRIES_SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    timestamp TEXT NOT NULL,
    level TEXT NOT NULL,
    message TEXT NOT NULL,
    context TEXT,
    request_id TEXT
);
CREATE INDEX IF NOT EXISTS idx_entries_timestamp ON entries(timestamp, seq);
CREATE INDEX IF NOT EXISTS idx_entries_level_timestamp ON entries(level, timestamp);
CREATE INDEX IF NOT EXISTS idx_entries_request_id ON entries(request_id);
"""

_INSERT_ENTRY = """
INSERT INTO entries (id, timestamp, level, message, context, request_id)
VALUES (?, ?, ?, ?, ?, ?)
"""

_SELECT_ENTRIES = """
SELECT id, timestamp, level, message, context, request_id
FROM entries
"""

_ORDER_AND_PAGE = """
ORDER BY timestamp DESC, seq DESC
LIMIT ? OFFSET ?
"""

_COUNT_ENTRIES = """
SELECT COUNT(*) FROM entries
"""

_DELETE_ENTRIES_BEFORE = """
DELETE FROM entries WHERE timestamp < ?
"""


def _build_filters(query: LogQuery) -> tuple[str, list[Any]]:
    """Build the WHERE clause and parameters for a LogQuery."""
    clauses: list[str] = []
    params: list[Any] = []
    if query.level is not None:
        clauses.append("level = ?")
        params.append(query.level.value)
    if query.since is not None:
        clauses.append("timestamp >= ?")
        params.append(query.since)
    if query.until is not None:
        clauses.append("timestamp < ?")
        params.append(query.until)
    if query.request_id is not None:
        clauses.append("request_id = ?")
        params.append(query.request_id)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class SQLiteEntryStorage(SQLiteStorageBase):
    """SQLite implementation of EntryStoragePort.

    Stores one app's log entries using aiosqlite for non-blocking async
    operations. Timestamps are stored in canonical ISO-8601 form so the
    timestamp index orders them chronologically. ``seq`` records write
    order and breaks timestamp ties.
    """

    _schema = _ENTRIES_SCHEMA

    def __init__(self, db_path: str, clock: Clock = utcnow) -> None:
        super().__init__(db_path)
        self._clock = clock

    @staticmethod
    def _to_row(entry: LogEntry) -> tuple[Any, ...]:
        return (
            entry.id,
            entry.timestamp,
            entry.level.value,
            entry.message,
            _json_dumps(entry.context),
            entry.request_id,
        )

    @staticmethod
    def _from_row(row: Any) -> LogEntry:
        return LogEntry(
            id=row[0],
            timestamp=row[1],
            level=LogLevel(row[2]),
            message=row[3],
            context=_safe_json_loads(row[4]),
            request_id=row[5],
        )

    async def append(self, item: LogInput) -> LogEntry:
        """Write a single entry."""
        entry = materialize(item, self._clock)
        async with self.transaction() as db:
            await db.execute(_INSERT_ENTRY, self._to_row(entry))
        return entry

    async def append_batch(self, items: list[LogInput]) -> list[LogEntry]:
        """Write all entries in one transaction."""
        entries = [materialize(item, self._clock) for item in items]
        if not entries:
            return []
        async with self.transaction() as db:
            await db.executemany(_INSERT_ENTRY, [self._to_row(e) for e in entries])
        return entries

    async def query(self, query: LogQuery) -> list[LogEntry]:
        """Read entries matching all filters, newest first."""
        where, params = _build_filters(query)
        sql = f"{_SELECT_ENTRIES} {where} {_ORDER_AND_PAGE}"
        params.extend([query.limit, query.offset])
        async with self.async_connection() as db:
            async with db.execute(sql, params) as cursor:
                return [self._from_row(row) async for row in cursor]

    async def prune(self, before: str) -> int:
        """Delete entries with timestamp < before."""
        async with self.transaction() as db:
            cursor = await db.execute(_DELETE_ENTRIES_BEFORE, (before,))
            deleted = cursor.rowcount
        logger.debug("Pruned %d entries before %s from %s", deleted, before, self._db_path)
        return deleted

    async def count(self) -> int:
        """Return total number of entries in storage."""
        async with self.async_connection() as db:
            async with db.execute(_COUNT_ENTRIES) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0
