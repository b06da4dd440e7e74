"""SQLite storage adapter for daily stats."""

import logging
from typing import Any

from applogs.adapters.storage.sqlite_base import SQLiteStorageBase
from applogs.core.models import DailyStat, LevelCount, RetentionPolicy
from applogs.core.stats import apply_increments, dense_range, expiry_cutoff
from applogs.core.timestamps import Clock, date_key, date_keys_back, utc_date, utcnow

logger = logging.getLogger(__name__)

_STATS_SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_stats (
    date TEXT PRIMARY KEY,
    debug INTEGER NOT NULL DEFAULT 0 CHECK (debug >= 0),
    info INTEGER NOT NULL DEFAULT 0 CHECK (info >= 0),
    warn INTEGER NOT NULL DEFAULT 0 CHECK (warn >= 0),
    error INTEGER NOT NULL DEFAULT 0 CHECK (error >= 0)
);
"""

_SELECT_STAT = """
SELECT date, debug, info, warn, error FROM daily_stats WHERE date = ?
"""

_SELECT_STATS_SINCE = """
SELECT date, debug, info, warn, error FROM daily_stats WHERE date >= ?
"""

_UPSERT_STAT = """
INSERT INTO daily_stats (date, debug, info, warn, error) VALUES (?, ?, ?, ?, ?)
ON CONFLICT(date) DO UPDATE SET
    debug = excluded.debug,
    info = excluded.info,
    warn = excluded.warn,
    error = excluded.error
"""

_DELETE_EXPIRED = """
DELETE FROM daily_stats WHERE date < ?
"""


def _from_row(row: Any) -> DailyStat:
    return DailyStat(date=row[0], debug=row[1], info=row[2], warn=row[3], error=row[4])


class SQLiteStatsStorage(SQLiteStorageBase):
    """SQLite implementation of StatsStoragePort.

    One row per date. ``increment`` loads today's row, applies the
    increments and stores it back inside a single transaction; the caller
    guarantees no other increment for the same app is in flight.
    """

    _schema = _STATS_SCHEMA

    def __init__(
        self,
        db_path: str,
        retention: RetentionPolicy | None = None,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__(db_path)
        self._retention = retention or RetentionPolicy()
        self._clock = clock

    async def increment(self, counts: list[LevelCount]) -> DailyStat:
        """Apply all increments to today's record as one persisted update."""
        today = self._clock()
        key = date_key(today)
        async with self.transaction() as db:
            async with db.execute(_SELECT_STAT, (key,)) as cursor:
                row = await cursor.fetchone()
            current = _from_row(row) if row else DailyStat(date=key)
            updated = apply_increments(current, counts)
            await db.execute(
                _UPSERT_STAT,
                (updated.date, updated.debug, updated.info, updated.warn, updated.error),
            )
            cursor = await db.execute(
                _DELETE_EXPIRED, (expiry_cutoff(utc_date(today), self._retention),)
            )
            if cursor.rowcount:
                logger.debug("Expired %d daily stat rows", cursor.rowcount)
        return updated

    async def get_range(self, days: int) -> list[DailyStat]:
        """Return a dense, newest-first series of ``days`` records."""
        today = utc_date(self._clock())
        oldest = date_keys_back(today, days)[-1]
        async with self.async_connection() as db:
            async with db.execute(_SELECT_STATS_SINCE, (oldest,)) as cursor:
                stored = {row[0]: _from_row(row) async for row in cursor}
        return dense_range(stored, today, days, self._retention)
