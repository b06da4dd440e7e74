"""SQLite storage adapter for app registrations."""

from dataclasses import replace
from typing import Any

from applogs.adapters.storage.sqlite_base import (
    SQLiteStorageBase,
    _json_dumps,
    _safe_json_loads,
)
from applogs.core.logs import new_api_key
from applogs.core.models import AppRecord
from applogs.core.timestamps import Clock, format_timestamp, utcnow

_APPS_SCHEMA = """
CREATE TABLE IF NOT EXISTS apps (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    app_id TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    api_key TEXT NOT NULL,
    created_at TEXT NOT NULL,
    health_urls TEXT NOT NULL DEFAULT '[]'
);
"""

_SELECT_APP = """
SELECT app_id, name, api_key, created_at, health_urls FROM apps WHERE app_id = ?
"""

_SELECT_APP_IDS = """
SELECT app_id FROM apps ORDER BY seq ASC
"""

_INSERT_APP = """
INSERT INTO apps (app_id, name, api_key, created_at, health_urls)
VALUES (?, ?, ?, ?, ?)
"""

_UPDATE_APP = """
UPDATE apps SET name = ?, health_urls = ? WHERE app_id = ?
"""

_UPDATE_HEALTH_URLS = """
UPDATE apps SET health_urls = ? WHERE app_id = ?
"""

_DELETE_APP = """
DELETE FROM apps WHERE app_id = ?
"""


def _from_row(row: Any) -> AppRecord:
    return AppRecord(
        app_id=row[0],
        name=row[1],
        api_key=row[2],
        created_at=row[3],
        health_urls=_safe_json_loads(row[4], default=[]),
    )


class SQLiteAppRegistry(SQLiteStorageBase):
    """SQLite implementation of AppRegistryPort.

    A keyed record store held by the service façade; it is shared across
    apps, unlike the per-app stores.
    """

    _schema = _APPS_SCHEMA

    def __init__(self, db_path: str, clock: Clock = utcnow) -> None:
        super().__init__(db_path)
        self._clock = clock

    async def register(
        self, app_id: str, name: str, health_urls: list[str] | None = None
    ) -> AppRecord:
        """Create an app with a fresh API key, or update an existing one."""
        urls = list(health_urls or [])
        async with self.transaction() as db:
            async with db.execute(_SELECT_APP, (app_id,)) as cursor:
                row = await cursor.fetchone()
            if row is not None:
                record = replace(_from_row(row), name=name, health_urls=urls)
                await db.execute(_UPDATE_APP, (name, _json_dumps(urls), app_id))
            else:
                record = AppRecord(
                    app_id=app_id,
                    name=name,
                    api_key=new_api_key(),
                    created_at=format_timestamp(self._clock()),
                    health_urls=urls,
                )
                await db.execute(
                    _INSERT_APP,
                    (
                        record.app_id,
                        record.name,
                        record.api_key,
                        record.created_at,
                        _json_dumps(urls),
                    ),
                )
        return record

    async def get(self, app_id: str) -> AppRecord | None:
        async with self.async_connection() as db:
            async with db.execute(_SELECT_APP, (app_id,)) as selected:
                row = await selected.fetchone()
        return _from_row(row) if row else None

    async def list_ids(self) -> list[str]:
        async with self.async_connection() as db:
            async with db.execute(_SELECT_APP_IDS) as cursor:
                return [row[0] async for row in cursor]

    async def set_health_urls(self, app_id: str, urls: list[str]) -> AppRecord | None:
        """Replace an app's health URLs; None when the app is unknown."""
        async with self.transaction() as db:
            cursor = await db.execute(
                _UPDATE_HEALTH_URLS, (_json_dumps(list(urls)), app_id)
            )
            if cursor.rowcount == 0:
                return None
            async with db.execute(_SELECT_APP, (app_id,)) as cursor:
                row = await cursor.fetchone()
        return _from_row(row)

    async def delete(self, app_id: str) -> bool:
        async with self.transaction() as db:
            cursor = await db.execute(_DELETE_APP, (app_id,))
            deleted = cursor.rowcount
        return deleted > 0
