"""Factories that build the set of stores owned by one app."""

import hashlib
import logging
import re
from pathlib import Path

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
from applogs.core.models import RetentionPolicy
from applogs.core.ports import AppRegistryPort, AppStores
from applogs.core.timestamps import Clock, utcnow

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def db_filename(app_id: str) -> str:
    """Map an app id to a file name that is safe and collision-free.

    The readable prefix is sanitized and truncated; the digest suffix keeps
    ids that sanitize to the same prefix apart.
    """
    slug = _UNSAFE_CHARS.sub("_", app_id)[:48] or "app"
    digest = hashlib.sha256(app_id.encode("utf-8")).hexdigest()[:12]
    return f"{slug}-{digest}.db"


class InMemoryStoreFactory:
    """Builds non-persistent stores; used for tests and ephemeral runs."""

    def __init__(
        self,
        retention: RetentionPolicy | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._retention = retention or RetentionPolicy()
        self._clock = clock

    def create(self, app_id: str) -> AppStores:
        return AppStores(
            entries=InMemoryEntryStorage(clock=self._clock),
            stats=InMemoryStatsStorage(retention=self._retention, clock=self._clock),
            health=InMemoryHealthStorage(clock=self._clock),
        )


class SQLiteStoreFactory:
    """Builds SQLite-backed stores, one database file per app.

    Args:
        data_dir: Directory holding the per-app files, or ":memory:" for
            isolated in-memory SQLite databases.
        retention: Expiry policy for daily stats.
    """

    def __init__(
        self,
        data_dir: str | Path,
        retention: RetentionPolicy | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._data_dir = data_dir
        self._retention = retention or RetentionPolicy()
        self._clock = clock

    def db_path(self, app_id: str) -> str:
        if self._data_dir == ":memory:":
            return ":memory:"
        directory = Path(self._data_dir)
        directory.mkdir(parents=True, exist_ok=True)
        return str(directory / db_filename(app_id))

    def create(self, app_id: str) -> AppStores:
        path = self.db_path(app_id)
        logger.info("Opening stores for app %r at %s", app_id, path)
        return AppStores(
            entries=SQLiteEntryStorage(path, clock=self._clock),
            stats=SQLiteStatsStorage(path, retention=self._retention, clock=self._clock),
            health=SQLiteHealthStorage(path, clock=self._clock),
        )


REGISTRY_FILENAME = "registry.db"


def create_app_registry(
    data_dir: str | Path | None, clock: Clock = utcnow
) -> AppRegistryPort:
    """Build the app registry matching a store factory's data directory.

    Per-app files always carry a digest suffix, so the registry file name
    cannot collide with one of them.
    """
    if data_dir is None:
        return InMemoryAppRegistry(clock=clock)
    if data_dir == ":memory:":
        return SQLiteAppRegistry(":memory:", clock=clock)
    directory = Path(data_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return SQLiteAppRegistry(str(directory / REGISTRY_FILENAME), clock=clock)
