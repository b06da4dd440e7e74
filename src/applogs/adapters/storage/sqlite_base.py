"""Base class for SQLite storage adapters."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)


def _safe_json_loads(data: str | None, default: Any = None) -> Any:
    """Safely parse JSON data, returning default on decode error.

    Args:
        data: JSON string to parse, or None.
        default: Value to return if data is None or parsing fails.

    Returns:
        Parsed JSON value, or default.
    """
    if data is None:
        return default
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        logger.warning("Discarding undecodable JSON column value")
        return default


def _json_dumps(value: Any) -> str | None:
    """Serialize a JSON value for storage; None stays NULL."""
    if value is None:
        return None
    return json.dumps(value, separators=(",", ":"))


class AsyncConnectionManager:
    """Manages async (aiosqlite) database connections.

    Handles schema initialization and connection lifecycle for async contexts.
    For :memory: databases, maintains a persistent connection since SQLite
    in-memory databases are connection-scoped.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    @property
    def _should_close_connection(self) -> bool:
        """Return True if connections should be closed after use."""
        return self._db_path != ":memory:"

    async def _ensure_initialized(self) -> None:
        """Initialize database schema once."""
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._db_path == ":memory:":
                self._persistent_conn = await aiosqlite.connect(":memory:")
                await self._persistent_conn.executescript(self._schema)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(self._schema)
            logger.debug("Initialized SQLite schema at %s", self._db_path)
            self._initialized = True

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a database connection."""
        await self._ensure_initialized()
        if self._db_path == ":memory:":
            if self._persistent_conn is None:
                raise RuntimeError("Memory database connection not initialized")
            return self._persistent_conn
        return await aiosqlite.connect(self._db_path)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Context manager for async database connections.

        Automatically closes connections for file-based databases.
        For :memory: databases, keeps connections open (they're persistent).
        """
        db = await self._get_connection()
        try:
            yield db
        finally:
            if self._should_close_connection:
                await db.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Context manager that commits on success and rolls back otherwise.

        Rollback also runs on cancellation, so an interrupted write leaves
        the database exactly as it was.
        """
        async with self.connection() as db:
            try:
                yield db
            except BaseException:
                await db.rollback()
                raise
            else:
                await db.commit()

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False


class SQLiteStorageBase:
    """Base class for SQLite storage adapters.

    Delegates connection lifecycle to AsyncConnectionManager. Subclasses
    provide the schema and implement domain-specific read/write methods.
    Each adapter instance owns one app's database, so tables carry no app
    identifier column.
    """

    _schema: str

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._manager = AsyncConnectionManager(db_path, self._schema)

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()

    @asynccontextmanager
    async def async_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Context manager for read-only async database access."""
        async with self._manager.connection() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Context manager for an all-or-nothing write."""
        async with self._manager.transaction() as conn:
            yield conn
