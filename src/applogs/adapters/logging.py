"""Python logging handler adapter for applogs.

This adapter bridges Python's standard library logging module to an app's
coordinator, so ordinary ``logging`` calls end up as stored log entries and
are counted in that app's daily stats.
"""

import asyncio
import contextvars
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from applogs.core.models import LogLevel
from applogs.core.timestamps import format_timestamp
from applogs.service.coordinator import AppStoreCoordinator

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

_DEFAULT_INCLUDE_ATTRS = ["logger", "funcName", "lineno"]

_LEVEL_NAMES = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARN,
    "WARN": LogLevel.WARN,
    "ERROR": LogLevel.ERROR,
    "CRITICAL": LogLevel.ERROR,
    "FATAL": LogLevel.ERROR,
}

# Set while the handler itself is writing; records emitted by the storage
# stack during that write are dropped.
_writing: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "applogs_handler_writing", default=False
)


def record_level(record: logging.LogRecord) -> LogLevel:
    """Map a LogRecord's level onto the closed LogLevel set.

    Custom level names fall back by numeric level.
    """
    level = _LEVEL_NAMES.get(record.levelname)
    if level is not None:
        return level
    if record.levelno >= logging.ERROR:
        return LogLevel.ERROR
    if record.levelno >= logging.WARNING:
        return LogLevel.WARN
    if record.levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


class AppLogHandler(logging.Handler):
    """Logging handler that writes log records into one app's store.

    Inside a running event loop the write is scheduled as a task; call
    ``drain()`` to wait for pending writes. Without a running loop the
    write completes before ``emit`` returns.

    Example:
        ```python
        registry = CoordinatorRegistry(InMemoryStoreFactory())
        handler = AppLogHandler(registry.get("my-service"))
        logging.getLogger().addHandler(handler)
        ```
    """

    def __init__(
        self,
        coordinator: AppStoreCoordinator,
        include_attrs: list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with the coordinator of the target app.

        Args:
            coordinator: Coordinator of the app receiving the records.
            include_attrs: Record attributes copied into ``context``.
                Defaults to ["logger", "funcName", "lineno"].
            level: Minimum level handled.
        """
        super().__init__(level)
        self._coordinator = coordinator
        self._include_attrs = include_attrs or _DEFAULT_INCLUDE_ATTRS
        self._pending: set[asyncio.Task[None]] = set()

    def to_payload(self, record: logging.LogRecord) -> dict[str, Any]:
        """Build a POST /log body from a record."""
        attr_mapping: dict[str, Any] = {
            "logger": record.name,
            "module": record.module,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
        }
        context: dict[str, Any] = {
            key: attr_mapping[key] for key in self._include_attrs if key in attr_mapping
        }

        request_id = None
        for key, value in record.__dict__.items():
            if key in _STANDARD_LOGRECORD_ATTRS or key.startswith("_"):
                continue
            if key == "request_id" and isinstance(value, str):
                request_id = value
            elif isinstance(value, str | int | float | bool) or value is None:
                context[key] = value

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None:
                context["exc_type"] = exc_type.__name__
            if exc_value is not None:
                context["exc_message"] = str(exc_value)
            if exc_tb is not None:
                context["exc_traceback"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        payload: dict[str, Any] = {
            "level": record_level(record).value,
            "message": record.getMessage(),
            "context": context,
            "timestamp": format_timestamp(datetime.fromtimestamp(record.created, UTC)),
        }
        if request_id is not None:
            payload["request_id"] = request_id
        return payload

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record to the app's coordinator.

        Args:
            record: The log record to emit.
        """
        if _writing.get():
            return
        try:
            payload = self.to_payload(record)
        except Exception:
            self.handleError(record)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._write(payload))
            return
        task = loop.create_task(self._write(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, payload: dict[str, Any]) -> None:
        _writing.set(True)
        result = await self._coordinator.dispatch("POST", "/log", payload)
        if result.ok:
            await self._coordinator.dispatch(
                "POST", "/stats", {"level": payload["level"]}
            )

    async def drain(self) -> None:
        """Wait until every scheduled write has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
