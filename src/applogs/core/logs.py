"""Helpers for building log inputs and materializing stored entries."""

import secrets
import uuid
from typing import Any

from applogs.core.models import LogEntry, LogInput, LogLevel, LogQuery
from applogs.core.timestamps import Clock, format_timestamp, utcnow


def new_id() -> str:
    """Generate a random, collision-free identifier."""
    return str(uuid.uuid4())


def new_api_key() -> str:
    """Generate a 48-character hex API key for a registered app."""
    return secrets.token_hex(24)


def materialize(item: LogInput, clock: Clock = utcnow) -> LogEntry:
    """Assign an id and, if absent, a timestamp to a validated input."""
    return LogEntry(
        id=new_id(),
        level=item.level,
        message=item.message,
        timestamp=item.timestamp or format_timestamp(clock()),
        context=item.context,
        request_id=item.request_id,
    )


def matches(entry: LogEntry, query: LogQuery) -> bool:
    """Check an entry against conjunctive query filters."""
    if query.level is not None and entry.level != query.level:
        return False
    if query.since is not None and entry.timestamp < query.since:
        return False
    if query.until is not None and entry.timestamp >= query.until:
        return False
    if query.request_id is not None and entry.request_id != query.request_id:
        return False
    return True


def log(
    level: LogLevel | str,
    message: str,
    context: Any = None,
    request_id: str | None = None,
) -> LogInput:
    """Create a log input; the store assigns the timestamp.

    Args:
        level: Log level (e.g., "INFO", "ERROR", "DEBUG")
        message: The log message
        context: Optional structured payload
        request_id: Optional correlation identifier

    Returns:
        LogInput ready to be appended
    """
    return LogInput(
        level=LogLevel(level),
        message=message,
        context=context,
        request_id=request_id,
    )


def info(message: str, context: Any = None) -> LogInput:
    """Create an INFO log input."""
    return log(LogLevel.INFO, message, context)


def error(message: str, context: Any = None) -> LogInput:
    """Create an ERROR log input."""
    return log(LogLevel.ERROR, message, context)


def debug(message: str, context: Any = None) -> LogInput:
    """Create a DEBUG log input."""
    return log(LogLevel.DEBUG, message, context)


def warn(message: str, context: Any = None) -> LogInput:
    """Create a WARN log input."""
    return log(LogLevel.WARN, message, context)
