"""Core domain models for per-app log storage."""

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any


class LogLevel(StrEnum):
    """Closed set of accepted log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def counter(self) -> str:
        """Name of the DailyStat counter for this level."""
        return self.value.lower()


@dataclass(frozen=True)
class LogInput:
    """A validated, not yet stored log entry.

    Attributes:
        level: Log level.
        message: The log message.
        context: Arbitrary JSON document, stored verbatim.
        request_id: Optional correlation identifier.
        timestamp: Canonical ISO-8601 timestamp, or None to use write time.
    """

    level: LogLevel
    message: str
    context: Any = None
    request_id: str | None = None
    timestamp: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Request body form, omitting unset optional fields."""
        payload: dict[str, Any] = {"level": self.level.value, "message": self.message}
        if self.context is not None:
            payload["context"] = self.context
        if self.request_id is not None:
            payload["request_id"] = self.request_id
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        return payload


@dataclass(frozen=True)
class LogEntry:
    """A stored log entry.

    Attributes:
        id: Unique identifier within the app's store.
        level: Log level.
        message: The log message.
        timestamp: Canonical ISO-8601 UTC timestamp.
        context: Arbitrary JSON document, or None.
        request_id: Optional correlation identifier.
    """

    id: str
    level: LogLevel
    message: str
    timestamp: str
    context: Any = None
    request_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level.value,
            "message": self.message,
            "context": self.context,
            "request_id": self.request_id,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class LogQuery:
    """Conjunctive filters for querying log entries.

    ``since`` is inclusive and ``until`` is exclusive. Results are always
    ordered newest first.
    """

    level: LogLevel | None = None
    since: str | None = None
    until: str | None = None
    request_id: str | None = None
    limit: int = 100
    offset: int = 0


@dataclass(frozen=True)
class LevelCount:
    """An increment amount for one level."""

    level: LogLevel
    count: int = 1


@dataclass(frozen=True)
class DailyStat:
    """Per-level counters for one calendar day (UTC)."""

    date: str
    debug: int = 0
    info: int = 0
    warn: int = 0
    error: int = 0

    def incremented(self, level: LogLevel, count: int = 1) -> "DailyStat":
        """Return a copy with ``count`` added to the counter for ``level``."""
        name = level.counter
        return replace(self, **{name: getattr(self, name) + count})

    @property
    def total(self) -> int:
        return self.debug + self.info + self.warn + self.error

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "debug": self.debug,
            "info": self.info,
            "warn": self.warn,
            "error": self.error,
        }


@dataclass(frozen=True)
class StatsTotals:
    """Counters summed over a range of days."""

    debug: int = 0
    info: int = 0
    warn: int = 0
    error: int = 0

    @property
    def total(self) -> int:
        return self.debug + self.info + self.warn + self.error

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_level": {
                "debug": self.debug,
                "info": self.info,
                "warn": self.warn,
                "error": self.error,
            },
        }


@dataclass(frozen=True)
class HealthCheckResult:
    """Outcome of a single health probe.

    Attributes:
        id: Unique identifier of the record.
        url: The probed URL.
        ok: True if the probe succeeded.
        timestamp: Canonical ISO-8601 time of the probe.
        status_code: HTTP status returned, if any.
        latency_ms: Round-trip time in milliseconds, if measured.
        error: Error description for failed probes.
    """

    id: str
    url: str
    ok: bool
    timestamp: str
    status_code: int | None = None
    latency_ms: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "ok": self.ok,
            "status_code": self.status_code,
            "latency_ms": self.latency_ms,
            "error": self.error,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class HealthCheckInput:
    """A probe outcome before it is recorded; timestamp None means now."""

    url: str
    ok: bool
    status_code: int | None = None
    latency_ms: float | None = None
    error: str | None = None
    timestamp: str | None = None


@dataclass(frozen=True)
class HealthQuery:
    """Filters for health history; same bound convention as LogQuery."""

    since: str | None = None
    until: str | None = None
    limit: int = 100


@dataclass(frozen=True)
class RetentionPolicy:
    """How long daily stats are kept.

    Attributes:
        max_age_days: Records for dates older than this many days before
            today are treated as expired.
    """

    max_age_days: int = 30

    def __post_init__(self) -> None:
        if self.max_age_days < 1:
            raise ValueError("max_age_days must be at least 1")


@dataclass(frozen=True)
class AppRecord:
    """Registration record for an app.

    Attributes:
        app_id: Stable app identifier.
        name: Display name.
        api_key: Generated key, kept across re-registration.
        created_at: Canonical ISO-8601 creation time.
        health_urls: Health check URLs configured at registration.
    """

    app_id: str
    name: str
    api_key: str
    created_at: str
    health_urls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_id": self.app_id,
            "name": self.name,
            "api_key": self.api_key,
            "created_at": self.created_at,
            "health_urls": list(self.health_urls),
        }
