"""Parsing and validation of structured request payloads.

Every function here is pure: it either returns a validated model or raises
BadRequestError (field missing / payload malformed) or ValidationError
(field present with an invalid value). Nothing is written before validation
of the whole payload has succeeded.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from applogs.core.models import (
    HealthCheckInput,
    HealthQuery,
    LevelCount,
    LogEntry,
    LogInput,
    LogLevel,
    LogQuery,
)
from applogs.core.result import BadRequestError, ValidationError
from applogs.core.timestamps import normalize_timestamp

VALID_LEVELS = frozenset(level.value for level in LogLevel)

DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000
DEFAULT_STATS_DAYS = 7
MAX_STATS_DAYS = 365


def _require_mapping(payload: Any, what: str = "body") -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise BadRequestError(f"Request {what} must be a JSON object")
    return payload


def parse_level(value: Any, field_name: str = "level") -> LogLevel:
    """Validate a level value against the closed level set."""
    if value is None:
        raise BadRequestError(f'"{field_name}" is required')
    if not isinstance(value, str) or value not in VALID_LEVELS:
        raise ValidationError(
            f"Invalid level: {value!r}",
            {"field": field_name, "allowed": sorted(VALID_LEVELS)},
        )
    return LogLevel(value)


def parse_timestamp_field(value: Any, field_name: str) -> str:
    """Validate and normalize an ISO-8601 timestamp field."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f'"{field_name}" must be an ISO-8601 string', {"field": field_name}
        )
    try:
        return normalize_timestamp(value)
    except (ValueError, OverflowError):
        raise ValidationError(
            f'"{field_name}" is not a valid ISO-8601 timestamp: {value!r}',
            {"field": field_name},
        ) from None


def parse_log_input(payload: Any) -> LogInput:
    """Validate one log entry payload.

    Args:
        payload: Mapping with ``level`` and ``message`` and optionally
            ``context``, ``request_id`` and ``timestamp``.

    Returns:
        LogInput with a normalized timestamp (or None).
    """
    body = _require_mapping(payload, "log entry")
    level = parse_level(body.get("level"))
    message = body.get("message")
    if message is None:
        raise BadRequestError('"message" is required')
    if not isinstance(message, str):
        raise ValidationError('"message" must be a string', {"field": "message"})

    request_id = body.get("request_id")
    if request_id is not None and not isinstance(request_id, str):
        raise ValidationError(
            '"request_id" must be a string', {"field": "request_id"}
        )

    timestamp = body.get("timestamp")
    if timestamp is not None:
        timestamp = parse_timestamp_field(timestamp, "timestamp")

    return LogInput(
        level=level,
        message=message,
        context=body.get("context"),
        request_id=request_id,
        timestamp=timestamp,
    )


def parse_log_batch(payload: Any) -> list[LogInput]:
    """Validate a ``{"logs": [...]}`` payload; every entry is checked first."""
    body = _require_mapping(payload)
    logs = body.get("logs")
    if logs is None:
        raise BadRequestError('"logs" array required')
    if not isinstance(logs, list):
        raise ValidationError('"logs" must be an array', {"field": "logs"})
    inputs = []
    for index, item in enumerate(logs):
        try:
            inputs.append(parse_log_input(item))
        except (BadRequestError, ValidationError) as exc:
            details = dict(exc.details or {})
            details["index"] = index
            raise type(exc)(f"logs[{index}]: {exc.message}", details) from None
    return inputs


def _first(params: Mapping[str, Any], name: str) -> Any:
    """Return a single parameter value from plain or parse_qs-style params."""
    value = params.get(name)
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _parse_int(
    value: Any, field_name: str, default: int, minimum: int, maximum: int | None
) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f'"{field_name}" must be an integer', {"field": field_name})
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f'"{field_name}" must be an integer', {"field": field_name}
        ) from None
    if number < minimum or (maximum is not None and number > maximum):
        upper = "" if maximum is None else f" and at most {maximum}"
        raise ValidationError(
            f'"{field_name}" must be at least {minimum}{upper}',
            {"field": field_name},
        )
    return number


def parse_log_query(
    params: Mapping[str, Any] | None,
    default_limit: int = DEFAULT_QUERY_LIMIT,
    max_limit: int = MAX_QUERY_LIMIT,
) -> LogQuery:
    """Parse query-string style filters into a LogQuery.

    Accepts either plain values or the list values produced by
    ``urllib.parse.parse_qs``. Empty values count as absent.
    """
    params = params or {}
    level_raw = _first(params, "level")
    level = parse_level(level_raw) if level_raw else None
    since_raw = _first(params, "since")
    until_raw = _first(params, "until")
    request_id = _first(params, "request_id") or None
    return LogQuery(
        level=level,
        since=parse_timestamp_field(since_raw, "since") if since_raw else None,
        until=parse_timestamp_field(until_raw, "until") if until_raw else None,
        request_id=request_id,
        limit=_parse_int(_first(params, "limit"), "limit", default_limit, 1, max_limit),
        offset=_parse_int(_first(params, "offset"), "offset", 0, 0, None),
    )


def parse_health_query(
    params: Mapping[str, Any] | None,
    default_limit: int = DEFAULT_QUERY_LIMIT,
    max_limit: int = MAX_QUERY_LIMIT,
) -> HealthQuery:
    """Parse time bounds and limit for health history."""
    params = params or {}
    since_raw = _first(params, "since")
    until_raw = _first(params, "until")
    return HealthQuery(
        since=parse_timestamp_field(since_raw, "since") if since_raw else None,
        until=parse_timestamp_field(until_raw, "until") if until_raw else None,
        limit=_parse_int(_first(params, "limit"), "limit", default_limit, 1, max_limit),
    )


def parse_days(
    params: Mapping[str, Any] | None,
    default: int = DEFAULT_STATS_DAYS,
    maximum: int = MAX_STATS_DAYS,
) -> int:
    """Parse the ``days`` parameter for stats reads."""
    return _parse_int(_first(params or {}, "days"), "days", default, 1, maximum)


def parse_count(value: Any, field_name: str = "count") -> int:
    """Validate an increment amount; must be a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValidationError(
            f'"{field_name}" must be a positive integer', {"field": field_name}
        )
    return value


def parse_stats_increment(payload: Any) -> list[LevelCount]:
    """Parse ``{"level", "count"?}`` or ``{"counts": [...]}``.

    Returns:
        A list of increments; a single-level payload yields one item.
    """
    body = _require_mapping(payload)
    if "counts" in body:
        counts = body["counts"]
        if not isinstance(counts, list):
            raise ValidationError('"counts" must be an array', {"field": "counts"})
        increments = []
        for index, item in enumerate(counts):
            entry = _require_mapping(item, f"counts[{index}]")
            increments.append(
                LevelCount(
                    level=parse_level(entry.get("level"), f"counts[{index}].level"),
                    count=parse_count(entry.get("count"), f"counts[{index}].count"),
                )
            )
        return increments
    if body.get("level") is None:
        raise BadRequestError('"level" or "counts" required')
    level = parse_level(body["level"])
    count = parse_count(body["count"]) if "count" in body else 1
    return [LevelCount(level=level, count=count)]


def parse_prune(payload: Any) -> str:
    """Parse ``{"before": <timestamp>}`` into a canonical cutoff."""
    body = _require_mapping(payload)
    before = body.get("before")
    if not before:
        raise BadRequestError('"before" timestamp required')
    return parse_timestamp_field(before, "before")


def parse_urls(payload: Any) -> list[str]:
    """Parse ``{"urls": [...]}``; an empty list is valid."""
    body = _require_mapping(payload)
    urls = body.get("urls")
    if urls is None or not isinstance(urls, list):
        raise BadRequestError('"urls" array required')
    for index, url in enumerate(urls):
        if not isinstance(url, str):
            raise ValidationError(
                f"urls[{index}] must be a string", {"field": f"urls[{index}]"}
            )
    return list(urls)


def parse_health_result(payload: Any) -> HealthCheckInput:
    """Parse a probe outcome: ``url`` and ``ok`` are required."""
    body = _require_mapping(payload)
    url = body.get("url")
    if url is None or "ok" not in body:
        raise BadRequestError('"url" and "ok" required')
    if not isinstance(url, str):
        raise ValidationError('"url" must be a string', {"field": "url"})
    if not isinstance(body["ok"], bool):
        raise ValidationError('"ok" must be a boolean', {"field": "ok"})

    status_code = body.get("status_code")
    if status_code is not None and (
        isinstance(status_code, bool) or not isinstance(status_code, int)
    ):
        raise ValidationError(
            '"status_code" must be an integer', {"field": "status_code"}
        )
    latency_ms = body.get("latency_ms")
    if latency_ms is not None and (
        isinstance(latency_ms, bool) or not isinstance(latency_ms, int | float)
    ):
        raise ValidationError('"latency_ms" must be a number', {"field": "latency_ms"})
    error = body.get("error")
    if error is not None and not isinstance(error, str):
        raise ValidationError('"error" must be a string', {"field": "error"})
    timestamp = body.get("timestamp")
    if timestamp is not None:
        timestamp = parse_timestamp_field(timestamp, "timestamp")

    return HealthCheckInput(
        url=url,
        ok=body["ok"],
        status_code=status_code,
        latency_ms=float(latency_ms) if latency_ms is not None else None,
        error=error,
        timestamp=timestamp,
    )


def count_by_level(inputs: Iterable[LogInput | LogEntry]) -> list[LevelCount]:
    """Group entries by level, keeping first-seen level order."""
    counts: dict[LogLevel, int] = {}
    for item in inputs:
        counts[item.level] = counts.get(item.level, 0) + 1
    return [LevelCount(level=level, count=count) for level, count in counts.items()]
