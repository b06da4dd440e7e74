"""Timestamp helpers.

All stored timestamps use one canonical UTC form, ``YYYY-MM-DDTHH:MM:SS.mmmZ``,
so that lexical order equals chronological order inside SQLite.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def format_timestamp(moment: datetime) -> str:
    """Format a datetime in the canonical millisecond UTC form.

    Naive datetimes are taken to be UTC already.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
        f".{moment.microsecond // 1000:03d}Z"
    )


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Raises:
        ValueError: If the string is not valid ISO-8601.
        OverflowError: If the UTC equivalent falls outside the datetime range.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def normalize_timestamp(value: str) -> str:
    """Parse and re-format a timestamp in canonical form."""
    return format_timestamp(parse_timestamp(value))


def utc_date(moment: datetime) -> date:
    """Return the UTC calendar day of a datetime; naive ones are taken as UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return moment.date()


def date_key(day: date | datetime) -> str:
    """Return the YYYY-MM-DD key for a calendar day (UTC for datetimes)."""
    if isinstance(day, datetime):
        day = utc_date(day)
    return day.isoformat()


def date_keys_back(today: date, days: int) -> list[str]:
    """Return ``days`` date keys from ``today`` backwards, newest first."""
    return [date_key(today - timedelta(days=offset)) for offset in range(days)]
