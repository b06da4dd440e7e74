"""Pure helpers for daily stat aggregation shared by stats adapters."""

from collections.abc import Iterable, Mapping
from datetime import date, timedelta

from applogs.core.models import DailyStat, LevelCount, RetentionPolicy, StatsTotals
from applogs.core.timestamps import date_key, date_keys_back


def apply_increments(stat: DailyStat, counts: Iterable[LevelCount]) -> DailyStat:
    """Return ``stat`` with every increment applied."""
    for item in counts:
        stat = stat.incremented(item.level, item.count)
    return stat


def expiry_cutoff(today: date, retention: RetentionPolicy) -> str:
    """Oldest date key still inside the retention window."""
    return date_key(today - timedelta(days=retention.max_age_days - 1))


def dense_range(
    stored: Mapping[str, DailyStat],
    today: date,
    days: int,
    retention: RetentionPolicy,
) -> list[DailyStat]:
    """Build a fixed-length, newest-first series.

    Dates without a record, or older than the retention window, are
    synthesized as zero-valued records.
    """
    cutoff = expiry_cutoff(today, retention)
    series = []
    for key in date_keys_back(today, days):
        stat = stored.get(key)
        if stat is None or key < cutoff:
            stat = DailyStat(date=key)
        series.append(stat)
    return series


def sum_totals(stats: Iterable[DailyStat]) -> StatsTotals:
    """Sum counters across records."""
    debug = info = warn = error = 0
    for stat in stats:
        debug += stat.debug
        info += stat.info
        warn += stat.warn
        error += stat.error
    return StatsTotals(debug=debug, info=info, warn=warn, error=error)
