"""Service configuration loaded from environment variables."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        data_dir: Directory for per-app SQLite files. None keeps everything
            in memory; ":memory:" uses in-memory SQLite.
        stats_retention_days: Days a DailyStat record is kept.
        default_query_limit: Result cap when a query gives no limit.
        max_query_limit: Largest accepted limit.
        max_stats_days: Largest accepted ``days`` for stats reads.
        health_timeout: Seconds before a health probe gives up.
        self_app_id: App that receives the service's own log records.
    """

    data_dir: str | None = None
    stats_retention_days: int = 30
    default_query_limit: int = 100
    max_query_limit: int = 1000
    max_stats_days: int = 365
    health_timeout: float = 5.0
    self_app_id: str | None = None


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", name, raw)
        return default
    if value < 1:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """
    Load settings from APPLOGS_* environment variables.

    Unset or invalid values fall back to the defaults on Settings.
    """
    env = os.environ if env is None else env
    defaults = Settings()
    default_limit = _int_env(env, "APPLOGS_DEFAULT_QUERY_LIMIT", defaults.default_query_limit)
    max_limit = _int_env(env, "APPLOGS_MAX_QUERY_LIMIT", defaults.max_query_limit)
    if default_limit > max_limit:
        logger.warning(
            "APPLOGS_DEFAULT_QUERY_LIMIT exceeds APPLOGS_MAX_QUERY_LIMIT; using %d",
            max_limit,
        )
        default_limit = max_limit
    return Settings(
        data_dir=env.get("APPLOGS_DATA_DIR") or None,
        stats_retention_days=_int_env(
            env, "APPLOGS_STATS_RETENTION_DAYS", defaults.stats_retention_days
        ),
        default_query_limit=default_limit,
        max_query_limit=max_limit,
        max_stats_days=_int_env(env, "APPLOGS_MAX_STATS_DAYS", defaults.max_stats_days),
        health_timeout=_float_env(env, "APPLOGS_HEALTH_TIMEOUT", defaults.health_timeout),
        self_app_id=env.get("APPLOGS_SELF_APP_ID") or None,
    )
