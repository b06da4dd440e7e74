"""Per-app log storage with daily stats and health history."""

__version__ = "0.1.0"

from applogs.app import create_app, create_store_factory
from applogs.config import Settings, load_settings
from applogs.core.logs import debug, error, info, log, warn
from applogs.core.models import (
    AppRecord,
    DailyStat,
    HealthCheckResult,
    LogEntry,
    LogInput,
    LogLevel,
    LogQuery,
    RetentionPolicy,
    StatsTotals,
)
from applogs.core.result import ApiError, AppLogsError, Err, ErrorCode, Ok
from applogs.service.client import ClientError, LogsClient
from applogs.service.coordinator import AppStoreCoordinator
from applogs.service.registry import CoordinatorRegistry

__all__ = [
    "ApiError",
    "AppLogsError",
    "AppRecord",
    "AppStoreCoordinator",
    "ClientError",
    "CoordinatorRegistry",
    "DailyStat",
    "Err",
    "ErrorCode",
    "HealthCheckResult",
    "LogEntry",
    "LogInput",
    "LogLevel",
    "LogQuery",
    "LogsClient",
    "Ok",
    "RetentionPolicy",
    "Settings",
    "StatsTotals",
    "__version__",
    "create_app",
    "create_store_factory",
    "debug",
    "error",
    "info",
    "load_settings",
    "log",
    "warn",
]
