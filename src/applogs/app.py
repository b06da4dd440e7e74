"""Application assembly: settings in, ASGI app out."""

import logging

from applogs.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from applogs.adapters.logging import AppLogHandler
from applogs.adapters.storage import (
    InMemoryStoreFactory,
    SQLiteStoreFactory,
    create_app_registry,
)
from applogs.config import Settings, load_settings
from applogs.core.models import RetentionPolicy
from applogs.core.ports import StoreFactoryPort
from applogs.core.timestamps import Clock, utcnow
from applogs.service.registry import CoordinatorRegistry

logger = logging.getLogger(__name__)


def create_store_factory(settings: Settings, clock: Clock = utcnow) -> StoreFactoryPort:
    """Pick in-memory or SQLite stores from ``settings.data_dir``."""
    retention = RetentionPolicy(max_age_days=settings.stats_retention_days)
    if settings.data_dir is None:
        return InMemoryStoreFactory(retention=retention, clock=clock)
    return SQLiteStoreFactory(settings.data_dir, retention=retention, clock=clock)


def create_app(settings: Settings | None = None, clock: Clock = utcnow) -> ASGIApp:
    """Build the service ASGI app.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        clock: Time source for stored timestamps and stats dates.

    Returns:
        ASGI application. When ``settings.self_app_id`` is set, records from
        the ``applogs`` logger are also stored under that app.
    """
    settings = settings or load_settings()
    registry = CoordinatorRegistry(create_store_factory(settings, clock), settings)
    apps = create_app_registry(settings.data_dir, clock=clock)

    if settings.self_app_id:
        handler = AppLogHandler(registry.get(settings.self_app_id), level=logging.INFO)
        service_logger = logging.getLogger("applogs")
        if service_logger.level == logging.NOTSET:
            service_logger.setLevel(logging.INFO)
        service_logger.addHandler(handler)
        logger.debug("Routing service logs to app %r", settings.self_app_id)

    return create_asgi_app(registry, apps, settings)
