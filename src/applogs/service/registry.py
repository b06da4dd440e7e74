"""Name-addressed registry of per-app coordinators."""

import logging
from types import TracebackType

from applogs.config import Settings
from applogs.core.ports import StoreFactoryPort
from applogs.service.coordinator import AppStoreCoordinator

logger = logging.getLogger(__name__)


class CoordinatorRegistry:
    """Maps app identifiers to coordinators, creating them on first use.

    ``get`` never awaits, so two callers asking for the same id on one
    event loop always receive the same instance.
    """

    def __init__(
        self,
        factory: StoreFactoryPort,
        settings: Settings | None = None,
    ) -> None:
        self._factory = factory
        self._settings = settings or Settings()
        self._coordinators: dict[str, AppStoreCoordinator] = {}

    def get(self, app_id: str) -> AppStoreCoordinator:
        """Return the coordinator for ``app_id``, creating it if needed."""
        if not isinstance(app_id, str) or not app_id:
            raise ValueError("app_id must be a non-empty string")
        coordinator = self._coordinators.get(app_id)
        if coordinator is None:
            coordinator = AppStoreCoordinator(
                app_id, self._factory.create(app_id), self._settings
            )
            self._coordinators[app_id] = coordinator
            logger.debug("Materialized coordinator for app %r", app_id)
        return coordinator

    def app_ids(self) -> list[str]:
        """Identifiers of coordinators materialized so far."""
        return sorted(self._coordinators)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._coordinators

    def __len__(self) -> int:
        return len(self._coordinators)

    async def close(self) -> None:
        """Close every coordinator's stores and forget them."""
        coordinators = list(self._coordinators.values())
        self._coordinators.clear()
        for coordinator in coordinators:
            await coordinator.close()

    async def __aenter__(self) -> "CoordinatorRegistry":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
