"""Per-shop schedule managers sharing one store."""

from __future__ import annotations

import logging
import threading
from typing import Any

from popup_scheduler.core.timezone_utils import DEFAULT_TIMEZONE
from popup_scheduler.domain.schedule_manager import ScheduleManager
from popup_scheduler.protocols import ScheduleStore, TimeProvider

logger = logging.getLogger(__name__)


class ShopScheduleRegistry:
    """Hands out one ScheduleManager per shop.

    Each shop's index is owned by its manager, which serializes writes, so
    requests for different shops never contend on the same lock. Managers are
    created lazily and filled from the shared store on first use.
    """

    def __init__(
        self,
        store: ScheduleStore | None = None,
        default_timezone: str = DEFAULT_TIMEZONE,
        clock: TimeProvider | None = None,
        **manager_kwargs: Any,
    ):
        """Initialize registry.

        Args:
            store: Persistence collaborator shared by all shops
            default_timezone: Zone for schedules that do not name one
            clock: Callable returning the current UTC time
            **manager_kwargs: Extra keyword arguments for each ScheduleManager
        """
        self.store = store
        self.default_timezone = default_timezone
        self.clock = clock
        self.manager_kwargs = manager_kwargs
        self._lock = threading.Lock()
        self._managers: dict[str, ScheduleManager] = {}

    def get_manager(self, shop: str) -> ScheduleManager:
        """Return the manager for ``shop``, creating and loading it if needed."""
        if not shop or not isinstance(shop, str):
            raise ValueError("shop must be a non-empty string")

        with self._lock:
            manager = self._managers.get(shop)
            if manager is None:
                manager = ScheduleManager(
                    self.default_timezone,
                    shop=shop,
                    store=self.store,
                    clock=self.clock,
                    **self.manager_kwargs,
                )
                manager.load()
                self._managers[shop] = manager
                logger.debug("Created schedule manager for shop %s", shop)
            return manager

    def evict(self, shop: str) -> bool:
        """Drop a shop's manager so the next request reloads it from the store."""
        with self._lock:
            return self._managers.pop(shop, None) is not None

    def shops(self) -> list[str]:
        """Return the shops with a live manager."""
        with self._lock:
            return list(self._managers)
