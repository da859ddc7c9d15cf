"""Unit tests for ShopScheduleRegistry."""

import datetime
import threading

import pytest

from popup_scheduler.domain.registry import ShopScheduleRegistry
from popup_scheduler.domain.schedule_store import InMemoryScheduleStore

pytestmark = pytest.mark.unit


class TestShopScheduleRegistry:
    """Tests for per-shop manager handling."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = InMemoryScheduleStore()
        now = datetime.datetime(2025, 6, 2, 10, 0, tzinfo=datetime.UTC)
        self.registry = ShopScheduleRegistry(store=self.store, clock=lambda: now)

    def test_returns_same_manager_per_shop(self):
        first = self.registry.get_manager("alpha.myshop.com")

        assert self.registry.get_manager("alpha.myshop.com") is first
        assert first.shop == "alpha.myshop.com"

    def test_shops_are_isolated(self):
        alpha = self.registry.get_manager("alpha")
        beta = self.registry.get_manager("beta")

        schedule = alpha.create_schedule({"name": "Alpha sale", "start_date": "2025-06-01"})

        assert beta.get_schedule(schedule.id) is None
        assert [s.id for s in self.store.load_schedules("alpha")] == [schedule.id]
        assert self.store.load_schedules("beta") == []

    def test_delete_keeps_other_shops_schedule_with_same_id(self):
        alpha = self.registry.get_manager("alpha")
        beta = self.registry.get_manager("beta")
        beta.create_schedule({"id": "promo", "name": "Beta promo", "start_date": "2025-06-01"})
        alpha.create_schedule({"id": "promo", "name": "Alpha promo", "start_date": "2025-06-01"})

        assert alpha.delete_schedule("promo") is True

        assert self.store.load_schedules("alpha") == []
        assert [s.id for s in self.store.load_schedules("beta")] == ["promo"]
        self.registry.evict("alpha")
        assert self.registry.get_manager("alpha").get_schedule("promo") is None
        assert beta.get_schedule("promo") is not None

    def test_evict_reloads_from_store(self):
        schedule = self.registry.get_manager("alpha").create_schedule(
            {"name": "Alpha sale", "start_date": "2025-06-01"}
        )

        assert self.registry.evict("alpha") is True
        assert self.registry.evict("alpha") is False

        reloaded = self.registry.get_manager("alpha")
        assert reloaded.get_schedule(schedule.id) is not None

    def test_shops_lists_live_managers(self):
        self.registry.get_manager("alpha")
        self.registry.get_manager("beta")

        assert sorted(self.registry.shops()) == ["alpha", "beta"]

    def test_rejects_empty_shop(self):
        with pytest.raises(ValueError):
            self.registry.get_manager("")

    def test_manager_settings_are_forwarded(self):
        registry = ShopScheduleRegistry(default_timezone="Europe/Berlin", preview_iteration_cap=7)

        manager = registry.get_manager("alpha")

        assert manager.timezone == "Europe/Berlin"
        assert manager.preview_iteration_cap == 7

    def test_concurrent_requests_share_one_manager(self):
        managers = []

        def worker():
            managers.append(self.registry.get_manager("alpha"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(m) for m in managers}) == 1
