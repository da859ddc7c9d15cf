"""Shared fixtures for popup_scheduler tests."""

import datetime
import logging
from collections.abc import Callable, Generator
from typing import Any

import pytest

from popup_scheduler.core.scheduler_logging import SCHEDULER_MODULES
from popup_scheduler.domain.models import Schedule
from popup_scheduler.domain.schedule_manager import ScheduleManager

# Monday 2025-06-02 10:00 UTC
FIXED_NOW = datetime.datetime(2025, 6, 2, 10, 0, tzinfo=datetime.UTC)


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")


@pytest.fixture
def fixed_now() -> datetime.datetime:
    """Deterministic 'now' used by clocks in these tests."""
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime.datetime]:
    """Clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def manager(clock: Callable[[], datetime.datetime]) -> ScheduleManager:
    """UTC schedule manager without a store, frozen at FIXED_NOW."""
    return ScheduleManager("UTC", clock=clock)


@pytest.fixture
def make_schedule() -> Callable[..., Schedule]:
    """Factory building Schedule models directly, bypassing the manager.

    Only ``id`` and ``start_date`` are required; everything else has a
    sensible default and may be overridden by keyword.
    """

    def _make(schedule_id: str, start_date: str, end_date: str | None = None, **fields: Any) -> Schedule:
        return Schedule.model_validate(
            {
                "id": schedule_id,
                "name": fields.pop("name", f"Schedule {schedule_id}"),
                "start_date": start_date,
                "end_date": end_date,
                "created_at": FIXED_NOW,
                "updated_at": FIXED_NOW,
                **fields,
            }
        )

    return _make


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Clear POPUP_SCHEDULER_* variables so host settings never leak into tests.

    Some tests set POPUP_SCHEDULER_TEST_TIME to freeze the default clock;
    monkeypatch restores the environment afterwards.
    """
    for name in (
        "POPUP_SCHEDULER_TEST_TIME",
        "POPUP_SCHEDULER_DEBUG",
        "POPUP_SCHEDULER_LOG_LEVEL",
        "POPUP_SCHEDULER_DEFAULT_TIMEZONE",
        "POPUP_SCHEDULER_COUNTRY_CODE",
        "POPUP_SCHEDULER_STORE_PATH",
        "POPUP_SCHEDULER_EVENTS_FILE",
        "POPUP_SCHEDULER_PREVIEW_ITERATION_CAP",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def restore_logging_levels() -> Generator[None, Any, None]:
    """Undo logger level changes made by logging setup under test."""
    names = ["", *SCHEDULER_MODULES]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)
