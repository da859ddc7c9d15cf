"""Scheduling domain: models, recurrence, validation, holidays, conflicts and storage."""

from popup_scheduler.domain.conflicts import ConflictDetector
from popup_scheduler.domain.holidays import HolidayDetector, load_predefined_events
from popup_scheduler.domain.recurrence import RecurrenceEngine
from popup_scheduler.domain.registry import ShopScheduleRegistry
from popup_scheduler.domain.schedule_manager import ScheduleManager, create_schedule_manager
from popup_scheduler.domain.schedule_store import InMemoryScheduleStore, JsonScheduleStore

__all__ = [
    "ConflictDetector",
    "HolidayDetector",
    "InMemoryScheduleStore",
    "JsonScheduleStore",
    "RecurrenceEngine",
    "ScheduleManager",
    "ShopScheduleRegistry",
    "create_schedule_manager",
    "load_predefined_events",
]
