"""Holiday and sale-event lookup for bootstrapping one-time schedules."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable, Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from popup_scheduler.core.timezone_utils import DEFAULT_TIMEZONE, TimeZoneResolver
from popup_scheduler.domain.models import (
    CustomHoliday,
    EventCategory,
    HolidayEvent,
    UpcomingHoliday,
)
from popup_scheduler.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_EVENTS_FILE = Path(__file__).resolve().parent.parent / "data" / "predefined_events.yaml"


def _parse_events(raw: Any, source: Path) -> dict[str, HolidayEvent]:
    if not isinstance(raw, Mapping) or not isinstance(raw.get("events"), Mapping):
        raise ConfigError(f"{source}: expected a mapping with an 'events' mapping")

    events: dict[str, HolidayEvent] = {}
    for key, entry in raw["events"].items():
        if not isinstance(entry, Mapping):
            raise ConfigError(f"{source}: event {key!r} must be a mapping")
        try:
            events[str(key).upper()] = HolidayEvent.model_validate({"key": str(key).upper(), **entry})
        except PydanticValidationError as exc:
            raise ConfigError(f"{source}: invalid event {key!r}: {exc}") from exc
    return events


@lru_cache(maxsize=8)
def _load_events_cached(path: Path) -> dict[str, HolidayEvent]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read predefined events from {path}: {exc}") from exc

    events = _parse_events(raw, path)
    logger.debug("Loaded %d predefined events from %s", len(events), path)
    return events


def load_predefined_events(path: str | Path | None = None) -> dict[str, HolidayEvent]:
    """Load the predefined-events table.

    Args:
        path: Optional YAML file; defaults to the table shipped with the package

    Returns:
        Mapping of upper-case event key -> HolidayEvent (a fresh dict per call)

    Raises:
        ConfigError: If the file cannot be read or does not match the schema
    """
    resolved = Path(path).resolve() if path else DEFAULT_EVENTS_FILE
    return dict(_load_events_cached(resolved))


class HolidayDetector:
    """Date -> named event lookup over predefined and custom holidays."""

    def __init__(
        self,
        country_code: str = "US",
        events: Mapping[str, HolidayEvent] | None = None,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime.datetime] | None = None,
        categories: Iterable[str] = (EventCategory.HOLIDAY.value,),
    ):
        """Initialize holiday detector.

        Args:
            country_code: Country the predefined table applies to
            events: Predefined events table (defaults to the packaged table)
            timezone: Zone used to decide what "today" is and to date aware datetimes
            clock: Callable returning the current UTC time
            categories: Event categories treated as holidays
        """
        self.country_code = country_code
        self.events = dict(events) if events is not None else load_predefined_events()
        self.timezone = timezone
        self.resolver = TimeZoneResolver(clock)
        self.categories = frozenset(categories)
        self.custom_holidays: dict[str, CustomHoliday] = {}

    def add_custom_holiday(
        self,
        name: str,
        date: datetime.date | str,
        recurring: bool = True,
    ) -> CustomHoliday:
        """Register a merchant-defined holiday (replaces one with the same name).

        Recurring holidays match the same month/day in every year.
        """
        holiday = CustomHoliday.model_validate({"name": name, "date": date, "recurring": recurring})
        self.custom_holidays[name] = holiday
        logger.debug("Added custom holiday %r on %s (recurring=%s)", name, holiday.date, recurring)
        return holiday

    def remove_custom_holiday(self, name: str) -> bool:
        """Remove a custom holiday by name; returns False if it was not registered."""
        return self.custom_holidays.pop(name, None) is not None

    def _to_local_date(self, day: datetime.date | datetime.datetime) -> datetime.date:
        if isinstance(day, datetime.datetime):
            if day.tzinfo is None:
                return day.date()
            return self.resolver.to_zoned(day, self.timezone).date()
        return day

    def is_holiday(self, day: datetime.date | datetime.datetime) -> HolidayEvent | CustomHoliday | None:
        """Return the holiday falling on ``day``, if any.

        Predefined events are checked first (exact date match, holiday
        categories only), then custom holidays.
        """
        local_day = self._to_local_date(day)

        for event in self.events.values():
            if event.category in self.categories and local_day in event.dates:
                return event

        for holiday in self.custom_holidays.values():
            if holiday.matches(local_day):
                return holiday

        return None

    def get_upcoming_holidays(self, days_ahead: int = 30) -> list[UpcomingHoliday]:
        """Scan each day from today forward and collect holidays.

        Args:
            days_ahead: Number of days to scan, today included

        Returns:
            Holidays in date order
        """
        today = self.resolver.today(self.timezone)
        upcoming: list[UpcomingHoliday] = []

        for offset in range(max(days_ahead, 0)):
            day = today + datetime.timedelta(days=offset)
            holiday = self.is_holiday(day)
            if holiday is not None:
                upcoming.append(UpcomingHoliday(date=day, holiday=holiday))

        return upcoming

    def get_event(self, event_key: str) -> HolidayEvent | None:
        """Look up a predefined event by key (case-insensitive)."""
        return self.events.get(event_key.upper())

    def list_events(self, category: str | None = None) -> list[HolidayEvent]:
        """Return predefined events, optionally filtered by category."""
        return [e for e in self.events.values() if category is None or e.category == category]
