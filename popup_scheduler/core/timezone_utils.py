"""Timezone conversion utilities for the popup scheduling engine.

All per-schedule comparisons happen in the schedule's own IANA zone. There is
no global "current timezone": callers pass the zone explicitly.
"""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo
from collections.abc import Callable
from functools import lru_cache
from typing import ClassVar

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

TEST_TIME_ENV = "POPUP_SCHEDULER_TEST_TIME"


def now_utc() -> datetime.datetime:
    """Return current UTC time with tzinfo.

    Can be overridden for testing via the POPUP_SCHEDULER_TEST_TIME environment
    variable (ISO 8601, e.g. "2025-06-02T10:00:00+00:00"). Naive values are
    assumed to be UTC.
    """
    test_time = os.environ.get(TEST_TIME_ENV)
    if test_time:
        try:
            dt = date_parser.isoparse(test_time)
            if dt.tzinfo is not None:
                return dt.astimezone(datetime.UTC)
            return dt.replace(tzinfo=datetime.UTC)
        except ValueError as e:
            logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

    return datetime.datetime.now(datetime.UTC)


@lru_cache(maxsize=64)
def get_zone(tz_name: str) -> zoneinfo.ZoneInfo:
    """Return the ZoneInfo for a (possibly aliased) timezone name.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the identifier is unknown
    """
    return zoneinfo.ZoneInfo(TimeZoneResolver.TZ_ALIAS_MAP.get(tz_name, tz_name))


def parse_hhmm(value: str) -> tuple[int, int]:
    """Parse an ``HH:MM`` string into (hours, minutes).

    Raises:
        ValueError: If the string is not a valid 24-hour time of day
    """
    hours_str, sep, minutes_str = value.partition(":")
    if not sep or len(hours_str) != 2 or len(minutes_str) != 2:
        raise ValueError(f"expected HH:MM, got {value!r}")
    hours, minutes = int(hours_str), int(minutes_str)
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"time of day out of range: {value!r}")
    return hours, minutes


class TimeZoneResolver:
    """Converts between a schedule's wall-clock time and UTC instants."""

    # Obsolete/deprecated IANA names mapped to current names
    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        "US/Pacific": "America/Los_Angeles",
        "US/Mountain": "America/Denver",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "US/Alaska": "America/Anchorage",
        "US/Hawaii": "Pacific/Honolulu",
        "US/Arizona": "America/Phoenix",
        "GMT": "UTC",
        "Etc/UTC": "UTC",
        "Etc/GMT": "UTC",
        "Universal": "UTC",
        "Zulu": "UTC",
        "Asia/Rangoon": "Asia/Yangon",
        "America/Godthab": "America/Nuuk",
    }

    def __init__(self, clock: Callable[[], datetime.datetime] | None = None):
        """Initialize resolver.

        Args:
            clock: Callable returning the current aware UTC time (defaults to now_utc)
        """
        self.clock = clock or now_utc

    def now(self) -> datetime.datetime:
        """Return the current instant as an aware UTC datetime."""
        return self.ensure_aware(self.clock())

    @staticmethod
    def ensure_aware(instant: datetime.datetime) -> datetime.datetime:
        """Return ``instant`` as an aware datetime, treating naive values as UTC."""
        if instant.tzinfo is None:
            return instant.replace(tzinfo=datetime.UTC)
        return instant

    def normalize_timezone(self, tz_name: str) -> str | None:
        """Resolve aliases and validate a timezone name.

        Returns:
            Canonical IANA identifier, or None if the zone cannot be resolved

        Examples:
            >>> TimeZoneResolver().normalize_timezone("US/Pacific")
            'America/Los_Angeles'
            >>> TimeZoneResolver().normalize_timezone("Invalid/Zone") is None
            True
        """
        if not tz_name or not isinstance(tz_name, str):
            return None

        resolved = self.TZ_ALIAS_MAP.get(tz_name, tz_name)
        try:
            zoneinfo.ZoneInfo(resolved)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError, OSError):
            logger.debug("Unknown timezone identifier: %r", tz_name)
            return None
        return resolved

    def is_valid_timezone(self, tz_name: str) -> bool:
        """Check whether ``tz_name`` resolves to a known IANA zone."""
        return self.normalize_timezone(tz_name) is not None

    def to_zoned(self, instant: datetime.datetime, tz_name: str) -> datetime.datetime:
        """Express an instant in the given zone for date/weekday/time extraction.

        Args:
            instant: Aware datetime (naive values are taken as UTC)
            tz_name: IANA timezone identifier

        Returns:
            The same instant with ``tzinfo`` set to the target zone
        """
        return self.ensure_aware(instant).astimezone(get_zone(tz_name))

    def combine_date_time(
        self,
        day: datetime.date,
        time_of_day: str,
        tz_name: str,
    ) -> datetime.datetime:
        """Build a local wall-clock reading and convert it to a UTC instant.

        The conversion goes through the zone database, so the offset in effect
        on ``day`` is used. A reading inside a spring-forward gap resolves with
        the pre-transition offset; an ambiguous fall-back reading resolves to
        its first occurrence (fold=0).

        Args:
            day: Local calendar date
            time_of_day: Local ``HH:MM`` string
            tz_name: IANA timezone identifier

        Returns:
            Aware datetime in UTC
        """
        hours, minutes = parse_hhmm(time_of_day)
        local = datetime.datetime(
            day.year, day.month, day.day, hours, minutes, tzinfo=get_zone(tz_name)
        )
        return local.astimezone(datetime.UTC)

    def start_of_day(self, day: datetime.date, tz_name: str) -> datetime.datetime:
        """Return the UTC instant at which ``day`` begins in ``tz_name``."""
        return self.combine_date_time(day, "00:00", tz_name)

    def today(self, tz_name: str) -> datetime.date:
        """Return the current local date in ``tz_name``."""
        return self.to_zoned(self.now(), tz_name).date()
