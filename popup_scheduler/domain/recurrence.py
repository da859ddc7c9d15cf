"""Recurrence matching for recurring popup schedules.

The engine answers two questions for a zoned instant: does its calendar
position match the schedule's rule, and what single step reaches the next
candidate. There is no general rule interpreter; each shape has its own
predicate.
"""

from __future__ import annotations

import datetime
import logging

from dateutil.relativedelta import relativedelta

from popup_scheduler.core.timezone_utils import get_zone
from popup_scheduler.domain.models import (
    CustomRecurrence,
    DailyRecurrence,
    MonthlyRecurrence,
    RecurrenceRule,
    ScheduleType,
    WeeklyRecurrence,
    YearlyRecurrence,
)

logger = logging.getLogger(__name__)


def day_of_week(day: datetime.date) -> int:
    """Return the day of week with 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


class RecurrenceEngine:
    """Pure predicates over zoned instants and recurrence rules."""

    def matches(
        self,
        schedule_type: str,
        zoned: datetime.datetime,
        rule: RecurrenceRule | None,
        anchor: datetime.date,
    ) -> bool:
        """Check if ``zoned`` falls on a day selected by the rule.

        Args:
            schedule_type: One of the recurring ScheduleType values
            zoned: Instant already expressed in the schedule's timezone
            rule: The schedule's recurrence rule
            anchor: Day 0 for interval counting (the schedule's start date)

        Returns:
            True if the calendar position matches the rule
        """
        if schedule_type == ScheduleType.DAILY.value and isinstance(rule, DailyRecurrence):
            return self.matches_daily(zoned, rule, anchor)
        if schedule_type == ScheduleType.WEEKLY.value and isinstance(rule, WeeklyRecurrence):
            return self.matches_weekly(zoned, rule)
        if schedule_type == ScheduleType.MONTHLY.value and isinstance(rule, MonthlyRecurrence):
            return self.matches_monthly(zoned, rule)
        if schedule_type == ScheduleType.YEARLY.value and isinstance(rule, YearlyRecurrence):
            return self.matches_yearly(zoned, rule)
        if schedule_type == ScheduleType.CUSTOM.value:
            return True

        logger.debug("No recurrence predicate for type=%r rule=%r", schedule_type, rule)
        return False

    def matches_daily(
        self,
        zoned: datetime.datetime,
        rule: DailyRecurrence,
        anchor: datetime.date,
    ) -> bool:
        """Every ``interval`` local days, counting from ``anchor`` as day 0.

        Whole calendar days are counted, so DST transitions never shift the
        cycle.
        """
        days_between = (zoned.date() - anchor).days
        return days_between % rule.interval == 0

    def matches_weekly(self, zoned: datetime.datetime, rule: WeeklyRecurrence) -> bool:
        """Local day of week is one of ``days_of_week``."""
        return day_of_week(zoned.date()) in rule.days_of_week

    def matches_monthly(self, zoned: datetime.datetime, rule: MonthlyRecurrence) -> bool:
        """Local day of month is one of ``days_of_month``."""
        return zoned.day in rule.days_of_month

    def matches_yearly(self, zoned: datetime.datetime, rule: YearlyRecurrence) -> bool:
        """Local month is one of ``months_of_year``."""
        return zoned.month in rule.months_of_year

    def is_excluded(self, day: datetime.date, rule: RecurrenceRule | None) -> bool:
        """Check exception dates and the recurrence end date.

        Args:
            day: Local date in the schedule's timezone
            rule: Recurrence rule (None never excludes)

        Returns:
            True if the rule must not match on ``day``
        """
        if rule is None:
            return False
        if day in rule.exceptions:
            return True
        return rule.end_recurrence is not None and day > rule.end_recurrence

    def step(self, schedule_type: str, interval: int = 1) -> relativedelta | None:
        """Return the advance step for a recurring type, scaled by ``interval``.

        Custom schedules have no natural unit and return None.
        """
        if schedule_type == ScheduleType.DAILY.value:
            return relativedelta(days=interval)
        if schedule_type == ScheduleType.WEEKLY.value:
            return relativedelta(weeks=interval)
        if schedule_type == ScheduleType.MONTHLY.value:
            return relativedelta(months=interval)
        if schedule_type == ScheduleType.YEARLY.value:
            return relativedelta(years=interval)
        return None

    def advance(
        self,
        instant: datetime.datetime,
        tz_name: str,
        schedule_type: str,
        interval: int = 1,
    ) -> datetime.datetime | None:
        """Advance ``instant`` by one step on the schedule's local wall clock.

        The step is applied to the local reading so "one day later" keeps the
        same wall-clock time across DST changes. Month/year steps clamp to
        the last valid day (Jan 31 + 1 month = Feb 28/29).

        Returns:
            Aware UTC datetime, or None for types without a step
        """
        delta = self.step(schedule_type, interval)
        if delta is None:
            return None

        zone = get_zone(tz_name)
        local = instant.astimezone(zone).replace(tzinfo=None) + delta
        return local.replace(tzinfo=zone).astimezone(datetime.UTC)

    def describe(self, rule: RecurrenceRule | None) -> str:
        """Return a short human-readable description of a rule."""
        if rule is None:
            return "once"
        if isinstance(rule, DailyRecurrence):
            return "daily" if rule.interval == 1 else f"every {rule.interval} days"
        if isinstance(rule, WeeklyRecurrence):
            names = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
            days = ", ".join(names[d] for d in sorted(set(rule.days_of_week)))
            return f"weekly on {days}" if days else "weekly (no days selected)"
        if isinstance(rule, MonthlyRecurrence):
            days = ", ".join(str(d) for d in sorted(set(rule.days_of_month)))
            return f"monthly on day {days}" if days else "monthly (no days selected)"
        if isinstance(rule, YearlyRecurrence):
            months = ", ".join(str(m) for m in sorted(set(rule.months_of_year)))
            return f"yearly in month {months}" if months else "yearly (no months selected)"
        if isinstance(rule, CustomRecurrence):
            return "custom"
        return "unknown"
