"""Popup schedule manager: the top-level scheduling orchestrator.

Owns the in-memory schedule index for one shop and composes the timezone
resolver, recurrence engine, validator, conflict detector and holiday
detector. Writes to the index are serialized with a lock; queries work on
snapshots and are safe for any number of concurrent readers.
"""

from __future__ import annotations

import datetime
import logging
import threading
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from popup_scheduler.core.timezone_utils import DEFAULT_TIMEZONE, TimeZoneResolver, parse_hhmm
from popup_scheduler.domain.conflicts import ConflictDetector
from popup_scheduler.domain.holidays import HolidayDetector
from popup_scheduler.domain.models import (
    BulkCreateError,
    BulkCreateResult,
    EventCategory,
    HolidayEvent,
    PreviewEntry,
    Schedule,
    ScheduleConflict,
    ScheduleStatistics,
    ScheduleType,
)
from popup_scheduler.domain.recurrence import RecurrenceEngine
from popup_scheduler.domain.templates import get_template, merge_template
from popup_scheduler.domain.validator import (
    build_schedule,
    normalize_keys,
    validate_schedule_config,
)
from popup_scheduler.exceptions import NotFoundError, SchedulerError, ValidationError
from popup_scheduler.protocols import ConditionChecker, ScheduleStore, TimeProvider

logger = logging.getLogger(__name__)

# Hard bound on candidate days examined by a preview
MAX_PREVIEW_ITERATIONS = 1000


def allow_all_conditions(conditions: dict[str, Any], instant: datetime.datetime) -> bool:
    """Default condition checker: conditions never block a schedule."""
    return True


class ScheduleManager:
    """Creates, stores and evaluates popup schedules for a single shop."""

    def __init__(
        self,
        timezone: str = DEFAULT_TIMEZONE,
        *,
        shop: str | None = None,
        store: ScheduleStore | None = None,
        clock: TimeProvider | None = None,
        holiday_detector: HolidayDetector | None = None,
        events: Mapping[str, HolidayEvent] | None = None,
        condition_checker: ConditionChecker | None = None,
        recurrence_engine: RecurrenceEngine | None = None,
        conflict_detector: ConflictDetector | None = None,
        preview_iteration_cap: int = MAX_PREVIEW_ITERATIONS,
    ):
        """Initialize schedule manager.

        Args:
            timezone: Zone given to schedules that do not name one
            shop: Shop owning every schedule in this manager
            store: Optional persistence collaborator
            clock: Callable returning the current UTC time
            holiday_detector: Detector used for holiday bootstrapping
            events: Predefined events table (defaults to the detector's table)
            condition_checker: Evaluates each schedule's ``conditions``
            recurrence_engine: Recurrence predicates
            conflict_detector: Overlap detection strategy
            preview_iteration_cap: Candidate days examined per preview (at most 1000)
        """
        self.timezone = timezone
        self.shop = shop
        self.store = store
        self.resolver = TimeZoneResolver(clock)
        self.recurrence = recurrence_engine or RecurrenceEngine()
        self.conflict_detector = conflict_detector or ConflictDetector()
        self.holiday_detector = holiday_detector or HolidayDetector(
            events=events, timezone=timezone, clock=clock
        )
        self.events = dict(events) if events is not None else dict(self.holiday_detector.events)
        self.condition_checker = condition_checker or allow_all_conditions
        self.preview_iteration_cap = max(1, min(preview_iteration_cap, MAX_PREVIEW_ITERATIONS))

        self._lock = threading.RLock()
        self._schedules: dict[str, Schedule] = {}

    # --- index management -------------------------------------------------

    def load(self) -> int:
        """Replace the in-memory index with the store's schedules for this shop.

        Returns:
            Number of schedules loaded (0 when no store is configured)
        """
        if self.store is None:
            return 0

        schedules = self.store.load_schedules(self.shop)
        with self._lock:
            self._schedules = {schedule.id: schedule for schedule in schedules}
        logger.info("Loaded %d schedule(s) for shop %s", len(schedules), self.shop or "default")
        return len(schedules)

    def _snapshot(self) -> list[Schedule]:
        with self._lock:
            return list(self._schedules.values())

    def _persist(self, schedule: Schedule) -> None:
        if self.store is not None:
            self.store.save_schedule(schedule)

    def _generate_id(self, now: datetime.datetime) -> str:
        return f"schedule_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"

    def get_schedule(self, schedule_id: str) -> Schedule | None:
        """Return the schedule with ``schedule_id``, or None."""
        with self._lock:
            return self._schedules.get(schedule_id)

    def list_schedules(self) -> list[Schedule]:
        """Return all schedules in creation order."""
        return self._snapshot()

    def __len__(self) -> int:
        with self._lock:
            return len(self._schedules)

    # --- creation ---------------------------------------------------------

    def create_schedule(self, config: Mapping[str, Any]) -> Schedule:
        """Validate a schedule definition, store it and return it.

        Args:
            config: Schedule definition (snake_case or camelCase keys)

        Returns:
            The stored Schedule with generated ``id`` and timestamps

        Raises:
            ValidationError: If the definition breaks a validation rule
            StoreError: If the persistence collaborator fails
        """
        fields = validate_schedule_config(config, self.timezone)
        now = self.resolver.now()
        fields.setdefault("id", self._generate_id(now))
        fields["shop"] = self.shop if self.shop is not None else fields.get("shop")
        fields["created_at"] = now
        fields["updated_at"] = now
        schedule = build_schedule(fields)

        with self._lock:
            if schedule.id in self._schedules:
                raise ValidationError("duplicate_id", f"Schedule id already exists: {schedule.id}")
            self._persist(schedule)
            self._schedules[schedule.id] = schedule

        logger.info("Created %s schedule %s (%r)", schedule.type, schedule.id, schedule.name)
        return schedule

    def create_event_schedule(
        self,
        event_key: str,
        custom_config: Mapping[str, Any] | None = None,
    ) -> Schedule:
        """Create a one-time schedule for a predefined holiday or sale event.

        The event's earliest date whose year is the current year or later is
        used, even if that date has already passed this year.

        Args:
            event_key: Predefined event key, e.g. ``"BLACK_FRIDAY"`` (case-insensitive)
            custom_config: Overrides merged into the generated definition;
                its ``popup_config`` is merged over the event defaults

        Raises:
            NotFoundError: Unknown key, or no date in the current year or later
            ValidationError: If the merged definition is invalid
        """
        event = self.events.get(event_key.upper()) if isinstance(event_key, str) else None
        if event is None:
            raise NotFoundError(f"Unknown predefined event: {event_key}")

        current_year = self.resolver.today(self.timezone).year
        event_date = next((d for d in sorted(event.dates) if d.year >= current_year), None)
        if event_date is None:
            raise NotFoundError(f"No future dates available for event: {event.name}")

        custom = normalize_keys(custom_config or {})
        popup_config = {
            "template": event.default_template,
            "category": event.category,
            **(custom.get("popup_config") or {}),
        }
        config = {
            "name": f"{event.name} Campaign",
            "type": ScheduleType.ONE_TIME.value,
            "start_date": event_date,
            "end_date": event_date,
            **custom,
            "popup_config": popup_config,
        }
        return self.create_schedule(config)

    def create_recurring_schedule(
        self,
        base_config: Mapping[str, Any],
        recurrence_config: Mapping[str, Any],
    ) -> Schedule:
        """Merge a recurrence rule into a base definition and create it.

        Args:
            base_config: Schedule definition without recurrence
            recurrence_config: ``type`` plus interval, days/months sets,
                exceptions, end_recurrence, max_occurrences (``options`` for custom)

        Raises:
            ValidationError: If the merged definition is invalid
        """
        rule = normalize_keys(recurrence_config)
        schedule_type = rule.get("type")

        recurrence: dict[str, Any] = {
            "interval": rule.get("interval") or 1,
            "days_of_week": rule.get("days_of_week") or [],
            "days_of_month": rule.get("days_of_month") or [],
            "months_of_year": rule.get("months_of_year") or [],
            "exceptions": rule.get("exceptions") or [],
            "end_recurrence": rule.get("end_recurrence"),
            "max_occurrences": rule.get("max_occurrences"),
        }
        if schedule_type == ScheduleType.CUSTOM.value:
            recurrence["options"] = rule.get("options") or {}

        config = {**normalize_keys(base_config), "type": schedule_type, "recurrence": recurrence}
        return self.create_schedule(config)

    def create_template_schedule(
        self,
        template_key: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> Schedule:
        """Create a schedule from one of the built-in templates.

        Raises:
            NotFoundError: If the template key is unknown
            ValidationError: If the merged definition is invalid (e.g. no start date)
        """
        template = get_template(template_key)
        if template is None:
            raise NotFoundError(f"Unknown schedule template: {template_key}")
        return self.create_schedule(merge_template(template, normalize_keys(overrides or {})))

    def create_bulk_schedules(self, configs: Iterable[Any]) -> BulkCreateResult:
        """Create many schedules; one bad item never aborts the batch.

        Returns:
            Created schedules plus one error record (index, input, message) per failure
        """
        result = BulkCreateResult()
        for index, config in enumerate(configs):
            try:
                result.created.append(self.create_schedule(config))
            except SchedulerError as exc:
                logger.debug("Bulk item %d rejected: %s", index, exc)
                result.errors.append(BulkCreateError(index=index, config=config, error=str(exc)))

        logger.info(
            "Bulk creation finished: %d created, %d failed",
            len(result.created),
            len(result.errors),
        )
        return result

    def create_holiday_schedules(
        self,
        days_ahead: int = 30,
        custom_config: Mapping[str, Any] | None = None,
    ) -> BulkCreateResult:
        """Bootstrap one-time campaigns for the holidays in the next ``days_ahead`` days."""
        custom = normalize_keys(custom_config or {})
        configs = []

        for upcoming in self.holiday_detector.get_upcoming_holidays(days_ahead):
            holiday = upcoming.holiday
            popup_config: dict[str, Any] = {"category": EventCategory.CUSTOM.value}
            if isinstance(holiday, HolidayEvent):
                popup_config = {"template": holiday.default_template, "category": holiday.category}

            configs.append(
                {
                    "name": f"{holiday.name} Campaign",
                    "type": ScheduleType.ONE_TIME.value,
                    "start_date": upcoming.date,
                    "end_date": upcoming.date,
                    **custom,
                    "popup_config": {**popup_config, **(custom.get("popup_config") or {})},
                }
            )

        return self.create_bulk_schedules(configs)

    # --- updates ----------------------------------------------------------

    def update_schedule(self, schedule_id: str, config: Mapping[str, Any]) -> Schedule:
        """Replace a schedule's whole definition, keeping its id and creation time.

        Raises:
            NotFoundError: If the schedule does not exist
            ValidationError: If the new definition is invalid
        """
        fields = validate_schedule_config(config, self.timezone)

        with self._lock:
            existing = self._schedules.get(schedule_id)
            if existing is None:
                raise NotFoundError(f"Unknown schedule: {schedule_id}")

            fields["id"] = schedule_id
            fields["shop"] = existing.shop
            fields["created_at"] = existing.created_at
            fields["updated_at"] = self.resolver.now()
            schedule = build_schedule(fields)

            self._persist(schedule)
            self._schedules[schedule_id] = schedule

        logger.info("Updated schedule %s (%r)", schedule_id, schedule.name)
        return schedule

    def delete_schedule(self, schedule_id: str) -> bool:
        """Delete a schedule; returns False if it does not exist."""
        with self._lock:
            if schedule_id not in self._schedules:
                return False
            if self.store is not None:
                self.store.delete_schedule(schedule_id, self.shop)
            del self._schedules[schedule_id]

        logger.info("Deleted schedule %s", schedule_id)
        return True

    # --- evaluation -------------------------------------------------------

    def _resolve_instant(self, instant: datetime.datetime | None) -> datetime.datetime:
        if instant is None:
            return self.resolver.now()
        return self.resolver.ensure_aware(instant)

    def _in_date_range(self, schedule: Schedule, zoned: datetime.datetime) -> bool:
        return schedule.start_date <= zoned.date() <= schedule.effective_end_date

    def _in_time_window(self, schedule: Schedule, zoned: datetime.datetime) -> bool:
        # Zero-padded HH:MM strings order the same way as the times they encode
        time_str = zoned.strftime("%H:%M")
        return schedule.start_time <= time_str <= schedule.end_time

    def _matches_recurrence(self, schedule: Schedule, zoned: datetime.datetime) -> bool:
        if not schedule.is_recurring:
            return True
        if not self.recurrence.matches(
            schedule.type, zoned, schedule.recurrence, schedule.start_date
        ):
            return False
        return not self.recurrence.is_excluded(zoned.date(), schedule.recurrence)

    def _check_conditions(self, schedule: Schedule, instant: datetime.datetime) -> bool:
        try:
            return bool(self.condition_checker(schedule.conditions, instant))
        except Exception as e:
            logger.warning("Condition check for schedule %s raised: %s", schedule.id, e)
            return False

    def _is_live(self, schedule: Schedule, instant: datetime.datetime) -> bool:
        zoned = self.resolver.to_zoned(instant, schedule.timezone)
        return (
            self._in_date_range(schedule, zoned)
            and self._in_time_window(schedule, zoned)
            and self._matches_recurrence(schedule, zoned)
            and self._check_conditions(schedule, instant)
        )

    def is_active(self, schedule_id: str, instant: datetime.datetime | None = None) -> bool:
        """Check if a schedule should be live at ``instant`` (default: now).

        Unknown ids and schedules whose master switch is off return False.
        """
        schedule = self.get_schedule(schedule_id)
        if schedule is None or not schedule.is_active:
            return False
        return self._is_live(schedule, self._resolve_instant(instant))

    def get_active_schedules(self, instant: datetime.datetime | None = None) -> list[Schedule]:
        """Return schedules live at ``instant``, highest priority first.

        Ties keep creation order.
        """
        checked_at = self._resolve_instant(instant)
        active = [
            schedule
            for schedule in self._snapshot()
            if schedule.is_active and self._is_live(schedule, checked_at)
        ]
        active.sort(key=lambda schedule: -schedule.priority)
        return active

    def get_effective_popup_config(
        self,
        base_settings: Mapping[str, Any] | None = None,
        instant: datetime.datetime | None = None,
    ) -> dict[str, Any]:
        """Merge the winning schedule's popup payload over the base popup settings.

        Returns:
            A new dict; equal to ``base_settings`` when no schedule is live
        """
        settings = dict(base_settings or {})
        active = self.get_active_schedules(instant)
        if not active:
            return settings

        winner = active[0]
        logger.debug("Schedule %s (priority %d) wins popup config", winner.id, winner.priority)
        return {**settings, **winner.popup_config}

    # --- activation times -------------------------------------------------

    @staticmethod
    def calculate_duration(schedule: Schedule) -> int:
        """Length of the daily window in minutes."""
        start_hours, start_minutes = parse_hhmm(schedule.start_time)
        end_hours, end_minutes = parse_hhmm(schedule.end_time)
        return (end_hours * 60 + end_minutes) - (start_hours * 60 + start_minutes)

    def get_next_activation(
        self,
        schedule_id: str,
        now: datetime.datetime | None = None,
    ) -> datetime.datetime | None:
        """Return the next activation instant (UTC), or None.

        One-time schedules return their combined start instant while it is in
        the future. Recurring schedules return a single coarse step from now
        (interval days/weeks/months/years); this is not a search for the next
        matching instant. Custom schedules and unknown ids return None.
        """
        schedule = self.get_schedule(schedule_id)
        if schedule is None:
            return None

        current = self._resolve_instant(now)
        if not schedule.is_recurring:
            start = self.resolver.combine_date_time(
                schedule.start_date, schedule.start_time, schedule.timezone
            )
            return start if start > current else None

        interval = schedule.recurrence.interval if schedule.recurrence is not None else 1
        return self.recurrence.advance(current, schedule.timezone, schedule.type, interval)

    def generate_schedule_preview(
        self,
        schedule_id: str,
        occurrences: int = 10,
        now: datetime.datetime | None = None,
    ) -> list[PreviewEntry]:
        """List up to ``occurrences`` upcoming activations.

        Recurring schedules are walked one local day at a time from today,
        taking each day's start time as the candidate instant and keeping the
        days whose date range and recurrence rule match. At most
        ``preview_iteration_cap`` days are examined, so rules that can never
        match return an empty list.
        """
        schedule = self.get_schedule(schedule_id)
        if schedule is None or occurrences <= 0:
            return []

        current = self._resolve_instant(now)
        duration = self.calculate_duration(schedule)

        if not schedule.is_recurring:
            start = self.resolver.combine_date_time(
                schedule.start_date, schedule.start_time, schedule.timezone
            )
            if start <= current:
                return []
            return [
                PreviewEntry(
                    date=start,
                    duration_minutes=duration,
                    active=self.is_active(schedule.id, start),
                )
            ]

        rule = schedule.recurrence
        limit = occurrences
        last_day = schedule.effective_end_date
        if rule is not None:
            if rule.max_occurrences is not None:
                limit = min(limit, rule.max_occurrences)
            if rule.end_recurrence is not None:
                last_day = min(last_day, rule.end_recurrence)

        day = max(self.resolver.to_zoned(current, schedule.timezone).date(), schedule.start_date)
        preview: list[PreviewEntry] = []

        for _ in range(self.preview_iteration_cap):
            if len(preview) >= limit or day > last_day:
                break

            candidate = self.resolver.combine_date_time(day, schedule.start_time, schedule.timezone)
            zoned = self.resolver.to_zoned(candidate, schedule.timezone)
            if (
                candidate > current
                and self._in_date_range(schedule, zoned)
                and self._matches_recurrence(schedule, zoned)
            ):
                preview.append(
                    PreviewEntry(
                        date=candidate,
                        duration_minutes=duration,
                        active=self.is_active(schedule.id, candidate),
                    )
                )
            day += datetime.timedelta(days=1)

        return preview

    # --- reporting --------------------------------------------------------

    def detect_conflicts(self, schedule_id: str | None = None) -> list[ScheduleConflict]:
        """Find schedules whose date ranges overlap.

        Args:
            schedule_id: Check only this schedule (unknown ids yield no conflicts)

        Returns:
            Overlap conflicts; resource conflicts are reserved and currently never reported
        """
        schedules = self._snapshot()
        if schedule_id is None:
            return self.conflict_detector.detect(schedules)

        target = self.get_schedule(schedule_id)
        if target is None:
            return []
        return self.conflict_detector.detect(schedules, target)

    def get_schedule_statistics(self, now: datetime.datetime | None = None) -> ScheduleStatistics:
        """Aggregate counts by type, category and timing.

        A schedule is upcoming when its start date begins (in its own zone)
        after ``now``; every other schedule counts as past.
        """
        current = self._resolve_instant(now)
        stats = ScheduleStatistics()

        for schedule in self._snapshot():
            stats.total += 1
            if schedule.is_active:
                stats.active += 1

            stats.by_type[schedule.type] = stats.by_type.get(schedule.type, 0) + 1
            stats.by_category[schedule.category] = stats.by_category.get(schedule.category, 0) + 1

            if self.resolver.start_of_day(schedule.start_date, schedule.timezone) > current:
                stats.upcoming_count += 1
            else:
                stats.past_count += 1

        return stats


def create_schedule_manager(timezone: str = DEFAULT_TIMEZONE, **kwargs: Any) -> ScheduleManager:
    """Create a schedule manager (convenience function)."""
    return ScheduleManager(timezone, **kwargs)
