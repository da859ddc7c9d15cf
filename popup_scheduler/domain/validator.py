"""Structural validation of schedule definitions at creation time."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Mapping
from typing import Any

from dateutil import parser as date_parser
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake

from popup_scheduler.core.timezone_utils import TimeZoneResolver, parse_hhmm
from popup_scheduler.domain.models import RECURRING_TYPES, Schedule, ScheduleType
from popup_scheduler.exceptions import ValidationError

logger = logging.getLogger(__name__)

SCHEDULE_TYPE_VALUES = frozenset(t.value for t in ScheduleType)

_resolver = TimeZoneResolver()


def get_field(config: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Read a config field given either its snake_case or camelCase key."""
    if name in config:
        return config[name]
    return config.get(to_camel(name), default)


def normalize_keys(config: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``config`` with top-level camelCase keys in snake_case."""
    return {to_snake(key) if isinstance(key, str) else key: value for key, value in config.items()}


def coerce_date(value: Any, field: str) -> datetime.date:
    """Convert a date, datetime or ISO string into a date.

    Raises:
        ValidationError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return date_parser.isoparse(value).date()
        except ValueError as exc:
            raise ValidationError("invalid_date", f"{field} is not an ISO date: {value!r}") from exc
    raise ValidationError("invalid_date", f"{field} must be a date, got {type(value).__name__}")


def _normalize_type(value: Any) -> Any:
    if isinstance(value, ScheduleType):
        return value.value
    return value


def validate_schedule_config(
    config: Mapping[str, Any],
    default_timezone: str = "UTC",
) -> dict[str, Any]:
    """Check a schedule config and return it normalized for model construction.

    Rules, in order:
    1. ``name`` is a non-empty string (``missing_name``)
    2. ``start_date`` is present (``missing_start_date``) and parseable (``invalid_date``)
    3. ``end_date``, when present, is not before ``start_date`` (``end_before_start``)
    4. ``type`` is one of the six schedule types (``invalid_type``)
    5. ``timezone`` is a known IANA zone (``invalid_timezone``)
    6. ``start_time``/``end_time`` are HH:MM (``invalid_time``)
    7. a recurrence ``kind`` agrees with ``type`` (``recurrence_mismatch``)

    Empty day/month sets on recurring schedules are accepted; such schedules
    simply never match.

    Args:
        config: Raw schedule definition (snake_case or camelCase keys)
        default_timezone: Zone applied when the config does not name one

    Returns:
        Dict of snake_case fields ready for ``Schedule.model_validate``

    Raises:
        ValidationError: On the first violated rule
    """
    if not isinstance(config, Mapping):
        raise ValidationError("invalid_config", "Schedule config must be a mapping")

    name = get_field(config, "name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("missing_name", "Schedule name is required")

    start_raw = get_field(config, "start_date")
    if start_raw in (None, ""):
        raise ValidationError("missing_start_date", "Start date is required")
    start_date = coerce_date(start_raw, "start_date")

    end_raw = get_field(config, "end_date")
    end_date = None if end_raw in (None, "") else coerce_date(end_raw, "end_date")
    if end_date is not None and end_date < start_date:
        raise ValidationError("end_before_start", "End date must be after start date")

    schedule_type = _normalize_type(get_field(config, "type", ScheduleType.ONE_TIME.value))
    if not isinstance(schedule_type, str) or schedule_type not in SCHEDULE_TYPE_VALUES:
        raise ValidationError("invalid_type", f"Invalid schedule type: {schedule_type}")

    tz_raw = get_field(config, "timezone") or default_timezone
    timezone = _resolver.normalize_timezone(tz_raw)
    if timezone is None:
        raise ValidationError("invalid_timezone", f"Unknown timezone: {tz_raw!r}")

    start_time = get_field(config, "start_time") or "00:00"
    end_time = get_field(config, "end_time") or "23:59"
    for field, value in (("start_time", start_time), ("end_time", end_time)):
        try:
            parse_hhmm(value)
        except (TypeError, ValueError, AttributeError) as exc:
            raise ValidationError("invalid_time", f"{field} must be HH:MM, got {value!r}") from exc
    if start_time > end_time:
        logger.warning(
            "Schedule %r has start_time %s after end_time %s; it will never match",
            name,
            start_time,
            end_time,
        )

    recurrence = get_field(config, "recurrence")
    if isinstance(recurrence, Mapping):
        kind = recurrence.get("kind")
        if kind is not None and kind != schedule_type:
            raise ValidationError(
                "recurrence_mismatch",
                f"Recurrence kind {kind!r} does not match schedule type {schedule_type!r}",
            )
        if schedule_type not in RECURRING_TYPES and recurrence:
            raise ValidationError(
                "recurrence_mismatch", "one_time schedules cannot carry a recurrence rule"
            )

    normalized: dict[str, Any] = {
        "name": name,
        "type": schedule_type,
        "start_date": start_date,
        "end_date": end_date,
        "start_time": start_time,
        "end_time": end_time,
        "timezone": timezone,
        "recurrence": recurrence,
        "popup_config": get_field(config, "popup_config") or {},
        "conditions": get_field(config, "conditions") or {},
        "is_active": get_field(config, "is_active", True) is not False,
        "priority": get_field(config, "priority", 1),
    }
    if get_field(config, "id"):
        normalized["id"] = get_field(config, "id")
    if get_field(config, "shop"):
        normalized["shop"] = get_field(config, "shop")
    return normalized


def build_schedule(fields: Mapping[str, Any]) -> Schedule:
    """Construct a Schedule, reporting model-level failures as ValidationError."""
    try:
        return Schedule.model_validate(dict(fields))
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", str(exc))
        raise ValidationError("invalid_field", f"{location or 'schedule'}: {message}") from exc
