"""Ready-made schedule definitions for common campaign shapes."""

from __future__ import annotations

import copy
from typing import Any

from popup_scheduler.domain.models import ScheduleType

# Partial configs: callers supply at least ``start_date``
SCHEDULE_TEMPLATES: dict[str, dict[str, Any]] = {
    "FLASH_SALE": {
        "name": "Flash Sale",
        "type": ScheduleType.ONE_TIME.value,
        "priority": 10,
        "popup_config": {"template": "urgency", "urgency_timer": True},
    },
    "WEEKEND_PROMOTION": {
        "name": "Weekend Promotion",
        "type": ScheduleType.WEEKLY.value,
        "recurrence": {"days_of_week": [5, 6, 0], "interval": 1},  # Fri, Sat, Sun
        "priority": 5,
    },
    "MONTHLY_NEWSLETTER": {
        "name": "Monthly Newsletter Signup",
        "type": ScheduleType.MONTHLY.value,
        "recurrence": {"days_of_month": [1], "interval": 1},
        "priority": 3,
    },
    "HOLIDAY_CAMPAIGN": {
        "name": "Holiday Campaign",
        "type": ScheduleType.ONE_TIME.value,
        "priority": 8,
        "popup_config": {"template": "holiday"},
    },
}


def get_template(template_key: str) -> dict[str, Any] | None:
    """Return a deep copy of a template config, or None for unknown keys."""
    template = SCHEDULE_TEMPLATES.get(template_key.upper())
    return copy.deepcopy(template) if template is not None else None


def merge_template(template: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Overlay caller overrides on a template.

    ``popup_config`` is merged key by key; every other key is replaced.
    """
    merged = {**template, **overrides}
    popup_overrides = overrides.get("popup_config") or overrides.get("popupConfig")
    if popup_overrides:
        merged.pop("popupConfig", None)
        merged["popup_config"] = {**template.get("popup_config", {}), **popup_overrides}
    return merged
