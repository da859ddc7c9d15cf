"""Data models for the popup scheduling engine."""

import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel

# Open-ended schedules are modeled with a far-future end date
FAR_FUTURE_DATE = datetime.date(2099, 12, 31)

_MODEL_CONFIG = ConfigDict(
    use_enum_values=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class ScheduleType(str, Enum):
    """Supported schedule shapes."""

    ONE_TIME = "one_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


RECURRING_TYPES = frozenset(
    {
        ScheduleType.DAILY.value,
        ScheduleType.WEEKLY.value,
        ScheduleType.MONTHLY.value,
        ScheduleType.YEARLY.value,
        ScheduleType.CUSTOM.value,
    }
)


class EventCategory(str, Enum):
    """Categories for predefined calendar events."""

    HOLIDAY = "holiday"
    SALE = "sale"
    PROMOTION = "promotion"
    SEASONAL = "seasonal"
    CUSTOM = "custom"


class ConflictType(str, Enum):
    """Kinds of schedule conflicts."""

    OVERLAP = "overlap"
    RESOURCE = "resource"


# Recurrence rules: a tagged union over the supported shapes


class RecurrenceRule(BaseModel):
    """Fields shared by every recurrence shape."""

    interval: int = Field(default=1, ge=1, description="Repeat every N units")
    exceptions: list[datetime.date] = Field(
        default_factory=list, description="Local dates on which the rule never matches"
    )
    end_recurrence: Optional[datetime.date] = Field(
        default=None, description="Last local date on which the rule may match"
    )
    max_occurrences: Optional[int] = Field(
        default=None, ge=1, description="Upper bound on previewed occurrences"
    )

    model_config = _MODEL_CONFIG


class DailyRecurrence(RecurrenceRule):
    """Every ``interval`` days counted from the schedule's start date."""

    kind: Literal["daily"] = "daily"


class WeeklyRecurrence(RecurrenceRule):
    """Selected days of the week (0=Sunday .. 6=Saturday)."""

    kind: Literal["weekly"] = "weekly"
    days_of_week: list[Annotated[int, Field(ge=0, le=6)]] = Field(default_factory=list)


class MonthlyRecurrence(RecurrenceRule):
    """Selected days of the month (1..31)."""

    kind: Literal["monthly"] = "monthly"
    days_of_month: list[Annotated[int, Field(ge=1, le=31)]] = Field(default_factory=list)


class YearlyRecurrence(RecurrenceRule):
    """Selected months of the year (1..12)."""

    kind: Literal["yearly"] = "yearly"
    months_of_year: list[Annotated[int, Field(ge=1, le=12)]] = Field(default_factory=list)


class CustomRecurrence(RecurrenceRule):
    """Always matches; eligibility is delegated to the schedule's conditions."""

    kind: Literal["custom"] = "custom"
    options: dict[str, Any] = Field(default_factory=dict, description="Opaque rule payload")


Recurrence = Annotated[
    Union[
        DailyRecurrence,
        WeeklyRecurrence,
        MonthlyRecurrence,
        YearlyRecurrence,
        CustomRecurrence,
    ],
    Field(discriminator="kind"),
]


class Schedule(BaseModel):
    """A named time window controlling when a popup campaign may run."""

    id: str = Field(..., description="Schedule ID")
    name: str = Field(..., min_length=1, description="Human-readable schedule name")
    type: ScheduleType = Field(default=ScheduleType.ONE_TIME.value, description="Schedule shape")

    # Date/time window, interpreted in ``timezone``
    start_date: datetime.date = Field(..., description="First local date of the window")
    end_date: Optional[datetime.date] = Field(
        default=None, description="Last local date of the window (None = open-ended)"
    )
    start_time: str = Field(default="00:00", description="Local HH:MM lower bound, inclusive")
    end_time: str = Field(default="23:59", description="Local HH:MM upper bound, inclusive")
    timezone: str = Field(default="UTC", description="IANA timezone identifier")

    recurrence: Optional[Recurrence] = Field(default=None, description="Recurrence rule")

    # Opaque payloads
    popup_config: dict[str, Any] = Field(
        default_factory=dict, description="Popup settings merged into the served popup"
    )
    conditions: dict[str, Any] = Field(default_factory=dict, description="Extra predicates")

    is_active: bool = Field(default=True, description="Master on/off switch")
    priority: int = Field(default=1, description="Higher wins among simultaneous schedules")

    shop: Optional[str] = Field(default=None, description="Owning shop")
    created_at: datetime.datetime = Field(..., description="Creation time (UTC)")
    updated_at: datetime.datetime = Field(..., description="Last update time (UTC)")

    model_config = _MODEL_CONFIG

    @model_validator(mode="before")
    @classmethod
    def _tag_recurrence(cls, data: Any) -> Any:
        """Derive the recurrence ``kind`` tag from the schedule type.

        Recurring schedules without a rule get the empty rule for their type;
        an empty rule on a one-time schedule is dropped.
        """
        if not isinstance(data, dict):
            return data

        schedule_type = data.get("type", ScheduleType.ONE_TIME.value)
        if isinstance(schedule_type, ScheduleType):
            schedule_type = schedule_type.value
        recurrence = data.get("recurrence")

        if schedule_type == ScheduleType.ONE_TIME.value:
            if not recurrence:
                data = {**data, "recurrence": None}
            return data

        if not isinstance(schedule_type, str) or schedule_type not in RECURRING_TYPES:
            return data

        if recurrence is None:
            return {**data, "recurrence": {"kind": schedule_type}}
        if isinstance(recurrence, dict) and "kind" not in recurrence:
            return {**data, "recurrence": {**recurrence, "kind": schedule_type}}
        return data

    @model_validator(mode="after")
    def _check_recurrence_kind(self) -> "Schedule":
        if self.type == ScheduleType.ONE_TIME.value:
            if self.recurrence is not None:
                raise ValueError("one_time schedules cannot carry a recurrence rule")
        elif self.recurrence is None or self.recurrence.kind != self.type:
            raise ValueError(f"recurrence kind does not match schedule type {self.type!r}")
        return self

    @property
    def is_recurring(self) -> bool:
        """Check if the schedule repeats."""
        return self.type != ScheduleType.ONE_TIME.value

    @property
    def effective_end_date(self) -> datetime.date:
        """End date with the far-future sentinel substituted for open ranges."""
        return self.end_date or FAR_FUTURE_DATE

    @property
    def category(self) -> str:
        """Category from the popup payload, used for reporting only."""
        return str(self.popup_config.get("category") or "uncategorized")

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, dt: datetime.datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class HolidayEvent(BaseModel):
    """Predefined calendar event with known dates across several years."""

    key: str = Field(..., description="Stable lookup key, e.g. BLACK_FRIDAY")
    name: str = Field(..., description="Display name")
    category: EventCategory = Field(..., description="Event category")
    dates: list[datetime.date] = Field(default_factory=list, description="Known ISO dates")
    default_template: str = Field(..., description="Default popup template key")

    model_config = _MODEL_CONFIG


class CustomHoliday(BaseModel):
    """Merchant-defined holiday."""

    name: str
    date: datetime.date
    recurring: bool = True
    custom: bool = True

    model_config = _MODEL_CONFIG

    def matches(self, day: datetime.date) -> bool:
        """Check if the holiday falls on ``day``.

        Recurring holidays match the same month/day every year; a Feb 29
        holiday therefore only matches in leap years.
        """
        if not self.recurring:
            return self.date == day
        return (self.date.month, self.date.day) == (day.month, day.day)


class UpcomingHoliday(BaseModel):
    """A holiday found while scanning forward from today."""

    date: datetime.date
    holiday: Union[HolidayEvent, CustomHoliday]

    model_config = _MODEL_CONFIG


class PreviewEntry(BaseModel):
    """One future activation in a schedule preview."""

    date: datetime.datetime = Field(..., description="Activation instant (UTC)")
    duration_minutes: int = Field(..., description="Length of the daily window in minutes")
    active: bool = Field(..., description="Whether the schedule is live at that instant")

    model_config = _MODEL_CONFIG

    @field_serializer("date")
    def serialize_datetime(self, dt: datetime.datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class ScheduleConflict(BaseModel):
    """Schedules whose date ranges intersect the target schedule's range."""

    schedule: Schedule
    type: ConflictType
    conflicts_with: list[Schedule] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class BulkCreateError(BaseModel):
    """Failure record for one item of a bulk creation."""

    index: int
    config: Any
    error: str

    model_config = _MODEL_CONFIG


class BulkCreateResult(BaseModel):
    """Outcome of a partial-failure tolerant bulk creation."""

    created: list[Schedule] = Field(default_factory=list)
    errors: list[BulkCreateError] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class ScheduleStatistics(BaseModel):
    """Aggregate counts over the schedules held by a manager."""

    total: int = 0
    active: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    by_category: dict[str, int] = Field(default_factory=dict)
    upcoming_count: int = 0
    past_count: int = 0

    model_config = _MODEL_CONFIG
