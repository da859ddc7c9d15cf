"""Unit tests for schedule definition validation."""

import datetime

import pytest

from popup_scheduler.domain.validator import (
    build_schedule,
    get_field,
    normalize_keys,
    validate_schedule_config,
)
from popup_scheduler.exceptions import SchedulerError, ValidationError

pytestmark = pytest.mark.unit

NOW = datetime.datetime(2025, 6, 2, 10, 0, tzinfo=datetime.UTC)


def assert_rule(config, rule):
    with pytest.raises(ValidationError) as exc_info:
        validate_schedule_config(config)
    assert exc_info.value.rule == rule


class TestValidateScheduleConfig:
    """Tests for validate_schedule_config."""

    def test_minimal_config_gets_defaults(self):
        fields = validate_schedule_config({"name": "Launch", "start_date": "2025-06-01"})

        assert fields["type"] == "one_time"
        assert fields["start_date"] == datetime.date(2025, 6, 1)
        assert fields["end_date"] is None
        assert fields["start_time"] == "00:00"
        assert fields["end_time"] == "23:59"
        assert fields["timezone"] == "UTC"
        assert fields["is_active"] is True
        assert fields["priority"] == 1
        assert "id" not in fields

    def test_accepts_camel_case_keys(self):
        fields = validate_schedule_config(
            {
                "name": "Launch",
                "startDate": "2025-06-01",
                "endDate": "2025-06-30",
                "startTime": "09:00",
                "isActive": False,
                "popupConfig": {"headline": "Hi"},
            }
        )

        assert fields["end_date"] == datetime.date(2025, 6, 30)
        assert fields["start_time"] == "09:00"
        assert fields["is_active"] is False
        assert fields["popup_config"] == {"headline": "Hi"}

    def test_default_timezone_applies_and_aliases_resolve(self):
        fields = validate_schedule_config({"name": "a", "start_date": "2025-06-01"}, "Europe/Paris")
        assert fields["timezone"] == "Europe/Paris"

        fields = validate_schedule_config(
            {"name": "a", "start_date": "2025-06-01", "timezone": "US/Eastern"}
        )
        assert fields["timezone"] == "America/New_York"

    def test_priority_zero_is_kept(self):
        fields = validate_schedule_config({"name": "a", "start_date": "2025-06-01", "priority": 0})

        assert fields["priority"] == 0

    def test_missing_name(self):
        assert_rule({"start_date": "2025-06-01"}, "missing_name")
        assert_rule({"name": "   ", "start_date": "2025-06-01"}, "missing_name")

    def test_missing_start_date(self):
        assert_rule({"name": "a"}, "missing_start_date")

    def test_end_before_start(self):
        assert_rule(
            {"name": "a", "start_date": "2025-06-10", "end_date": "2025-06-01"},
            "end_before_start",
        )

    def test_same_day_range_is_valid(self):
        fields = validate_schedule_config(
            {"name": "a", "start_date": "2025-06-10", "end_date": "2025-06-10"}
        )

        assert fields["end_date"] == fields["start_date"]

    def test_invalid_type(self):
        assert_rule({"name": "a", "start_date": "2025-06-01", "type": "hourly"}, "invalid_type")

    @pytest.mark.parametrize("value", [{"kind": "weekly"}, ["weekly"], 3])
    def test_non_string_type_is_invalid_type(self, value):
        assert_rule({"name": "a", "start_date": "2025-06-01", "type": value}, "invalid_type")

    def test_invalid_timezone(self):
        assert_rule(
            {"name": "a", "start_date": "2025-06-01", "timezone": "Mars/Olympus"},
            "invalid_timezone",
        )

    @pytest.mark.parametrize("value", ["9am", "25:00", 900])
    def test_invalid_time(self, value):
        assert_rule({"name": "a", "start_date": "2025-06-01", "start_time": value}, "invalid_time")

    def test_invalid_date(self):
        assert_rule({"name": "a", "start_date": "not-a-date"}, "invalid_date")
        assert_rule({"name": "a", "start_date": 20250601}, "invalid_date")

    def test_recurrence_kind_must_match_type(self):
        assert_rule(
            {
                "name": "a",
                "start_date": "2025-06-01",
                "type": "weekly",
                "recurrence": {"kind": "daily"},
            },
            "recurrence_mismatch",
        )

    def test_one_time_rejects_recurrence(self):
        assert_rule(
            {"name": "a", "start_date": "2025-06-01", "recurrence": {"daysOfWeek": [1]}},
            "recurrence_mismatch",
        )

    def test_non_mapping_config(self):
        assert_rule(["name", "a"], "invalid_config")

    def test_empty_day_set_is_accepted(self):
        fields = validate_schedule_config(
            {
                "name": "a",
                "start_date": "2025-06-01",
                "type": "weekly",
                "recurrence": {"days_of_week": []},
            }
        )

        assert fields["recurrence"] == {"days_of_week": []}

    def test_inverted_time_window_is_accepted_with_warning(self, caplog):
        with caplog.at_level("WARNING", logger="popup_scheduler.domain.validator"):
            fields = validate_schedule_config(
                {"name": "Night", "start_date": "2025-06-01", "start_time": "22:00", "end_time": "02:00"}
            )

        assert fields["start_time"] == "22:00"
        assert "never match" in caplog.text

    def test_validation_error_is_scheduler_error(self):
        with pytest.raises(SchedulerError):
            validate_schedule_config({"start_date": "2025-06-01"})


class TestBuildSchedule:
    """Tests for build_schedule."""

    def _fields(self, **overrides):
        fields = validate_schedule_config({"name": "a", "start_date": "2025-06-01", **overrides})
        fields.update(id="s1", created_at=NOW, updated_at=NOW)
        return fields

    def test_builds_recurring_schedule_with_empty_rule(self):
        schedule = build_schedule(self._fields(type="weekly"))

        assert schedule.recurrence is not None
        assert schedule.recurrence.kind == "weekly"
        assert schedule.recurrence.days_of_week == []

    @pytest.mark.parametrize("recurrence", [[], {}, None])
    def test_one_time_with_empty_recurrence_has_no_rule(self, recurrence):
        schedule = build_schedule(self._fields(recurrence=recurrence))

        assert schedule.type == "one_time"
        assert schedule.recurrence is None

    def test_model_failures_become_invalid_field(self):
        with pytest.raises(ValidationError) as exc_info:
            build_schedule(self._fields(priority="high"))

        assert exc_info.value.rule == "invalid_field"
        assert "priority" in str(exc_info.value)
        assert exc_info.value.__cause__ is not None

    def test_out_of_range_weekday_is_invalid_field(self):
        with pytest.raises(ValidationError) as exc_info:
            build_schedule(self._fields(type="weekly", recurrence={"daysOfWeek": [7]}))

        assert exc_info.value.rule == "invalid_field"


class TestKeyHelpers:
    """Tests for snake/camel key helpers."""

    def test_get_field_reads_either_spelling(self):
        assert get_field({"startDate": "x"}, "start_date") == "x"
        assert get_field({"start_date": "y"}, "start_date") == "y"
        assert get_field({}, "start_date", "z") == "z"

    def test_normalize_keys(self):
        assert normalize_keys({"popupConfig": {}, "isActive": True, "name": "a"}) == {
            "popup_config": {},
            "is_active": True,
            "name": "a",
        }
