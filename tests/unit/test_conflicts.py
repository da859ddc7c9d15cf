"""Unit tests for ConflictDetector."""

import pytest

from popup_scheduler.domain.conflicts import ConflictDetector

pytestmark = pytest.mark.unit


class TestConflictDetector:
    """Tests for date-range overlap detection."""

    def setup_method(self):
        """Set up test fixtures."""
        self.detector = ConflictDetector()

    def test_overlap_is_symmetric(self, make_schedule):
        a = make_schedule("a", "2025-06-01", "2025-06-10")
        b = make_schedule("b", "2025-06-05", "2025-06-20")

        assert self.detector.schedules_overlap(a, b) is True
        assert self.detector.schedules_overlap(b, a) is True

    def test_touching_ranges_overlap(self, make_schedule):
        a = make_schedule("a", "2025-06-01", "2025-06-10")
        b = make_schedule("b", "2025-06-10", "2025-06-12")

        assert self.detector.schedules_overlap(a, b) is True

    def test_disjoint_ranges_do_not_overlap(self, make_schedule):
        a = make_schedule("a", "2025-06-01", "2025-06-10")
        b = make_schedule("b", "2025-06-11", "2025-06-12")

        assert self.detector.schedules_overlap(a, b) is False
        assert self.detector.detect([a, b]) == []

    def test_open_ended_schedule_overlaps_future_ranges(self, make_schedule):
        a = make_schedule("a", "2025-06-01")
        b = make_schedule("b", "2090-01-01", "2090-01-02")

        assert self.detector.schedules_overlap(a, b) is True

    def test_time_windows_and_recurrence_are_ignored(self, make_schedule):
        morning = make_schedule("m", "2025-06-01", "2025-06-30", start_time="06:00", end_time="08:00")
        evening = make_schedule(
            "e",
            "2025-06-01",
            "2025-06-30",
            type="weekly",
            start_time="18:00",
            end_time="20:00",
            recurrence={"days_of_week": [0]},
        )

        assert self.detector.schedules_overlap(morning, evening) is True

    def test_detect_all_reports_each_side(self, make_schedule):
        a = make_schedule("a", "2025-06-01", "2025-06-10")
        b = make_schedule("b", "2025-06-05", "2025-06-20")
        c = make_schedule("c", "2025-07-01", "2025-07-02")

        conflicts = self.detector.detect([a, b, c])

        assert [(c.schedule.id, c.type, [s.id for s in c.conflicts_with]) for c in conflicts] == [
            ("a", "overlap", ["b"]),
            ("b", "overlap", ["a"]),
        ]

    def test_detect_single_target(self, make_schedule):
        a = make_schedule("a", "2025-06-01", "2025-06-10")
        b = make_schedule("b", "2025-06-05", "2025-06-20")
        c = make_schedule("c", "2025-06-09", "2025-06-09")

        conflicts = self.detector.detect([a, b, c], target=c)

        assert len(conflicts) == 1
        assert [s.id for s in conflicts[0].conflicts_with] == ["a", "b"]

    def test_resource_conflicts_are_never_reported(self, make_schedule):
        a = make_schedule("a", "2025-06-01", "2025-06-10")
        b = make_schedule("b", "2025-06-01", "2025-06-10")

        assert self.detector.find_resource_conflicts(a, [a, b]) == []
        assert all(conflict.type != "resource" for conflict in self.detector.detect([a, b]))
