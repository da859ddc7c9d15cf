"""Coarse conflict detection between stored schedules."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from popup_scheduler.domain.models import ConflictType, Schedule, ScheduleConflict

logger = logging.getLogger(__name__)


class ConflictDetector:
    """Finds schedules whose active date ranges intersect.

    Overlap is judged on ``[start_date, end_date]`` only; time-of-day windows
    and recurrence rules are ignored, so two schedules can be reported as
    conflicting even if they never run at the same instant.
    """

    @staticmethod
    def schedules_overlap(first: Schedule, second: Schedule) -> bool:
        """Check if the two schedules' date ranges intersect (inclusive)."""
        return not (
            first.start_date > second.effective_end_date
            or second.start_date > first.effective_end_date
        )

    def find_overlapping(self, target: Schedule, schedules: Sequence[Schedule]) -> list[Schedule]:
        """Return every other schedule whose range intersects ``target``'s."""
        return [
            schedule
            for schedule in schedules
            if schedule.id != target.id and self.schedules_overlap(target, schedule)
        ]

    def find_resource_conflicts(
        self,
        target: Schedule,
        schedules: Sequence[Schedule],
    ) -> list[Schedule]:
        """Return schedules competing with ``target`` for a shared resource.

        There is no resource model yet, so this always returns an empty list.
        Subclasses can override it once schedules reference resources.
        """
        return []

    def detect(
        self,
        schedules: Sequence[Schedule],
        target: Schedule | None = None,
    ) -> list[ScheduleConflict]:
        """Detect conflicts for ``target`` or, when omitted, for every schedule.

        Args:
            schedules: All schedules to compare against
            target: Optional single schedule to check

        Returns:
            One ScheduleConflict per (schedule, conflict type) with matches
        """
        targets = [target] if target is not None else list(schedules)
        conflicts: list[ScheduleConflict] = []

        for schedule in targets:
            overlapping = self.find_overlapping(schedule, schedules)
            if overlapping:
                conflicts.append(
                    ScheduleConflict(
                        schedule=schedule,
                        type=ConflictType.OVERLAP,
                        conflicts_with=overlapping,
                    )
                )

            resource_conflicts = self.find_resource_conflicts(schedule, schedules)
            if resource_conflicts:
                conflicts.append(
                    ScheduleConflict(
                        schedule=schedule,
                        type=ConflictType.RESOURCE,
                        conflicts_with=resource_conflicts,
                    )
                )

        logger.debug("Conflict detection over %d schedule(s) found %d", len(targets), len(conflicts))
        return conflicts
