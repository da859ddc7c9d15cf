"""Protocol definitions for scheduling engine collaborators.

The engine owns no I/O. Persistence and extra eligibility predicates are
injected through these interfaces.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, Optional, Protocol

if TYPE_CHECKING:
    from popup_scheduler.domain.models import Schedule


class TimeProvider(Protocol):
    """Protocol for time provider callables."""

    def __call__(self) -> datetime.datetime:
        """Return current UTC time.

        Returns:
            Current UTC datetime
        """
        ...


class ScheduleStore(Protocol):
    """Protocol for the persistence collaborator."""

    def load_schedules(self, shop: Optional[str]) -> list[Schedule]:
        """Load every schedule owned by a shop.

        Args:
            shop: Shop identifier (None for the default shop)

        Returns:
            Stored schedules
        """
        ...

    def save_schedule(self, schedule: Schedule) -> None:
        """Insert or replace a schedule (keyed by ``schedule.shop`` and ``schedule.id``).

        Args:
            schedule: Schedule to persist
        """
        ...

    def delete_schedule(self, schedule_id: str, shop: Optional[str]) -> bool:
        """Delete a schedule owned by a shop.

        Args:
            schedule_id: Schedule identifier
            shop: Owning shop identifier (None for the default shop)

        Returns:
            True if a schedule was removed
        """
        ...


class ConditionChecker(Protocol):
    """Protocol for evaluating a schedule's extra ``conditions`` payload."""

    def __call__(self, conditions: dict[str, Any], instant: datetime.datetime) -> bool:
        """Decide whether the conditions allow the schedule at ``instant``.

        Args:
            conditions: Opaque conditions stored on the schedule
            instant: Instant being checked (aware UTC)

        Returns:
            True if the schedule may be active
        """
        ...
