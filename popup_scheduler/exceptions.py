"""Exception hierarchy for the popup scheduling engine.

Library code raises these; callers (route handlers, the CLI) decide how to
surface them. Query operations follow a soft-miss contract and never raise
for unknown schedule ids.
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base exception for all scheduling engine errors.

    Bulk operations catch this base class to record per-item failures
    without aborting the whole batch.
    """


class ValidationError(SchedulerError):
    """A schedule definition is structurally invalid.

    Raised synchronously at creation/update time only. The ``rule`` attribute
    names the violated rule so callers can map it to a user-facing message:

    - ``missing_name`` / ``missing_start_date``
    - ``end_before_start``
    - ``invalid_type``
    - ``invalid_config`` / ``invalid_date`` / ``invalid_time``
    - ``invalid_timezone`` / ``recurrence_mismatch`` / ``invalid_field``
    - ``duplicate_id``
    """

    def __init__(self, rule: str, message: str) -> None:
        super().__init__(message)
        self.rule = rule


class NotFoundError(SchedulerError):
    """A referenced predefined event (or one of its dates) does not exist.

    Raised when:
    - the event key is not in the predefined-events table
    - the event has no date in the current year or later
    - an update/delete targets an unknown schedule id
    """


class StoreError(SchedulerError):
    """Persistence collaborator failed to load or save schedules."""


class ConfigError(SchedulerError):
    """Configuration file or reference data could not be parsed."""
