"""popup_scheduler - timezone-aware scheduling engine for storefront popups.

Decides when a promotional popup should be live: one-time and recurring
schedules, predefined holiday and sale events, conflict detection and
upcoming-activation previews. The engine owns no I/O beyond the optional
JSON schedule store.
"""

__version__ = "0.1.0"

from typing import Optional

from popup_scheduler.domain.models import RecurrenceRule, Schedule, ScheduleType
from popup_scheduler.domain.schedule_manager import ScheduleManager, create_schedule_manager
from popup_scheduler.exceptions import (
    ConfigError,
    NotFoundError,
    SchedulerError,
    StoreError,
    ValidationError,
)

__all__ = [
    "ConfigError",
    "NotFoundError",
    "RecurrenceRule",
    "Schedule",
    "ScheduleManager",
    "ScheduleType",
    "SchedulerError",
    "StoreError",
    "ValidationError",
    "create_schedule_manager",
]


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the POPUP_SCHEDULER_DEBUG environment variable (truthy values:
    "1", "true", "yes", "on"), which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    from colorlog import ColoredFormatter

    debug_env = os.environ.get("POPUP_SCHEDULER_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure a handler if none are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        # HH:MM:SS  LEVEL   logger.name: message (only the level is colorized)
        fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
        log_colors = {
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        }
        handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors))
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str):
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )
