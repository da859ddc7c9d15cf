"""
Central logging configuration for popup_scheduler.

Sets package logger levels and keeps the preview and hot-path modules quiet
unless debugging is requested.
"""

import logging
import os
from typing import Optional

SCHEDULER_MODULES = [
    "popup_scheduler",
    "popup_scheduler.domain.schedule_manager",
    "popup_scheduler.domain.recurrence",
    "popup_scheduler.domain.holidays",
    "popup_scheduler.domain.schedule_store",
    "popup_scheduler.core.timezone_utils",
]


def configure_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    root_level_name: Optional[str] = None,
) -> None:
    """
    Configure logging levels for popup_scheduler.

    Args:
        debug_mode: Whether to enable debug logging for popup_scheduler modules
        force_debug: Override debug mode setting (None to use env var detection)
        root_level_name: Root level used when debugging is off (e.g. from config)

    Environment Variables:
        POPUP_SCHEDULER_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        POPUP_SCHEDULER_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("POPUP_SCHEDULER_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("POPUP_SCHEDULER_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if not final_debug and root_level_name:
        root_level = getattr(logging, root_level_name.upper(), logging.INFO)
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    module_level = logging.DEBUG if final_debug else logging.INFO
    for module in SCHEDULER_MODULES:
        logging.getLogger(module).setLevel(module_level)

    if final_debug:
        root_logger.info("Debug logging enabled for popup_scheduler modules.")
    else:
        root_logger.debug("Production logging configuration applied.")


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}

    for logger_name in SCHEDULER_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)

    return status
