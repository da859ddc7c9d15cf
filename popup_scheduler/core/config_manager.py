"""Environment-based configuration for popup_scheduler."""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from popup_scheduler.config_loader import Config

logger = logging.getLogger(__name__)

ENV_PREFIX = "POPUP_SCHEDULER_"


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return {}

    for raw_line in content.splitlines():
        line = raw_line.strip()

        if not line or line.startswith("#") or "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


class ConfigManager:
    """Layers .env defaults and environment overrides on a file-based Config."""

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def apply_env_overrides(self, config: Config) -> Config:
        """Return a copy of ``config`` with POPUP_SCHEDULER_* variables applied.

        Recognizes:
        - POPUP_SCHEDULER_DEFAULT_TIMEZONE -> default_timezone
        - POPUP_SCHEDULER_COUNTRY_CODE -> country_code
        - POPUP_SCHEDULER_STORE_PATH -> store_path
        - POPUP_SCHEDULER_EVENTS_FILE -> events_file
        - POPUP_SCHEDULER_LOG_LEVEL -> log_level
        - POPUP_SCHEDULER_PREVIEW_ITERATION_CAP -> preview_iteration_cap (int)
        """
        overrides: dict[str, object] = {}

        for field in ("default_timezone", "country_code", "store_path", "events_file"):
            value = os.environ.get(ENV_PREFIX + field.upper())
            if value:
                overrides[field] = value

        log_level = os.environ.get(ENV_PREFIX + "LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level.upper()

        cap = os.environ.get(ENV_PREFIX + "PREVIEW_ITERATION_CAP")
        if cap:
            try:
                overrides["preview_iteration_cap"] = max(1, min(int(cap), 1000))
            except ValueError:
                logger.warning("Invalid %sPREVIEW_ITERATION_CAP=%r; ignoring", ENV_PREFIX, cap)

        return replace(config, **overrides) if overrides else config

    def load_full_config(self, config: Config | None = None) -> Config:
        """Load .env file, then overlay the environment on ``config``.

        This is the main entry point for loading configuration.
        """
        self.load_env_file()
        return self.apply_env_overrides(config or Config())
