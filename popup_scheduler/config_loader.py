"""popup_scheduler.config_loader

Lightweight config loader for popup_scheduler.

- Reads YAML (PyYAML); JSON files load too since JSON is valid YAML.
- Exposes a typed dataclass `Config` and a `load_config()` helper that accepts
  an optional path override.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from popup_scheduler.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("popup_scheduler.yaml")


@dataclass
class Config:
    """Typed configuration for popup_scheduler.

    Fields:
        default_timezone: zone for schedules that do not name one
        country_code: country the predefined holiday table applies to
        preview_iteration_cap: candidate days examined per preview (1..1000)
        default_preview_occurrences: preview length when callers do not ask
        upcoming_holidays_days: look-ahead window for holiday scans
        events_file: optional YAML file replacing the packaged events table
        store_path: optional JSON schedule store path
        log_level: logging level name
    """

    default_timezone: str = "UTC"
    country_code: str = "US"
    preview_iteration_cap: int = 1000
    default_preview_occurrences: int = 10
    upcoming_holidays_days: int = 30
    events_file: str | None = None
    store_path: str | None = None
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and the preview iteration cap
        is clamped to 1..1000, logging warnings when coercions occur.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int) -> int:
            raw = data.get(key, default)
            try:
                return int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default

        def _optional_str(key: str) -> str | None:
            raw = data.get(key)
            return str(raw) if raw not in (None, "") else None

        cap = _coerce_int("preview_iteration_cap", 1000)
        if cap < 1:
            logger.warning("preview_iteration_cap %d below minimum; coercing to 1", cap)
            cap = 1
        elif cap > 1000:
            logger.warning("preview_iteration_cap %d above maximum; coercing to 1000", cap)
            cap = 1000

        occurrences = max(_coerce_int("default_preview_occurrences", 10), 1)
        holidays_days = max(_coerce_int("upcoming_holidays_days", 30), 0)

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            default_timezone=str(data.get("default_timezone") or "UTC"),
            country_code=str(data.get("country_code") or "US"),
            preview_iteration_cap=cap,
            default_preview_occurrences=occurrences,
            upcoming_holidays_days=holidays_days,
            events_file=_optional_str("events_file"),
            store_path=_optional_str("store_path"),
            log_level=log_level,
        )


def load_config(path: str | None = None) -> Config:
    """Load configuration from a YAML file and return a Config instance.

    Args:
        path: Optional path to the config file. Defaults to
              ./popup_scheduler.yaml (relative to current working dir).

    Returns:
        Config dataclass instance with values from file (or defaults).

    Raises:
        ConfigError: If the file cannot be parsed or its top level is not a mapping
    """
    p = Path(path) if path else DEFAULT_CONFIG_PATH
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return Config()

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to parse config {p}: {exc}") from exc

    # safe_load returns None for empty files
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ConfigError("Config file must contain a mapping at top level")

    cfg = Config.from_dict(raw)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg
