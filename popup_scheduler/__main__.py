"""Command-line entry for popup_scheduler.

Inspects a JSON schedule store and the predefined events table. Every
subcommand prints JSON on stdout; errors go to stderr with exit code 1.
"""

from __future__ import annotations

import argparse
import datetime
import json
import logging
import sys
from typing import Any, Optional

from dateutil.parser import isoparse

from popup_scheduler import _init_logging
from popup_scheduler.config_loader import Config, load_config
from popup_scheduler.core.config_manager import ConfigManager
from popup_scheduler.core.scheduler_logging import configure_logging
from popup_scheduler.core.timezone_utils import TimeZoneResolver
from popup_scheduler.domain.holidays import HolidayDetector, load_predefined_events
from popup_scheduler.domain.schedule_manager import ScheduleManager
from popup_scheduler.domain.schedule_store import JsonScheduleStore
from popup_scheduler.exceptions import ConfigError, SchedulerError

logger = logging.getLogger(__name__)


def _parse_instant(value: str) -> datetime.datetime:
    try:
        parsed = isoparse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 instant: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for popup_scheduler CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="popup-scheduler",
        description="Popup Scheduler - inspect popup schedules, events and previews",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  popup-scheduler events --category sale
  popup-scheduler --store schedules.json --shop demo.myshop.com active
  popup-scheduler --store schedules.json preview schedule_1717_abc123def -n 5
        """,
    )

    parser.add_argument("--config", metavar="PATH", help="YAML config file (default: ./popup_scheduler.yaml)")
    parser.add_argument("--store", metavar="PATH", help="JSON schedule store (overrides store_path)")
    parser.add_argument("--shop", metavar="SHOP", help="Shop whose schedules are inspected")
    parser.add_argument("--timezone", metavar="TZ", help="Default timezone (overrides default_timezone)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    events = subparsers.add_parser("events", help="List predefined holiday and sale events")
    events.add_argument("--category", help="Only list events in this category")

    holidays = subparsers.add_parser("holidays", help="List holidays in the coming days")
    holidays.add_argument("--days", type=int, help="Days to scan, today included")

    active = subparsers.add_parser("active", help="List schedules live at an instant")
    active.add_argument("--at", type=_parse_instant, help="ISO-8601 instant (default: now)")

    preview = subparsers.add_parser("preview", help="Preview upcoming activations of a schedule")
    preview.add_argument("schedule_id")
    preview.add_argument("-n", "--occurrences", type=int, help="Number of activations to list")
    preview.add_argument("--at", type=_parse_instant, help="Preview from this instant (default: now)")

    conflicts = subparsers.add_parser("conflicts", help="Report schedules with overlapping dates")
    conflicts.add_argument("--schedule-id", help="Only check this schedule")

    stats = subparsers.add_parser("stats", help="Summarize schedules by type and category")
    stats.add_argument("--at", type=_parse_instant, help="Reference instant (default: now)")

    return parser


def _resolve_config(args: argparse.Namespace) -> Config:
    config = ConfigManager().load_full_config(load_config(args.config))
    if args.store:
        config.store_path = args.store
    if args.timezone:
        config.default_timezone = args.timezone

    timezone = TimeZoneResolver().normalize_timezone(config.default_timezone)
    if timezone is None:
        raise ConfigError(f"Unknown default timezone: {config.default_timezone}")
    config.default_timezone = timezone
    return config


def _build_manager(config: Config, shop: Optional[str]) -> ScheduleManager:
    store = JsonScheduleStore(config.store_path) if config.store_path else None
    if store is None:
        logger.info("No schedule store configured; schedule commands see an empty index")

    events = load_predefined_events(config.events_file)
    manager = ScheduleManager(
        config.default_timezone,
        shop=shop,
        store=store,
        holiday_detector=HolidayDetector(
            country_code=config.country_code,
            events=events,
            timezone=config.default_timezone,
        ),
        preview_iteration_cap=config.preview_iteration_cap,
    )
    manager.load()
    return manager


def _dump(value: Any) -> Any:
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    return value


def _run(args: argparse.Namespace, config: Config) -> Any:
    manager = _build_manager(config, args.shop)

    if args.command == "events":
        return _dump(manager.holiday_detector.list_events(args.category))

    if args.command == "holidays":
        days = args.days if args.days is not None else config.upcoming_holidays_days
        return _dump(manager.holiday_detector.get_upcoming_holidays(days))

    if args.command == "active":
        return _dump(manager.get_active_schedules(args.at))

    if args.command == "preview":
        schedule = manager.get_schedule(args.schedule_id)
        if schedule is None:
            raise SchedulerError(f"Unknown schedule: {args.schedule_id}")
        occurrences = args.occurrences or config.default_preview_occurrences
        return {
            "id": schedule.id,
            "name": schedule.name,
            "recurrence": manager.recurrence.describe(schedule.recurrence),
            "nextActivation": _dump_instant(manager.get_next_activation(schedule.id, args.at)),
            "preview": _dump(manager.generate_schedule_preview(schedule.id, occurrences, args.at)),
        }

    if args.command == "conflicts":
        return _dump(manager.detect_conflicts(args.schedule_id))

    if args.command == "stats":
        return _dump(manager.get_schedule_statistics(args.at))

    raise SchedulerError(f"Unknown command: {args.command}")


def _dump_instant(value: Optional[datetime.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def main(argv: Optional[list[str]] = None) -> int:
    """Run the popup_scheduler CLI.

    Returns:
        Process exit code (0 on success, 1 on scheduling/config errors)
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    try:
        config = _resolve_config(args)
        _init_logging(config.log_level)
        configure_logging(debug_mode=args.debug, root_level_name=config.log_level)
        result = _run(args, config)
    except SchedulerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
