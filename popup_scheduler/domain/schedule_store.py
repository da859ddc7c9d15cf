"""Schedule stores: in-memory and JSON-backed with atomic writes."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from popup_scheduler.domain.models import Schedule
from popup_scheduler.exceptions import StoreError

logger = logging.getLogger(__name__)

DEFAULT_SHOP_KEY = "default"

STORE_FORMAT_VERSION = 1


def _shop_key(shop: str | None) -> str:
    return shop or DEFAULT_SHOP_KEY


class InMemoryScheduleStore:
    """Process-local store, mainly for tests and single-process tools."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # shop -> schedule_id -> schedule
        self._shops: dict[str, dict[str, Schedule]] = {}

    def load_schedules(self, shop: str | None) -> list[Schedule]:
        with self._lock:
            return list(self._shops.get(_shop_key(shop), {}).values())

    def save_schedule(self, schedule: Schedule) -> None:
        with self._lock:
            self._shops.setdefault(_shop_key(schedule.shop), {})[schedule.id] = schedule

    def delete_schedule(self, schedule_id: str, shop: str | None) -> bool:
        with self._lock:
            return self._shops.get(_shop_key(shop), {}).pop(schedule_id, None) is not None


class JsonScheduleStore:
    """Persistent schedule store backed by a single JSON file.

    On-disk format::

        {"version": 1, "shops": {"<shop>": {"<schedule_id>": {...camelCase schedule...}}}}

    Every mutation rewrites the file atomically (temp file in the same
    directory, then replace).
    """

    def __init__(self, path: str | Path) -> None:
        """Create a JsonScheduleStore.

        Args:
            path: Path to the JSON file; created on first save
        """
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create directory for {self._path}: {exc}") from exc
        self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> None:
        if not self._path.exists():
            logger.debug("Schedule store file not found; starting empty: %s", self._path)
            self._data = {}
            return

        try:
            with self._path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Failed to read schedule store {self._path}: {exc}") from exc

        if not isinstance(raw, dict) or not isinstance(raw.get("shops", {}), dict):
            raise StoreError(f"Schedule store {self._path} has an unexpected layout")

        self._data = {
            str(shop): dict(schedules)
            for shop, schedules in raw.get("shops", {}).items()
            if isinstance(schedules, dict)
        }
        logger.debug(
            "Loaded schedule store %s (%d shops)", self._path, len(self._data)
        )

    def _persist(self) -> None:
        """Persist the current mapping to disk atomically. Called with lock held."""
        payload = {"version": STORE_FORMAT_VERSION, "shops": self._data}

        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self._path.parent, delete=False, encoding="utf-8"
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(payload, tf, ensure_ascii=False, indent=2)
                tf.flush()
                os.fsync(tf.fileno())
            tmp_path.replace(self._path)
        except OSError as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink()
            raise StoreError(f"Failed to persist schedule store {self._path}: {exc}") from exc

    def load_schedules(self, shop: str | None) -> list[Schedule]:
        with self._lock:
            records = list(self._data.get(_shop_key(shop), {}).items())

        schedules: list[Schedule] = []
        for schedule_id, record in records:
            try:
                schedules.append(Schedule.model_validate(record))
            except PydanticValidationError as exc:
                logger.warning("Skipping malformed stored schedule %s: %s", schedule_id, exc)
        return schedules

    def save_schedule(self, schedule: Schedule) -> None:
        record = schedule.model_dump(mode="json", by_alias=True)
        with self._lock:
            shop_records = self._data.setdefault(_shop_key(schedule.shop), {})
            previous = shop_records.get(schedule.id)
            shop_records[schedule.id] = record
            try:
                self._persist()
            except StoreError:
                if previous is None:
                    del shop_records[schedule.id]
                else:
                    shop_records[schedule.id] = previous
                raise
        logger.debug("Saved schedule %s for shop %s", schedule.id, _shop_key(schedule.shop))

    def delete_schedule(self, schedule_id: str, shop: str | None) -> bool:
        with self._lock:
            shop_records = self._data.get(_shop_key(shop), {})
            if schedule_id not in shop_records:
                return False
            removed = shop_records.pop(schedule_id)
            try:
                self._persist()
            except StoreError:
                shop_records[schedule_id] = removed
                raise
        logger.debug("Deleted schedule %s for shop %s", schedule_id, _shop_key(shop))
        return True

    def shops(self) -> list[str]:
        """Return the shop keys present in the store."""
        with self._lock:
            return list(self._data)
