"""
Persistent storage for the planner.

Two layers:

1. Key/value stores (KeyValueStore protocol): async get / set / remove_many
   of string values. MemoryStore keeps everything in a dict (tests, embedding);
   JsonFileStore keeps all keys in one JSON document on disk:

       myplanner/data/planner.json

2. ScheduleRepository: knows which key holds which record and converts
   between JSON strings and model objects.

Design rationale:
- the configuration is small and always saved as a whole
- the generated course list is replaced as a whole on every save
- personal activities live under their own key, so resetting the schedule
  never touches them

Unlike a cache, this is the user's only copy of their data: read and write
errors are not swallowed here, they propagate to the caller.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from myplanner.model import GeneratedCourse, PersonalActivity, ScheduleConfiguration

logger = logging.getLogger(__name__)

KEY_CONFIGURATION = "@myplanner_schedule_config"
KEY_COURSES = "@myplanner_schedule_courses"
KEY_CONFIGURED = "@myplanner_schedule_setup_done"
KEY_ACTIVITIES = "@myplanner_schedule_activities"


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove_many(self, keys: Iterable[str]) -> None: ...


class MemoryStore:
    """
    In-memory key/value store.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.data.pop(key, None)


def default_data_path() -> Path:
    """
    Return the default path of planner.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can pass their own path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "planner.json"


class JsonFileStore:
    """
    Key/value store backed by a single JSON object file.

    A missing file is an empty store. A file that exists but cannot be read
    or parsed raises (OSError / json.JSONDecodeError).
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_data_path()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    async def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return None if value is None else str(value)

    async def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    async def remove_many(self, keys: Iterable[str]) -> None:
        data = self._read()
        for key in keys:
            data.pop(key, None)
        self._write(data)


class ScheduleRepository:
    """
    Typed access to the four planner keys of a KeyValueStore.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = datetime.now) -> None:
        self.store = store
        self.clock = clock

    # --- configuration -----------------------------------------------------

    async def get_configuration(self) -> Optional[ScheduleConfiguration]:
        raw = await self.store.get(KEY_CONFIGURATION)
        if not raw:
            return None
        return ScheduleConfiguration.from_dict(json.loads(raw))

    async def save_configuration(self, config: ScheduleConfiguration) -> ScheduleConfiguration:
        """
        Save the whole configuration with a fresh last_modified stamp.
        The argument is left untouched; the stamped copy is returned.
        """
        config = replace(config, last_modified=self.clock().isoformat(timespec="seconds"))
        await self.store.set(KEY_CONFIGURATION, json.dumps(config.to_dict(), ensure_ascii=False))
        logger.info("Configuration saved")
        return config

    # --- generated courses ---------------------------------------------------

    async def get_courses(self) -> List[GeneratedCourse]:
        raw = await self.store.get(KEY_COURSES)
        if not raw:
            return []
        data = json.loads(raw)
        return [GeneratedCourse.from_dict(x) for x in data if isinstance(x, dict)] if isinstance(data, list) else []

    async def save_courses(self, courses: List[GeneratedCourse]) -> None:
        await self.store.set(KEY_COURSES, json.dumps([c.to_dict() for c in courses], ensure_ascii=False))
        logger.info("%d courses saved", len(courses))

    # --- setup flag -------------------------------------------------------------

    async def is_configured(self) -> bool:
        return (await self.store.get(KEY_CONFIGURED)) == "true"

    async def set_configured(self, value: bool) -> None:
        await self.store.set(KEY_CONFIGURED, "true" if value else "false")

    # --- personal activities ------------------------------------------------------

    async def get_activities(self) -> List[PersonalActivity]:
        raw = await self.store.get(KEY_ACTIVITIES)
        if not raw:
            return []
        data = json.loads(raw)
        return [PersonalActivity.from_dict(x) for x in data if isinstance(x, dict)] if isinstance(data, list) else []

    async def save_activities(self, activities: List[PersonalActivity]) -> None:
        await self.store.set(KEY_ACTIVITIES, json.dumps([a.to_dict() for a in activities], ensure_ascii=False))
        logger.debug("%d activities saved", len(activities))

    # --- housekeeping -------------------------------------------------------------

    async def clear_schedule(self) -> None:
        """
        Remove configuration, courses and setup flag. Activities are kept.
        """
        await self.store.remove_many([KEY_CONFIGURATION, KEY_COURSES, KEY_CONFIGURED])
        logger.info("Schedule data cleared")
