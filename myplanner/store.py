"""
ScheduleStore: the single entry point front ends talk to.

It owns the in-memory copy of the configuration, the generated courses, the
personal activities and the navigation state (selected date, current week),
and mirrors every change to a ScheduleRepository.

Rules every mutating operation follows:
- persistence happens first, the in-memory state is updated afterwards
- storage exceptions propagate unchanged (no retry, no swallowing)
- operations are awaited one after another; there is no locking, the last
  writer wins

The store is constructed explicitly (see cli.py) and passed to whoever needs
it; there is no module-level instance.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from myplanner import query
from myplanner.calendar_utils import DateLike, add_days, format_date, week_start
from myplanner.errors import ConfigurationUnavailableError, InvalidStatusError
from myplanner.generator import generate_year
from myplanner.model import (
    ACTIVITY_TYPES,
    DETAIL_FIELDS,
    STATUSES,
    GeneratedCourse,
    PersonalActivity,
    ScheduleConfiguration,
    ScheduleData,
    ScheduleStats,
    SchoolYearPeriod,
    VacationInterval,
    WeeklyTemplate,
)
from myplanner.status import reconcile
from myplanner.storage import ScheduleRepository

logger = logging.getLogger(__name__)

_ACTIVITY_FIELDS = (
    "title",
    "description",
    "date",
    "start_time",
    "end_time",
    "activity_type",
    "color",
    "reminder",
    "complete",
)


def _new_activity_id(now: datetime) -> str:
    return f"activity_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


class ScheduleStore:
    def __init__(self, repository: ScheduleRepository, clock: Callable[[], datetime] = datetime.now) -> None:
        self.repository = repository
        self.clock = clock

        self.configuration: Optional[ScheduleConfiguration] = None
        self.courses: List[GeneratedCourse] = []
        self.activities: List[PersonalActivity] = []
        self.is_configured = False

        now = clock()
        self.selected_date = format_date(now)
        self.current_week_start = format_date(week_start(now))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Read everything from storage and reconcile course statuses with the
        current time. Call on start-up and whenever fresh statuses are needed.
        """
        self.configuration = await self.repository.get_configuration()
        courses = await self.repository.get_courses()
        self.is_configured = await self.repository.is_configured()
        self.activities = await self.repository.get_activities()
        self.courses = reconcile(courses, self.clock())

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def _save_merged(self, **changes: Any) -> ScheduleConfiguration:
        current = await self.repository.get_configuration() or ScheduleConfiguration()
        merged = replace(current, **changes)
        self.configuration = await self.repository.save_configuration(merged)
        return self.configuration

    async def save_weekly_template(self, template: WeeklyTemplate) -> ScheduleConfiguration:
        return await self._save_merged(weekly_template=template)

    async def save_school_year_period(self, period: SchoolYearPeriod) -> ScheduleConfiguration:
        return await self._save_merged(school_year_period=period)

    async def save_vacations(self, vacations: List[VacationInterval]) -> ScheduleConfiguration:
        return await self._save_merged(vacations=list(vacations))

    async def regenerate(self, preserve_details: bool = True) -> List[GeneratedCourse]:
        """
        Rebuild the whole course list from the persisted configuration.

        With preserve_details (default), courses whose ID survives the
        regeneration keep their details and status; courses that no longer
        exist are dropped. With preserve_details=False the list is replaced
        outright and all details are lost.

        Raises ConfigurationUnavailableError if no configuration was saved.
        """
        config = await self.repository.get_configuration()
        if config is None:
            raise ConfigurationUnavailableError()

        courses = generate_year(config)

        if preserve_details:
            previous = {c.id: c for c in await self.repository.get_courses()}
            kept = 0
            for i, c in enumerate(courses):
                old = previous.get(c.id)
                if old is not None:
                    courses[i] = replace(c, details=old.details, status=old.status)
                    kept += 1
            logger.info("Regenerated %d courses (%d carried over)", len(courses), kept)
        else:
            logger.info("Regenerated %d courses (details discarded)", len(courses))

        await self.repository.save_courses(courses)
        await self.repository.set_configured(True)

        self.configuration = config
        self.courses = reconcile(courses, self.clock())
        self.is_configured = True
        return self.courses

    async def reset(self) -> None:
        """
        Forget configuration and courses. Personal activities are kept.
        """
        await self.repository.clear_schedule()
        self.configuration = None
        self.courses = []
        self.is_configured = False

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    def _index_of(self, course_id: str) -> Optional[int]:
        for i, c in enumerate(self.courses):
            if c.id == course_id:
                return i
        return None

    async def _update_course(
        self, course_id: str, change: Callable[[GeneratedCourse], GeneratedCourse]
    ) -> Optional[GeneratedCourse]:
        """
        Apply change to one course of the persisted list and save that list.

        Other courses are written back exactly as stored: statuses computed by
        reconcile() only live in memory.
        """
        stored = await self.repository.get_courses()
        for i, c in enumerate(stored):
            if c.id == course_id:
                stored[i] = change(c)
                break
        else:
            logger.warning("Course not found: %s", course_id)
            return None

        await self.repository.save_courses(stored)

        idx = self._index_of(course_id)
        if idx is None:
            return stored[i]
        courses = list(self.courses)
        courses[idx] = change(courses[idx])
        self.courses = courses
        return courses[idx]

    async def update_course_details(self, course_id: str, details: Mapping[str, Any]) -> Optional[GeneratedCourse]:
        """
        Merge the given detail fields into one course and stamp last_updated.

        Unknown field names raise ValueError. An unknown course_id is a no-op
        and returns None.
        """
        unknown = set(details) - set(DETAIL_FIELDS)
        if unknown:
            raise ValueError(f"Unknown detail fields: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = dict(details)
        for key in ("objectives", "activities"):
            if key in values:
                values[key] = [str(x) for x in values[key]]
        values["last_updated"] = self.clock().isoformat(timespec="seconds")

        updated = await self._update_course(course_id, lambda c: replace(c, details=replace(c.details, **values)))
        if updated is not None:
            logger.info("Course details updated: %s", course_id)
        return updated

    async def update_course_status(self, course_id: str, status: str) -> Optional[GeneratedCourse]:
        """
        Manual status override; reconciliation rules are not applied here.
        """
        if status not in STATUSES:
            raise InvalidStatusError(status)
        return await self._update_course(course_id, lambda c: c.with_status(status))

    def get_course(self, course_id: str) -> Optional[GeneratedCourse]:
        return query.find_course(self.courses, course_id)

    def query_by_date(self, d: DateLike) -> List[GeneratedCourse]:
        return query.by_date(self.courses, d)

    def query_by_week(self) -> List[GeneratedCourse]:
        return query.by_week(self.courses, self.current_week_start)

    def query_by_month(self, year: int, month: int) -> List[GeneratedCourse]:
        return query.by_month(self.courses, year, month)

    def search(self, text: str) -> List[GeneratedCourse]:
        return query.search(self.courses, text)

    def next_course(self) -> Optional[GeneratedCourse]:
        return query.next_upcoming(self.courses, self.clock())

    def upcoming_today(self) -> List[GeneratedCourse]:
        return query.upcoming_today(self.courses, self.clock())

    def statistics(self) -> ScheduleStats:
        return query.statistics(self.courses)

    # ------------------------------------------------------------------
    # Personal activities
    # ------------------------------------------------------------------

    async def add_activity(
        self,
        title: str,
        date: DateLike,
        start_time: str,
        end_time: str,
        description: str = "",
        activity_type: str = "other",
        color: str = "",
        reminder: bool = False,
    ) -> PersonalActivity:
        if activity_type not in ACTIVITY_TYPES:
            raise ValueError(f"Invalid activity type: {activity_type!r}")

        activity = PersonalActivity(
            id=_new_activity_id(self.clock()),
            title=title,
            description=description,
            date=format_date(date),
            start_time=start_time,
            end_time=end_time,
            activity_type=activity_type,
            color=color,
            reminder=reminder,
        )
        activities = [*self.activities, activity]
        await self.repository.save_activities(activities)
        self.activities = activities
        return activity

    def _activity_index(self, activity_id: str) -> Optional[int]:
        for i, a in enumerate(self.activities):
            if a.id == activity_id:
                return i
        return None

    async def update_activity(self, activity_id: str, updates: Mapping[str, Any]) -> Optional[PersonalActivity]:
        unknown = set(updates) - set(_ACTIVITY_FIELDS)
        if unknown:
            raise ValueError(f"Unknown activity fields: {', '.join(sorted(unknown))}")
        if "activity_type" in updates and updates["activity_type"] not in ACTIVITY_TYPES:
            raise ValueError(f"Invalid activity type: {updates['activity_type']!r}")

        idx = self._activity_index(activity_id)
        if idx is None:
            logger.warning("Activity not found: %s", activity_id)
            return None

        updated = replace(self.activities[idx], **updates)
        activities = list(self.activities)
        activities[idx] = updated
        await self.repository.save_activities(activities)
        self.activities = activities
        return updated

    async def delete_activity(self, activity_id: str) -> None:
        activities = [a for a in self.activities if a.id != activity_id]
        await self.repository.save_activities(activities)
        self.activities = activities

    async def toggle_complete(self, activity_id: str) -> Optional[PersonalActivity]:
        idx = self._activity_index(activity_id)
        if idx is None:
            logger.warning("Activity not found: %s", activity_id)
            return None
        return await self.update_activity(activity_id, {"complete": not self.activities[idx].complete})

    def activities_by_date(self, d: DateLike) -> List[PersonalActivity]:
        day = format_date(d)
        return [a for a in self.activities if a.date == day]

    # ------------------------------------------------------------------
    # Week navigation (in-memory only)
    # ------------------------------------------------------------------

    def next_week(self) -> str:
        self.current_week_start = add_days(self.current_week_start, 7)
        self.selected_date = self.current_week_start
        return self.current_week_start

    def previous_week(self) -> str:
        self.current_week_start = add_days(self.current_week_start, -7)
        self.selected_date = self.current_week_start
        return self.current_week_start

    def today(self) -> str:
        now = self.clock()
        self.selected_date = format_date(now)
        self.current_week_start = format_date(week_start(now))
        return self.selected_date

    def select_date(self, d: DateLike) -> str:
        """
        Select a day and move the current week to the week containing it.
        """
        self.selected_date = format_date(d)
        self.current_week_start = format_date(week_start(d))
        return self.selected_date

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    async def export_data(self) -> str:
        """
        Pretty-printed JSON of {configuration, courses, is_configured},
        read from storage.
        """
        data = ScheduleData(
            configuration=await self.repository.get_configuration(),
            courses=await self.repository.get_courses(),
            is_configured=await self.repository.is_configured(),
        )
        return json.dumps(data.to_dict(), indent=2, ensure_ascii=False)

    async def import_data(self, text: str) -> ScheduleData:
        """
        Restore a backup produced by export_data.

        The whole payload is parsed and validated before anything is written;
        invalid JSON raises json.JSONDecodeError, a wrong structure ValueError.
        The writes themselves happen one after another and are not
        transactional.
        """
        data = ScheduleData.from_dict(json.loads(text))

        if data.configuration is not None:
            await self.repository.save_configuration(data.configuration)
        if data.courses:
            await self.repository.save_courses(data.courses)
        await self.repository.set_configured(data.is_configured)
        logger.info("Backup imported (%d courses)", len(data.courses))

        await self.load()
        return data
