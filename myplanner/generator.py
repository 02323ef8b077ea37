"""
Schedule generation.

Expands the weekly template across the school year:

    for every date in [start_date, end_date]:
        skip Saturday / Sunday
        skip dates inside a vacation interval
        emit one GeneratedCourse per template slot of that weekday

Course IDs are derived from (date, start time, slot id), so generating twice
from the same configuration yields the same IDs.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator, List

from myplanner.calendar_utils import DateLike, as_date, format_date, parse_date, weekday_of
from myplanner.model import (
    SCHOOL_DAYS,
    CourseDetails,
    GeneratedCourse,
    ScheduleConfiguration,
    TemplateSlot,
    VacationInterval,
    WeeklyTemplate,
)
from myplanner.vacations import is_excluded


def make_course_id(date_str: str, start_time: str, slot_id: str) -> str:
    """
    e.g. ('2026-01-12', '08:00', 'monday_1') -> 'course_20260112_0800_monday_1'
    """
    return f"course_{date_str.replace('-', '')}_{start_time.replace(':', '')}_{slot_id}"


def _course_from_slot(slot: TemplateSlot, date_str: str, weekday: str) -> GeneratedCourse:
    return GeneratedCourse(
        id=make_course_id(date_str, slot.start_time, slot.id),
        date=date_str,
        weekday=weekday,
        start_time=slot.start_time,
        end_time=slot.end_time,
        subject=slot.subject,
        room=slot.room,
        color=slot.color,
        details=CourseDetails(),
        slot_id=slot.id,
    )


def _courses_for_day(template: WeeklyTemplate, d: DateLike, vacations: List[VacationInterval]) -> List[GeneratedCourse]:
    weekday = weekday_of(d)
    if weekday not in SCHOOL_DAYS:
        return []
    if is_excluded(d, vacations):
        return []
    date_str = format_date(d)
    return [_course_from_slot(slot, date_str, weekday) for slot in template.slots_for(weekday)]


def _school_days(config: ScheduleConfiguration) -> Iterator[date]:
    period = config.school_year_period
    if period is None or not period.start_date or not period.end_date:
        return
    current = parse_date(period.start_date)
    last = parse_date(period.end_date)
    # start > end simply yields nothing
    while current <= last:
        if weekday_of(current) in SCHOOL_DAYS and not is_excluded(current, config.vacations):
            yield current
        current += timedelta(days=1)


def generate_year(config: ScheduleConfiguration) -> List[GeneratedCourse]:
    """
    Generate every course of the school year described by config.

    Returns an empty list when no school-year period is set or when the
    period's start date lies after its end date.
    """
    courses: List[GeneratedCourse] = []
    for d in _school_days(config):
        weekday = weekday_of(d)
        date_str = format_date(d)
        for slot in config.weekly_template.slots_for(weekday):
            courses.append(_course_from_slot(slot, date_str, weekday))
    return courses


def generate_week(
    template: WeeklyTemplate,
    week_start_date: DateLike,
    vacations: List[VacationInterval] | None = None,
) -> List[GeneratedCourse]:
    """
    Generate the courses of the five days starting at week_start_date.

    Used for previews before the full year is generated. week_start_date is
    normally a Monday; any weekend day inside the five-day window is skipped.
    """
    start = as_date(week_start_date)
    out: List[GeneratedCourse] = []
    for i in range(5):
        out.extend(_courses_for_day(template, start + timedelta(days=i), vacations or []))
    return out


def count_school_days(config: ScheduleConfiguration) -> int:
    """
    Number of weekdays in the school year that are not vacation days.
    """
    return sum(1 for _ in _school_days(config))
