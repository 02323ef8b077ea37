"""
Queries over the generated course list.

All functions are pure: they take the current course list (already
reconciled by the caller) and return new lists. Sorting is always stable, so
courses with the same start time keep their original order.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from myplanner.calendar_utils import DateLike, format_date, time_to_minutes, week_dates
from myplanner.model import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_UPCOMING,
    GeneratedCourse,
    ScheduleStats,
)


def sort_by_start(courses: List[GeneratedCourse]) -> List[GeneratedCourse]:
    return sorted(courses, key=lambda c: time_to_minutes(c.start_time))


def by_date(courses: List[GeneratedCourse], d: DateLike) -> List[GeneratedCourse]:
    """
    Courses of one day, earliest first.
    """
    day = format_date(d)
    return sort_by_start([c for c in courses if c.date == day])


def by_week(courses: List[GeneratedCourse], week_start_date: DateLike) -> List[GeneratedCourse]:
    """
    Courses of the Monday-Sunday week containing week_start_date, in stored order.
    """
    dates = set(week_dates(week_start_date))
    return [c for c in courses if c.date in dates]


def by_month(courses: List[GeneratedCourse], year: int, month: int) -> List[GeneratedCourse]:
    prefix = f"{year:04d}-{month:02d}-"
    return [c for c in courses if c.date.startswith(prefix)]


def by_subject(courses: List[GeneratedCourse], subject: str) -> List[GeneratedCourse]:
    needle = subject.strip().lower()
    return [c for c in courses if needle in c.subject.lower()]


def group_by_date(courses: List[GeneratedCourse]) -> Dict[str, List[GeneratedCourse]]:
    grouped: Dict[str, List[GeneratedCourse]] = defaultdict(list)
    for c in courses:
        grouped[c.date].append(c)
    return dict(grouped)


def find_course(courses: List[GeneratedCourse], course_id: str) -> Optional[GeneratedCourse]:
    for c in courses:
        if c.id == course_id:
            return c
    return None


def search(courses: List[GeneratedCourse], query: str) -> List[GeneratedCourse]:
    """
    Case-insensitive substring search over the subject and the free-text
    details (theme, unit, personal notes, objectives, activities).
    A blank query matches nothing.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return []

    matches: List[GeneratedCourse] = []
    for c in courses:
        d = c.details
        fields = [c.subject, d.theme, d.unit, d.personal_notes, *d.objectives, *d.activities]
        if any(needle in f.lower() for f in fields):
            matches.append(c)
    return matches


def _is_ahead(course: GeneratedCourse, now: datetime) -> bool:
    today = format_date(now)
    if course.date > today:
        return True
    if course.date == today:
        return time_to_minutes(course.start_time) > now.hour * 60 + now.minute
    return False


def next_upcoming(courses: List[GeneratedCourse], now: datetime) -> Optional[GeneratedCourse]:
    """
    The earliest non-cancelled course that has not started yet, or None.
    """
    candidates = [c for c in courses if c.status != STATUS_CANCELLED and _is_ahead(c, now)]
    if not candidates:
        return None
    return min(candidates, key=lambda c: (c.date, time_to_minutes(c.start_time)))


def upcoming_today(courses: List[GeneratedCourse], now: datetime) -> List[GeneratedCourse]:
    today = format_date(now)
    todays = [c for c in courses if c.date == today and c.status != STATUS_CANCELLED and _is_ahead(c, now)]
    return sort_by_start(todays)


def statistics(courses: List[GeneratedCourse]) -> ScheduleStats:
    stats = ScheduleStats(total=len(courses))
    for c in courses:
        if c.status == STATUS_UPCOMING:
            stats.upcoming += 1
        elif c.status == STATUS_IN_PROGRESS:
            stats.in_progress += 1
        elif c.status == STATUS_COMPLETED:
            stats.completed += 1
        elif c.status == STATUS_CANCELLED:
            stats.cancelled += 1
        if not c.details.is_empty():
            stats.with_details += 1
    return stats
