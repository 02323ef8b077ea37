"""
Status reconciliation.

A course's status is re-derived from the wall clock every time the course
list is loaded; nothing runs in the background. Rules, in order:

1. cancelled stays cancelled
2. running right now           -> in-progress
3. over, and was in-progress   -> completed
   over, any other status      -> unchanged
4. otherwise                   -> unchanged

Because of rule 3, a course that was never seen while running (app not
opened during its slot) keeps its previous status, usually upcoming.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from myplanner.calendar_utils import is_happening_now, is_past
from myplanner.model import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    GeneratedCourse,
)


def reconcile_one(course: GeneratedCourse, now: datetime) -> GeneratedCourse:
    if course.status == STATUS_CANCELLED:
        return course
    if is_happening_now(course, now):
        return course.with_status(STATUS_IN_PROGRESS)
    if is_past(course, now):
        if course.status == STATUS_IN_PROGRESS:
            return course.with_status(STATUS_COMPLETED)
        return course
    return course


def reconcile(courses: List[GeneratedCourse], now: datetime) -> List[GeneratedCourse]:
    """
    Return the courses with statuses updated for `now`.
    The input list and its courses are not modified.
    """
    return [reconcile_one(c, now) for c in courses]
