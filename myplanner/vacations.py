"""
Vacation filter.

A date is excluded from course generation when it lies inside any vacation
interval, both ends included. Intervals may overlap; any match excludes.
"""

from __future__ import annotations

from typing import Iterable, Optional

from myplanner.calendar_utils import DateLike, as_date, parse_date
from myplanner.model import VacationInterval


def vacation_for(d: DateLike, vacations: Iterable[VacationInterval]) -> Optional[VacationInterval]:
    """
    Return the first vacation interval containing d, or None.
    """
    day = as_date(d)
    for v in vacations:
        if parse_date(v.start_date) <= day <= parse_date(v.end_date):
            return v
    return None


def is_excluded(d: DateLike, vacations: Iterable[VacationInterval]) -> bool:
    return vacation_for(d, vacations) is not None
