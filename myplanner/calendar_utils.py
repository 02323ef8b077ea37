"""
Calendar arithmetic.

Pure helpers for the two value types the planner stores:
- calendar dates as 'YYYY-MM-DD' strings (local wall clock, no timezone)
- times of day as 'HH:MM' strings (24h, minute precision)

Every function that takes a date accepts either a datetime.date (or datetime)
or a 'YYYY-MM-DD' string.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, List, Union

from myplanner.model import WEEKDAYS

DateLike = Union[date, str]

_DAY_SHORT = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTH_SHORT = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
_MONTH_LONG = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


def format_date(d: DateLike) -> str:
    """
    Format a date as 'YYYY-MM-DD' from its own year/month/day fields.
    """
    d = as_date(d)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date(s: str) -> date:
    """
    Parse 'YYYY-MM-DD'. Raises ValueError for anything else.
    """
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(str(value))


def add_days(d: DateLike, days: int) -> str:
    return format_date(as_date(d) + timedelta(days=days))


def week_start(d: DateLike) -> date:
    """
    Monday of the week containing d. Sunday belongs to the week that started
    six days earlier.
    """
    d = as_date(d)
    return d - timedelta(days=d.weekday())


def week_end(d: DateLike) -> date:
    """
    Friday of the week containing d (last school day).
    """
    return week_start(d) + timedelta(days=4)


def week_dates(d: DateLike) -> List[str]:
    monday = week_start(d)
    return [format_date(monday + timedelta(days=i)) for i in range(7)]


def weekday_of(d: DateLike) -> str:
    return WEEKDAYS[as_date(d).weekday()]


def week_number(d: DateLike) -> int:
    """
    ISO-8601 week number (the week containing the year's first Thursday is week 1).
    """
    return as_date(d).isocalendar()[1]


def time_to_minutes(hhmm: str) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.
    Raises ValueError for invalid formats.
    """
    parts = hhmm.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid time format: {hhmm!r}")
    h = int(parts[0])
    m = int(parts[1])
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h * 60 + m


def duration_minutes(start: str, end: str) -> int:
    # Negative when end < start; callers decide what that means.
    return time_to_minutes(end) - time_to_minutes(start)


def format_duration(minutes: int) -> str:
    """
    Render a duration: '45min', '2h' or '1h30'.
    """
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins}min"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h{mins:02d}"


def _now_minutes(now: datetime) -> int:
    return now.hour * 60 + now.minute


def is_happening_now(entry: Any, now: datetime) -> bool:
    """
    True if entry (anything with date/start_time/end_time) runs at `now`.
    The start minute is inclusive, the end minute exclusive.
    """
    if entry.date != format_date(now):
        return False
    current = _now_minutes(now)
    return time_to_minutes(entry.start_time) <= current < time_to_minutes(entry.end_time)


def is_past(entry: Any, now: datetime) -> bool:
    today = now.date()
    entry_day = parse_date(entry.date)
    if entry_day < today:
        return True
    if entry_day == today:
        return _now_minutes(now) >= time_to_minutes(entry.end_time)
    return False


def format_date_short(d: DateLike) -> str:
    """
    e.g. 'Mon. 12 Jan'
    """
    d = as_date(d)
    return f"{_DAY_SHORT[d.weekday()]}. {d.day} {_MONTH_SHORT[d.month - 1]}"


def format_date_long(d: DateLike) -> str:
    """
    e.g. 'Monday 12 January 2026'
    """
    d = as_date(d)
    return f"{WEEKDAYS[d.weekday()].capitalize()} {d.day} {_MONTH_LONG[d.month - 1]} {d.year}"


@dataclass
class MonthCell:
    date: str
    day_number: int
    in_month: bool


def month_grid(year: int, month: int) -> List[MonthCell]:
    """
    Build the 6x7 month view (Monday first).

    The first row is padded with the last days of the previous month and the
    grid is filled up to 42 cells with the first days of the next month.
    """
    first = date(year, month, 1)
    next_first = date(year + (month // 12), month % 12 + 1, 1)

    cells: List[MonthCell] = []
    for i in range(first.weekday(), 0, -1):
        d = first - timedelta(days=i)
        cells.append(MonthCell(format_date(d), d.day, False))

    d = first
    while d < next_first:
        cells.append(MonthCell(format_date(d), d.day, True))
        d += timedelta(days=1)

    d = next_first
    while len(cells) < 42:
        cells.append(MonthCell(format_date(d), d.day, False))
        d += timedelta(days=1)

    return cells
