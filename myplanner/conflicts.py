"""
Conflict detection.

Two uses:
- template check: slots of the same weekday that overlap
- agenda check: courses / personal activities on the same date that overlap

Overlap rule:
    start < other_end AND end > other_start
"""

from __future__ import annotations

from typing import Any, List, Sequence, Tuple

from myplanner.calendar_utils import time_to_minutes
from myplanner.model import SCHOOL_DAYS, TemplateSlot, WeeklyTemplate


def _overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def _parse_span(entry: Any) -> Tuple[int, int] | None:
    try:
        start = time_to_minutes(str(entry.start_time))
        end = time_to_minutes(str(entry.end_time))
    except ValueError:
        return None
    # if end <= start, treat as invalid / skip (avoid weird conflicts)
    if end <= start:
        return None
    return start, end


def _overlapping_pairs(entries: Sequence[Any], same_group) -> List[Tuple[Any, Any]]:
    parsed: List[Tuple[int, int, Any]] = []
    for entry in entries:
        span = _parse_span(entry)
        if span is not None:
            parsed.append((span[0], span[1], entry))

    pairs: List[Tuple[Any, Any]] = []
    # O(n^2) is fine for a school day or a single week
    for i in range(len(parsed)):
        s1, e1, a = parsed[i]
        for j in range(i + 1, len(parsed)):
            s2, e2, b = parsed[j]
            if same_group(a, b) and _overlaps(s1, e1, s2, e2):
                pairs.append((a, b))
    return pairs


def find_conflicts(entries: Sequence[Any]) -> List[Tuple[Any, Any]]:
    """
    Find overlapping pairs (A, B) among dated entries (anything with
    date / start_time / end_time). Each pair appears once, in input order.
    Touching endpoints (end == start) do not conflict.
    """
    return _overlapping_pairs(entries, lambda a, b: a.date == b.date)


def find_template_overlaps(template: WeeklyTemplate) -> List[Tuple[str, TemplateSlot, TemplateSlot]]:
    """
    Return (weekday, slot_a, slot_b) for every pair of overlapping slots.
    """
    out: List[Tuple[str, TemplateSlot, TemplateSlot]] = []
    for day in SCHOOL_DAYS:
        for a, b in _overlapping_pairs(template.slots_for(day), lambda a, b: True):
            out.append((day, a, b))
    return out
