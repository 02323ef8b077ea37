"""
Unit tests for conflict detection.

Definition used here:
- A conflict exists if two entries overlap in time on the same date.
- Touching endpoints (end == start) is NOT a conflict.
"""

import unittest

from myplanner.conflicts import find_conflicts, find_template_overlaps
from myplanner.model import GeneratedCourse, PersonalActivity, TemplateSlot, WeeklyTemplate


def _course(d: str, start: str, end: str, subject: str = "Math") -> GeneratedCourse:
    return GeneratedCourse(
        id=f"{d}-{start}", date=d, weekday="", start_time=start, end_time=end, subject=subject, room="", color=""
    )


class TestConflicts(unittest.TestCase):
    def test_overlap_same_day(self) -> None:
        entries = [_course("2026-02-19", "10:00", "11:00"), _course("2026-02-19", "10:30", "12:00")]
        self.assertEqual(len(find_conflicts(entries)), 1)

    def test_no_overlap_touching_end(self) -> None:
        entries = [_course("2026-02-19", "10:00", "11:00"), _course("2026-02-19", "11:00", "12:00")]
        self.assertEqual(len(find_conflicts(entries)), 0)

    def test_different_day_no_conflict(self) -> None:
        entries = [_course("2026-02-19", "10:00", "11:00"), _course("2026-02-20", "10:30", "12:00")]
        self.assertEqual(len(find_conflicts(entries)), 0)

    def test_course_and_activity_conflict(self) -> None:
        course = _course("2026-02-19", "14:00", "15:00")
        activity = PersonalActivity(id="act", title="Dentist", date="2026-02-19", start_time="14:30", end_time="15:30")
        [(a, b)] = find_conflicts([course, activity])
        self.assertIs(a, course)
        self.assertIs(b, activity)

    def test_invalid_span_is_ignored(self) -> None:
        entries = [_course("2026-02-19", "11:00", "10:00"), _course("2026-02-19", "10:00", "12:00")]
        self.assertEqual(find_conflicts(entries), [])


class TestTemplateOverlaps(unittest.TestCase):
    def test_overlapping_slots_reported_per_weekday(self) -> None:
        template = WeeklyTemplate(
            monday=[TemplateSlot("m1", "08:00", "10:00", "Math"), TemplateSlot("m2", "09:00", "10:00", "English")],
            tuesday=[TemplateSlot("t1", "08:00", "09:00", "Art"), TemplateSlot("t2", "09:00", "10:00", "Music")],
        )
        overlaps = find_template_overlaps(template)
        self.assertEqual(len(overlaps), 1)
        day, a, b = overlaps[0]
        self.assertEqual(day, "monday")
        self.assertEqual((a.id, b.id), ("m1", "m2"))


if __name__ == "__main__":
    unittest.main()
