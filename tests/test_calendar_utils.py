"""
Unit tests for calendar arithmetic.

Conventions checked here:
- dates are 'YYYY-MM-DD', weeks run Monday..Sunday
- Sunday belongs to the week of the preceding Monday
- the end minute of a course is exclusive
"""

import unittest
from datetime import date, datetime

from myplanner.calendar_utils import (
    add_days,
    duration_minutes,
    format_date,
    format_date_long,
    format_date_short,
    format_duration,
    is_happening_now,
    is_past,
    month_grid,
    parse_date,
    time_to_minutes,
    week_dates,
    week_end,
    week_number,
    week_start,
    weekday_of,
)
from myplanner.model import GeneratedCourse


def _course(d: str, start: str, end: str) -> GeneratedCourse:
    return GeneratedCourse(
        id="c", date=d, weekday=weekday_of(d), start_time=start, end_time=end, subject="Math", room="", color=""
    )


class TestDates(unittest.TestCase):
    def test_format_date_zero_pads(self) -> None:
        self.assertEqual(format_date(date(2026, 1, 5)), "2026-01-05")
        self.assertEqual(format_date(datetime(2026, 3, 9, 23, 59)), "2026-03-09")

    def test_parse_format_roundtrip(self) -> None:
        for d in [date(2026, 1, 1), date(2024, 2, 29), date(2026, 12, 31)]:
            self.assertEqual(parse_date(format_date(d)), d)

    def test_parse_date_rejects_garbage(self) -> None:
        with self.assertRaises(ValueError):
            parse_date("2026-13-01")

    def test_week_start_monday_and_sunday(self) -> None:
        self.assertEqual(week_start("2026-01-12"), date(2026, 1, 12))
        self.assertEqual(week_start("2026-01-15"), date(2026, 1, 12))
        # Sunday maps back to the previous Monday
        self.assertEqual(week_start("2026-01-18"), date(2026, 1, 12))

    def test_week_end_is_friday(self) -> None:
        self.assertEqual(week_end("2026-01-18"), date(2026, 1, 16))

    def test_week_dates(self) -> None:
        dates = week_dates("2026-01-14")
        self.assertEqual(len(dates), 7)
        self.assertEqual(dates[0], "2026-01-12")
        self.assertEqual(dates[-1], "2026-01-18")

    def test_weekday_of(self) -> None:
        self.assertEqual(weekday_of("2026-01-12"), "monday")
        self.assertEqual(weekday_of("2026-01-17"), "saturday")
        self.assertEqual(weekday_of("2026-01-18"), "sunday")

    def test_week_number_iso(self) -> None:
        self.assertEqual(week_number("2026-01-01"), 1)
        self.assertEqual(week_number("2026-01-12"), 3)
        self.assertEqual(week_number("2021-01-03"), 53)
        self.assertEqual(week_number("2024-12-30"), 1)

    def test_add_days_crosses_month(self) -> None:
        self.assertEqual(add_days("2026-01-26", 7), "2026-02-02")
        self.assertEqual(add_days("2026-03-02", -7), "2026-02-23")

    def test_display_formats(self) -> None:
        self.assertEqual(format_date_short("2026-01-12"), "Mon. 12 Jan")
        self.assertEqual(format_date_long("2026-01-12"), "Monday 12 January 2026")


class TestDurations(unittest.TestCase):
    def test_time_to_minutes(self) -> None:
        self.assertEqual(time_to_minutes("08:15"), 495)
        with self.assertRaises(ValueError):
            time_to_minutes("8h15")
        with self.assertRaises(ValueError):
            time_to_minutes("24:00")

    def test_duration_may_be_negative(self) -> None:
        self.assertEqual(duration_minutes("09:00", "10:30"), 90)
        self.assertEqual(duration_minutes("10:00", "09:30"), -30)

    def test_format_duration_table(self) -> None:
        self.assertEqual(format_duration(0), "0min")
        self.assertEqual(format_duration(45), "45min")
        self.assertEqual(format_duration(60), "1h")
        self.assertEqual(format_duration(90), "1h30")
        self.assertEqual(format_duration(125), "2h05")


class TestNowPredicates(unittest.TestCase):
    def test_happening_now_window(self) -> None:
        c = _course("2026-01-12", "09:00", "10:30")
        self.assertTrue(is_happening_now(c, datetime(2026, 1, 12, 9, 0)))
        self.assertTrue(is_happening_now(c, datetime(2026, 1, 12, 10, 29)))
        self.assertFalse(is_happening_now(c, datetime(2026, 1, 12, 10, 30)))
        self.assertFalse(is_happening_now(c, datetime(2026, 1, 13, 9, 30)))

    def test_is_past(self) -> None:
        c = _course("2026-01-12", "09:00", "10:30")
        self.assertFalse(is_past(c, datetime(2026, 1, 12, 10, 29)))
        self.assertTrue(is_past(c, datetime(2026, 1, 12, 10, 30)))
        self.assertTrue(is_past(c, datetime(2026, 1, 13, 0, 0)))
        self.assertFalse(is_past(c, datetime(2026, 1, 11, 23, 59)))


class TestMonthGrid(unittest.TestCase):
    def test_grid_pads_previous_and_next_month(self) -> None:
        # February 2026 starts on a Sunday
        cells = month_grid(2026, 2)
        self.assertEqual(len(cells), 42)
        self.assertEqual(cells[0].date, "2026-01-26")
        self.assertFalse(cells[0].in_month)
        self.assertEqual(cells[6].date, "2026-02-01")
        self.assertTrue(cells[6].in_month)
        self.assertEqual(sum(1 for c in cells if c.in_month), 28)
        self.assertEqual(cells[-1].date, "2026-03-08")

    def test_grid_month_starting_monday_and_december(self) -> None:
        self.assertEqual(month_grid(2026, 6)[0].date, "2026-06-01")
        december = month_grid(2026, 12)
        self.assertEqual(december[-1].date[:7], "2027-01")


if __name__ == "__main__":
    unittest.main()
