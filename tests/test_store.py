"""
Unit tests for ScheduleStore (in-memory key/value store, fixed clock).
"""

from __future__ import annotations

import json
import unittest
from datetime import datetime

from myplanner.errors import ConfigurationUnavailableError, InvalidStatusError
from myplanner.model import (
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_UPCOMING,
    GeneratedCourse,
    SchoolYearPeriod,
    TemplateSlot,
    VacationInterval,
    WeeklyTemplate,
)
from myplanner.storage import KEY_COURSES, MemoryStore, ScheduleRepository
from myplanner.store import ScheduleStore

NOW = datetime(2026, 1, 12, 9, 30)


def _clock() -> datetime:
    return NOW


def _make_store(kv: MemoryStore | None = None) -> ScheduleStore:
    kv = kv if kv is not None else MemoryStore()
    return ScheduleStore(ScheduleRepository(kv, clock=_clock), clock=_clock)


class FailingStore(MemoryStore):
    """
    Accepts reads but fails every write once `broken` is set.
    """

    broken = False

    async def set(self, key: str, value: str) -> None:
        if self.broken:
            raise OSError("disk full")
        await super().set(key, value)


def _template() -> WeeklyTemplate:
    return WeeklyTemplate(
        monday=[TemplateSlot("monday_1", "09:00", "10:30", "Math", room="B12")],
        wednesday=[TemplateSlot("wednesday_1", "14:00", "15:00", "English")],
    )


async def _configured_store(kv: MemoryStore | None = None) -> ScheduleStore:
    store = _make_store(kv)
    await store.load()
    await store.save_weekly_template(_template())
    await store.save_school_year_period(SchoolYearPeriod("2026-01-12", "2026-01-23"))
    await store.regenerate()
    return store


class TestConfiguration(unittest.IsolatedAsyncioTestCase):
    async def test_regenerate_without_configuration_fails(self) -> None:
        store = _make_store()
        await store.load()
        with self.assertRaises(ConfigurationUnavailableError):
            await store.regenerate()
        self.assertFalse(store.is_configured)

    async def test_partial_saves_are_merged(self) -> None:
        store = _make_store()
        await store.save_weekly_template(_template())
        await store.save_school_year_period(SchoolYearPeriod("2026-09-01", "2027-06-30"))
        config = await store.save_vacations([VacationInterval("v1", "Winter", "2026-12-19", "2027-01-03")])

        self.assertEqual(config.weekly_template.monday[0].subject, "Math")
        self.assertEqual(config.school_year_period.start_date, "2026-09-01")
        self.assertEqual(config.vacations[0].name, "Winter")
        self.assertEqual(config.last_modified, "2026-01-12T09:30:00")

    async def test_regenerate_builds_courses_and_sets_flag(self) -> None:
        store = await _configured_store()
        self.assertTrue(store.is_configured)
        self.assertEqual(len(store.courses), 4)

        running = store.get_course("course_20260112_0900_monday_1")
        assert running is not None
        self.assertEqual(running.status, STATUS_IN_PROGRESS)
        self.assertEqual(running.room, "B12")

    async def test_regenerate_preserves_details_by_default(self) -> None:
        store = await _configured_store()
        cid = "course_20260114_1400_wednesday_1"
        await store.update_course_details(cid, {"theme": "Poetry"})
        await store.update_course_status(cid, STATUS_CANCELLED)

        await store.regenerate()
        course = store.get_course(cid)
        assert course is not None
        self.assertEqual(course.details.theme, "Poetry")
        self.assertEqual(course.status, STATUS_CANCELLED)

        await store.regenerate(preserve_details=False)
        course = store.get_course(cid)
        assert course is not None
        self.assertEqual(course.details.theme, "")
        self.assertNotEqual(course.status, STATUS_CANCELLED)

    async def test_reset_keeps_activities(self) -> None:
        store = await _configured_store()
        await store.add_activity("Gym", "2026-01-12", "18:00", "19:00", activity_type="sport")

        await store.reset()
        self.assertIsNone(store.configuration)
        self.assertEqual(store.courses, [])
        self.assertFalse(store.is_configured)

        fresh = _make_store(store.repository.store)
        await fresh.load()
        self.assertEqual([a.title for a in fresh.activities], ["Gym"])
        self.assertEqual(fresh.courses, [])


class TestCourseEdits(unittest.IsolatedAsyncioTestCase):
    async def test_update_details_stamps_and_persists(self) -> None:
        store = await _configured_store()
        cid = "course_20260112_0900_monday_1"
        updated = await store.update_course_details(cid, {"theme": "Fractions", "objectives": ["Add", "Compare"]})
        assert updated is not None
        self.assertEqual(updated.details.theme, "Fractions")
        self.assertEqual(updated.details.objectives, ["Add", "Compare"])
        self.assertEqual(updated.details.last_updated, "2026-01-12T09:30:00")

        persisted = json.loads(store.repository.store.data[KEY_COURSES])
        stored = next(c for c in persisted if c["id"] == cid)
        self.assertEqual(stored["details"]["theme"], "Fractions")

    async def test_update_details_rejects_unknown_fields(self) -> None:
        store = await _configured_store()
        with self.assertRaises(ValueError):
            await store.update_course_details("course_20260112_0900_monday_1", {"grade": "A"})

    async def test_edit_keeps_other_stored_statuses(self) -> None:
        kv = MemoryStore()
        store = await _configured_store(kv)
        running = "course_20260112_0900_monday_1"
        self.assertEqual(store.get_course(running).status, STATUS_IN_PROGRESS)

        await store.update_course_details("course_20260114_1400_wednesday_1", {"theme": "Poetry"})
        await store.update_course_status("course_20260119_0900_monday_1", STATUS_CANCELLED)

        stored = {c["id"]: c["status"] for c in json.loads(kv.data[KEY_COURSES])}
        self.assertEqual(stored[running], STATUS_UPCOMING)
        self.assertEqual(stored["course_20260119_0900_monday_1"], STATUS_CANCELLED)
        self.assertEqual(store.get_course(running).status, STATUS_IN_PROGRESS)

        next_day = ScheduleStore(ScheduleRepository(kv), clock=lambda: datetime(2026, 1, 13, 8, 0))
        await next_day.load()
        self.assertEqual(next_day.get_course(running).status, STATUS_UPCOMING)

    async def test_unknown_course_is_noop(self) -> None:
        store = await _configured_store()
        before = store.repository.store.data[KEY_COURSES]
        self.assertIsNone(await store.update_course_details("nope", {"theme": "x"}))
        self.assertIsNone(await store.update_course_status("nope", STATUS_COMPLETED))
        self.assertEqual(store.repository.store.data[KEY_COURSES], before)

    async def test_invalid_status(self) -> None:
        store = await _configured_store()
        with self.assertRaises(InvalidStatusError) as ctx:
            await store.update_course_status("course_20260112_0900_monday_1", "postponed")
        self.assertEqual(ctx.exception.status, "postponed")

    async def test_storage_failure_leaves_memory_unchanged(self) -> None:
        kv = FailingStore()
        store = await _configured_store(kv)
        kv.broken = True
        with self.assertRaises(OSError):
            await store.update_course_details("course_20260112_0900_monday_1", {"theme": "Lost"})
        course = store.get_course("course_20260112_0900_monday_1")
        assert course is not None
        self.assertEqual(course.details.theme, "")

    async def test_load_reconciles_statuses(self) -> None:
        course = GeneratedCourse(
            id="course_20260112_0800_monday_0",
            date="2026-01-12",
            weekday="monday",
            start_time="08:00",
            end_time="09:00",
            subject="Art",
            room="",
            color="",
            status=STATUS_IN_PROGRESS,
        )
        kv = MemoryStore({KEY_COURSES: json.dumps([course.to_dict()])})
        store = _make_store(kv)
        await store.load()
        self.assertEqual(store.courses[0].status, STATUS_COMPLETED)


class TestActivities(unittest.IsolatedAsyncioTestCase):
    async def test_crud_and_toggle(self) -> None:
        store = _make_store()
        await store.load()
        activity = await store.add_activity("Dentist", "2026-01-13", "16:00", "17:00", activity_type="appointment")
        self.assertTrue(activity.id.startswith("activity_"))
        self.assertFalse(activity.complete)

        toggled = await store.toggle_complete(activity.id)
        assert toggled is not None
        self.assertTrue(toggled.complete)
        toggled = await store.toggle_complete(activity.id)
        assert toggled is not None
        self.assertFalse(toggled.complete)

        renamed = await store.update_activity(activity.id, {"title": "Orthodontist"})
        assert renamed is not None
        self.assertEqual(renamed.title, "Orthodontist")
        self.assertEqual([a.title for a in store.activities_by_date("2026-01-13")], ["Orthodontist"])

        await store.delete_activity(activity.id)
        self.assertEqual(store.activities, [])
        self.assertIsNone(await store.toggle_complete(activity.id))

    async def test_invalid_activity_type(self) -> None:
        store = _make_store()
        with self.assertRaises(ValueError):
            await store.add_activity("Nap", "2026-01-13", "13:00", "14:00", activity_type="sleep")


class TestNavigation(unittest.IsolatedAsyncioTestCase):
    async def test_week_navigation(self) -> None:
        store = _make_store()
        self.assertEqual(store.current_week_start, "2026-01-12")
        self.assertEqual(store.next_week(), "2026-01-19")
        self.assertEqual(store.selected_date, "2026-01-19")
        store.previous_week()
        self.assertEqual(store.previous_week(), "2026-01-05")
        self.assertEqual(store.today(), "2026-01-12")
        self.assertEqual(store.current_week_start, "2026-01-12")

        store.select_date("2026-01-22")
        self.assertEqual(store.current_week_start, "2026-01-19")

    async def test_query_by_week_follows_navigation(self) -> None:
        store = await _configured_store()
        self.assertEqual([c.date for c in store.query_by_week()], ["2026-01-12", "2026-01-14"])
        store.next_week()
        self.assertEqual([c.date for c in store.query_by_week()], ["2026-01-19", "2026-01-21"])
        store.next_week()
        self.assertEqual(store.query_by_week(), [])


class TestBackup(unittest.IsolatedAsyncioTestCase):
    async def test_export_import_roundtrip(self) -> None:
        source = await _configured_store()
        await source.update_course_details("course_20260114_1400_wednesday_1", {"unit": "Poems"})
        text = await source.export_data()
        payload = json.loads(text)
        self.assertEqual(set(payload), {"configuration", "courses", "is_configured"})

        target = _make_store()
        await target.load()
        await target.import_data(text)

        self.assertTrue(target.is_configured)
        self.assertEqual([c.id for c in target.courses], [c.id for c in source.courses])
        course = target.get_course("course_20260114_1400_wednesday_1")
        assert course is not None
        self.assertEqual(course.details.unit, "Poems")
        assert target.configuration is not None
        self.assertEqual(target.configuration.weekly_template.monday[0].subject, "Math")

    async def test_invalid_json_writes_nothing(self) -> None:
        kv = MemoryStore()
        store = _make_store(kv)
        with self.assertRaises(json.JSONDecodeError):
            await store.import_data("{not json")
        self.assertEqual(kv.data, {})

    async def test_wrong_structure_raises_value_error(self) -> None:
        kv = MemoryStore()
        store = _make_store(kv)
        with self.assertRaises(ValueError):
            await store.import_data('{"courses": "nope"}')
        with self.assertRaises(ValueError):
            await store.import_data("[1, 2]")
        self.assertEqual(kv.data, {})

    async def test_invalid_course_writes_nothing(self) -> None:
        kv = MemoryStore()
        store = _make_store(kv)
        payloads = [
            '{"courses": [{"id": "x", "subject": "Math"}], "is_configured": true}',
            '{"courses": [{"id": "x", "date": "2026-01-12", "start_time": "9h", "end_time": "10:00"}]}',
            '{"courses": [{"id": "x", "date": "2026-01-12", "start_time": "09:00", "end_time": "10:00", "status": "late"}]}',
            '{"courses": ["x"]}',
        ]
        for payload in payloads:
            with self.assertRaises(ValueError):
                await store.import_data(payload)
        self.assertEqual(kv.data, {})

        await store.load()
        self.assertEqual(store.courses, [])


if __name__ == "__main__":
    unittest.main()
