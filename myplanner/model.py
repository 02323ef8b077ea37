"""
Central data model definitions used across the project.

This module defines the canonical structure of every record the planner
stores, so that:
- all modules share the same field names
- the JSON files written by storage.py keep a stable schema
- generator, queries and CLI never pass around loose dicts

Every record can be converted to a plain dict (to_dict) and rebuilt from one
(from_dict). Missing optional keys fall back to empty values, so data saved by
older versions still loads.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional


WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
SCHOOL_DAYS = WEEKDAYS[:5]

STATUS_UPCOMING = "upcoming"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUSES = (STATUS_UPCOMING, STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_CANCELLED)

ACTIVITY_TYPES = ("study", "sport", "leisure", "appointment", "other")


def _str(data: Dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key, default)
    return default if value is None else str(value)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(x) for x in value if x is not None]


@dataclass
class TemplateSlot:
    """
    One recurring class of the weekly template ("course base").

    start_time / end_time are 'HH:MM' strings on the same day.
    """

    id: str
    start_time: str
    end_time: str
    subject: str
    room: str = ""
    color: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "subject": self.subject,
            "room": self.room,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TemplateSlot":
        return cls(
            id=_str(data, "id"),
            start_time=_str(data, "start_time"),
            end_time=_str(data, "end_time"),
            subject=_str(data, "subject"),
            room=_str(data, "room"),
            color=_str(data, "color"),
        )


@dataclass
class WeeklyTemplate:
    """
    The fixed Monday-Friday class schedule.

    Each weekday holds its slots ordered by start time.
    """

    monday: List[TemplateSlot] = field(default_factory=list)
    tuesday: List[TemplateSlot] = field(default_factory=list)
    wednesday: List[TemplateSlot] = field(default_factory=list)
    thursday: List[TemplateSlot] = field(default_factory=list)
    friday: List[TemplateSlot] = field(default_factory=list)

    def slots_for(self, weekday: str) -> List[TemplateSlot]:
        """
        Return the slots of a weekday ('monday'..'friday').
        Weekend days have no slots.
        """
        if weekday not in SCHOOL_DAYS:
            return []
        return getattr(self, weekday)

    def all_slots(self) -> List[TemplateSlot]:
        out: List[TemplateSlot] = []
        for day in SCHOOL_DAYS:
            out.extend(self.slots_for(day))
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {day: [s.to_dict() for s in self.slots_for(day)] for day in SCHOOL_DAYS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeeklyTemplate":
        kwargs: Dict[str, List[TemplateSlot]] = {}
        for day in SCHOOL_DAYS:
            raw = data.get(day, [])
            slots = [TemplateSlot.from_dict(x) for x in raw if isinstance(x, dict)] if isinstance(raw, list) else []
            kwargs[day] = slots
        return cls(**kwargs)


@dataclass
class SchoolYearPeriod:
    start_date: str
    end_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {"start_date": self.start_date, "end_date": self.end_date}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchoolYearPeriod":
        return cls(start_date=_str(data, "start_date"), end_date=_str(data, "end_date"))


@dataclass
class VacationInterval:
    """
    A named, inclusive date range during which no classes are generated.
    """

    id: str
    name: str
    start_date: str
    end_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "start_date": self.start_date, "end_date": self.end_date}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VacationInterval":
        return cls(
            id=_str(data, "id"),
            name=_str(data, "name"),
            start_date=_str(data, "start_date"),
            end_date=_str(data, "end_date"),
        )


@dataclass
class ScheduleConfiguration:
    """
    Root configuration object. Everything else is derived from it.
    """

    weekly_template: WeeklyTemplate = field(default_factory=WeeklyTemplate)
    school_year_period: Optional[SchoolYearPeriod] = None
    vacations: List[VacationInterval] = field(default_factory=list)
    last_modified: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weekly_template": self.weekly_template.to_dict(),
            "school_year_period": self.school_year_period.to_dict() if self.school_year_period else None,
            "vacations": [v.to_dict() for v in self.vacations],
            "last_modified": self.last_modified,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleConfiguration":
        period_raw = data.get("school_year_period")
        vacations_raw = data.get("vacations", [])
        template_raw = data.get("weekly_template") or {}
        return cls(
            weekly_template=WeeklyTemplate.from_dict(template_raw),
            school_year_period=SchoolYearPeriod.from_dict(period_raw) if isinstance(period_raw, dict) else None,
            vacations=[VacationInterval.from_dict(v) for v in vacations_raw if isinstance(v, dict)]
            if isinstance(vacations_raw, list)
            else [],
            last_modified=_str(data, "last_modified"),
        )


@dataclass
class CourseDetails:
    """
    Free-text notes a student attaches to one dated course.
    """

    theme: str = ""
    objectives: List[str] = field(default_factory=list)
    activities: List[str] = field(default_factory=list)
    evaluation_type: str = ""
    unit: str = ""
    personal_notes: str = ""
    last_updated: str = ""

    def is_empty(self) -> bool:
        return not (self.theme or self.objectives or self.activities)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "theme": self.theme,
            "objectives": list(self.objectives),
            "activities": list(self.activities),
            "evaluation_type": self.evaluation_type,
            "unit": self.unit,
            "personal_notes": self.personal_notes,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CourseDetails":
        return cls(
            theme=_str(data, "theme"),
            objectives=_str_list(data.get("objectives")),
            activities=_str_list(data.get("activities")),
            evaluation_type=_str(data, "evaluation_type"),
            unit=_str(data, "unit"),
            personal_notes=_str(data, "personal_notes"),
            last_updated=_str(data, "last_updated"),
        )


DETAIL_FIELDS = ("theme", "objectives", "activities", "evaluation_type", "unit", "personal_notes")


@dataclass
class GeneratedCourse:
    """
    One concrete dated instance of a template slot.
    """

    id: str
    date: str
    weekday: str
    start_time: str
    end_time: str
    subject: str
    room: str
    color: str
    details: CourseDetails = field(default_factory=CourseDetails)
    status: str = STATUS_UPCOMING
    slot_id: str = ""

    def with_status(self, status: str) -> "GeneratedCourse":
        return replace(self, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "weekday": self.weekday,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "subject": self.subject,
            "room": self.room,
            "color": self.color,
            "details": self.details.to_dict(),
            "status": self.status,
            "slot_id": self.slot_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratedCourse":
        details_raw = data.get("details")
        return cls(
            id=_str(data, "id"),
            date=_str(data, "date"),
            weekday=_str(data, "weekday"),
            start_time=_str(data, "start_time"),
            end_time=_str(data, "end_time"),
            subject=_str(data, "subject"),
            room=_str(data, "room"),
            color=_str(data, "color"),
            details=CourseDetails.from_dict(details_raw) if isinstance(details_raw, dict) else CourseDetails(),
            status=_str(data, "status", STATUS_UPCOMING),
            slot_id=_str(data, "slot_id"),
        )


@dataclass
class PersonalActivity:
    """
    A user-authored calendar entry, independent of the class template.
    """

    id: str
    title: str
    date: str
    start_time: str
    end_time: str
    description: str = ""
    activity_type: str = "other"
    color: str = ""
    reminder: bool = False
    complete: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "activity_type": self.activity_type,
            "color": self.color,
            "reminder": self.reminder,
            "complete": self.complete,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersonalActivity":
        return cls(
            id=_str(data, "id"),
            title=_str(data, "title"),
            description=_str(data, "description"),
            date=_str(data, "date"),
            start_time=_str(data, "start_time"),
            end_time=_str(data, "end_time"),
            activity_type=_str(data, "activity_type", "other"),
            color=_str(data, "color"),
            reminder=bool(data.get("reminder", False)),
            complete=bool(data.get("complete", False)),
        )


def _checked_course(raw: Any, index: int) -> GeneratedCourse:
    if not isinstance(raw, dict):
        raise ValueError(f"courses[{index}] must be an object")
    course = GeneratedCourse.from_dict(raw)
    try:
        datetime.strptime(course.date.strip(), "%Y-%m-%d")
        datetime.strptime(course.start_time.strip(), "%H:%M")
        datetime.strptime(course.end_time.strip(), "%H:%M")
    except ValueError:
        raise ValueError(f"courses[{index}] ({course.id or 'no id'}) has an invalid date or time") from None
    if course.status not in STATUSES:
        raise ValueError(f"courses[{index}] ({course.id or 'no id'}) has an invalid status: {course.status!r}")
    return course


@dataclass
class ScheduleData:
    """
    The exported backup: configuration, generated courses and setup flag.
    """

    configuration: Optional[ScheduleConfiguration]
    courses: List[GeneratedCourse]
    is_configured: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "configuration": self.configuration.to_dict() if self.configuration else None,
            "courses": [c.to_dict() for c in self.courses],
            "is_configured": self.is_configured,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleData":
        """
        Strict variant used by imports: the top level must be an object with
        a list of courses, and every course needs a valid date, valid start and
        end times and a known status. Anything else raises ValueError.
        """
        if not isinstance(data, dict):
            raise ValueError("Backup must be a JSON object")
        config_raw = data.get("configuration")
        if config_raw is not None and not isinstance(config_raw, dict):
            raise ValueError("'configuration' must be an object or null")
        courses_raw = data.get("courses", [])
        if not isinstance(courses_raw, list):
            raise ValueError("'courses' must be a list")
        return cls(
            configuration=ScheduleConfiguration.from_dict(config_raw) if config_raw is not None else None,
            courses=[_checked_course(c, i) for i, c in enumerate(courses_raw)],
            is_configured=bool(data.get("is_configured", False)),
        )


@dataclass
class ScheduleStats:
    total: int = 0
    upcoming: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    with_details: int = 0
