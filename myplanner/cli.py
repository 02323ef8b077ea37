"""
CLI (Command Line Interface).

This module is the composition root: it builds the ScheduleStore on top of a
JSON file and maps terminal commands onto store operations, e.g.:

    myplanner template add monday 08:00 09:00 Math --room B12
    myplanner period 2026-09-01 2027-06-30
    myplanner vacation add "Winter break" 2026-12-19 2027-01-03
    myplanner generate
    myplanner week --date 2026-09-14
    myplanner details course_20260914_0800_monday_1 --theme Fractions
    myplanner export backup.json

Tables are rendered with rich. Every command returns 0 on success and 1 on a
user error (bad input, missing configuration); the message is printed, no
traceback.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import uuid
from datetime import date
from pathlib import Path
from typing import Awaitable, Callable, Dict, List

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from myplanner.calendar_utils import (
    duration_minutes,
    format_date,
    format_date_long,
    format_date_short,
    format_duration,
    month_grid,
    parse_date,
    time_to_minutes,
    week_dates,
    week_number,
)
from myplanner.conflicts import find_conflicts, find_template_overlaps
from myplanner.errors import PlannerError
from myplanner.generator import count_school_days
from myplanner.model import (
    ACTIVITY_TYPES,
    SCHOOL_DAYS,
    STATUSES,
    GeneratedCourse,
    SchoolYearPeriod,
    TemplateSlot,
    VacationInterval,
    WeeklyTemplate,
)
from myplanner.query import group_by_date
from myplanner.storage import JsonFileStore, ScheduleRepository
from myplanner.store import ScheduleStore
from myplanner.vacations import vacation_for

logger = logging.getLogger(__name__)

console = Console()

Handler = Callable[[argparse.Namespace, ScheduleStore], Awaitable[int]]


def build_store(data_path: str | Path | None = None) -> ScheduleStore:
    """
    Wire the store to a JSON file (default: the package data directory).
    """
    return ScheduleStore(ScheduleRepository(JsonFileStore(data_path)))


def _check_time_range(start: str, end: str) -> None:
    if time_to_minutes(start) >= time_to_minutes(end):
        raise ValueError(f"Start time {start} must be before end time {end}")


def _course_line(c: GeneratedCourse) -> str:
    bits = [f"{c.start_time}-{c.end_time}", c.subject]
    if c.room:
        bits.append(f"@ {c.room}")
    if c.status != "upcoming":
        bits.append(f"({c.status})")
    return " | ".join(bits)


def _course_table(title: str, courses: List[GeneratedCourse]) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Time")
    table.add_column("Subject")
    table.add_column("Room")
    table.add_column("Duration", justify="right")
    table.add_column("Status")
    table.add_column("ID", style="dim")
    for c in courses:
        table.add_row(
            f"{c.start_time}-{c.end_time}",
            f"[bold]{c.subject}[/]",
            c.room,
            format_duration(duration_minutes(c.start_time, c.end_time)),
            c.status,
            c.id,
        )
    return table


# ---------------------------------------------------------------------------
# Template / period / vacations
# ---------------------------------------------------------------------------


async def _cmd_template(args: argparse.Namespace, store: ScheduleStore) -> int:
    config = store.configuration
    template = config.weekly_template if config else WeeklyTemplate()

    if args.action == "show":
        table = Table(title="Weekly template", box=box.SIMPLE)
        for day in SCHOOL_DAYS:
            table.add_column(day.capitalize())
        rows = max((len(template.slots_for(d)) for d in SCHOOL_DAYS), default=0)
        for r in range(rows):
            row = []
            for day in SCHOOL_DAYS:
                slots = template.slots_for(day)
                row.append(f"{slots[r].start_time}-{slots[r].end_time} {slots[r].subject}" if r < len(slots) else "")
            table.add_row(*row)
        console.print(table)
        for day, a, b in find_template_overlaps(template):
            console.print(f"[yellow]Overlap on {day}:[/] {a.subject} {a.start_time}-{a.end_time} <-> {b.subject} {b.start_time}-{b.end_time}")
        return 0

    weekday = args.weekday.strip().lower()
    if weekday not in SCHOOL_DAYS:
        console.print(f"Weekday must be one of: {', '.join(SCHOOL_DAYS)}")
        return 1
    slots = list(template.slots_for(weekday))

    if args.action == "clear":
        slots = []
    else:
        _check_time_range(args.start, args.end)
        used = {s.id for s in slots}
        n = len(slots) + 1
        while f"{weekday}_{n}" in used:
            n += 1
        slots.append(
            TemplateSlot(
                id=f"{weekday}_{n}",
                start_time=args.start,
                end_time=args.end,
                subject=args.subject,
                room=args.room or "",
                color=args.color or "",
            )
        )
        slots.sort(key=lambda s: time_to_minutes(s.start_time))

    setattr(template, weekday, slots)
    await store.save_weekly_template(template)
    console.print(f"{weekday.capitalize()}: {len(slots)} slots. Run 'generate' to apply.")
    return 0


async def _cmd_period(args: argparse.Namespace, store: ScheduleStore) -> int:
    period = SchoolYearPeriod(format_date(args.start), format_date(args.end))
    await store.save_school_year_period(period)
    if parse_date(period.start_date) > parse_date(period.end_date):
        console.print("[yellow]Warning:[/] start date is after end date, no course will be generated.")
    console.print(f"School year: {period.start_date} -> {period.end_date}")
    return 0


async def _cmd_vacation(args: argparse.Namespace, store: ScheduleStore) -> int:
    vacations = list(store.configuration.vacations) if store.configuration else []

    if args.action == "list":
        if not vacations:
            console.print("No vacations.")
            return 0
        table = Table(title="Vacations", box=box.SIMPLE)
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("From")
        table.add_column("To")
        for v in sorted(vacations, key=lambda v: v.start_date):
            table.add_row(v.id, v.name, v.start_date, v.end_date)
        console.print(table)
        return 0

    if args.action == "add":
        vacations.append(
            VacationInterval(
                id=f"vacation_{uuid.uuid4().hex[:8]}",
                name=args.name,
                start_date=format_date(args.start),
                end_date=format_date(args.end),
            )
        )
        await store.save_vacations(vacations)
        console.print(f"Added vacation: {args.name}")
        return 0

    remaining = [v for v in vacations if v.id != args.id]
    if len(remaining) == len(vacations):
        console.print(f"Not found: {args.id}")
        return 1
    await store.save_vacations(remaining)
    console.print(f"Removed: {args.id}")
    return 0


async def _cmd_generate(args: argparse.Namespace, store: ScheduleStore) -> int:
    courses = await store.regenerate(preserve_details=not args.discard_details)
    days = count_school_days(store.configuration) if store.configuration else 0
    console.print(f"Generated [bold]{len(courses)}[/] courses over {days} school days.")
    return 0


async def _cmd_reset(args: argparse.Namespace, store: ScheduleStore) -> int:
    await store.reset()
    console.print("Schedule configuration and courses removed.")
    return 0


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


async def _cmd_week(args: argparse.Namespace, store: ScheduleStore) -> int:
    if args.date:
        store.select_date(args.date)
    else:
        store.today()
    if args.offset > 0:
        for _ in range(args.offset):
            store.next_week()
    elif args.offset < 0:
        for _ in range(-args.offset):
            store.previous_week()

    dates = week_dates(store.current_week_start)[:5]
    by_day = group_by_date(store.query_by_week())
    vacations = store.configuration.vacations if store.configuration else []

    table = Table(title=f"Week {week_number(dates[0])} ({dates[0]} - {dates[-1]})", box=box.SIMPLE)
    for d in dates:
        table.add_column(format_date_short(d))

    columns: List[List[str]] = []
    for d in dates:
        vac = vacation_for(d, vacations)
        if vac is not None:
            columns.append([f"[green]{vac.name}[/]"])
        else:
            columns.append([_course_line(c) for c in sorted(by_day.get(d, []), key=lambda c: time_to_minutes(c.start_time))])
        columns[-1].extend(f"[magenta]{a.start_time}-{a.end_time} {a.title}[/]" for a in store.activities_by_date(d))

    rows = max((len(col) for col in columns), default=0)
    for r in range(rows):
        table.add_row(*[col[r] if r < len(col) else "" for col in columns])
    console.print(table)
    return 0


async def _cmd_day(args: argparse.Namespace, store: ScheduleStore) -> int:
    day = format_date(args.date) if args.date else store.today()
    courses = store.query_by_date(day)
    activities = store.activities_by_date(day)

    if not courses and not activities:
        console.print(f"{format_date_long(day)}: nothing planned.")
        return 0

    console.print(_course_table(format_date_long(day), courses))
    for a in activities:
        mark = "x" if a.complete else " "
        console.print(f"[{mark}] {a.start_time}-{a.end_time} {a.title} ({a.activity_type})  [dim]{a.id}[/]")

    for a, b in find_conflicts([*courses, *activities]):
        label_a = getattr(a, "subject", None) or a.title
        label_b = getattr(b, "subject", None) or b.title
        console.print(f"[yellow]Conflict:[/] {label_a} {a.start_time}-{a.end_time} <-> {label_b} {b.start_time}-{b.end_time}")
    return 0


async def _cmd_month(args: argparse.Namespace, store: ScheduleStore) -> int:
    today = parse_date(store.today())
    year = args.year or today.year
    month = args.month or today.month

    by_day = group_by_date(store.query_by_month(year, month))
    table = Table(title=f"{year}-{month:02d}", box=box.SIMPLE)
    for name in ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]:
        table.add_column(name, justify="right")

    cells = month_grid(year, month)
    for w in range(6):
        row = []
        for cell in cells[w * 7 : w * 7 + 7]:
            if not cell.in_month:
                row.append(f"[dim]{cell.day_number}[/]")
                continue
            n = len(by_day.get(cell.date, []))
            text = f"{cell.day_number} ({n})" if n else str(cell.day_number)
            row.append(f"[bold]{text}[/]" if cell.date == format_date(today) else text)
        table.add_row(*row)
    console.print(table)
    return 0


async def _cmd_next(args: argparse.Namespace, store: ScheduleStore) -> int:
    course = store.next_course()
    if course is None:
        console.print("No upcoming course.")
        return 0
    console.print(f"Next: {format_date_long(course.date)} | {_course_line(course)}")
    today = store.upcoming_today()
    if today:
        console.print(f"Still today: {len(today)} course(s)")
    return 0


async def _cmd_search(args: argparse.Namespace, store: ScheduleStore) -> int:
    text = (args.text or "").strip()
    if not text:
        console.print("Please provide a search text.")
        return 1

    matches = store.search(text)
    if not matches:
        console.print("No results.")
        return 0

    console.print(_course_table(f"Search: {text} ({len(matches)})", matches[:20]))
    if len(matches) > 20:
        console.print(f"... and {len(matches) - 20} more results")
    return 0


async def _cmd_stats(args: argparse.Namespace, store: ScheduleStore) -> int:
    stats = store.statistics()
    table = Table(title="Courses", box=box.SIMPLE)
    table.add_column("Status")
    table.add_column("Count", justify="right")
    table.add_row("upcoming", str(stats.upcoming))
    table.add_row("in-progress", str(stats.in_progress))
    table.add_row("completed", str(stats.completed))
    table.add_row("cancelled", str(stats.cancelled))
    table.add_row("with details", str(stats.with_details))
    table.add_row("[bold]total[/]", f"[bold]{stats.total}[/]")
    console.print(table)
    return 0


# ---------------------------------------------------------------------------
# Course edits
# ---------------------------------------------------------------------------


async def _cmd_details(args: argparse.Namespace, store: ScheduleStore) -> int:
    changes: Dict[str, object] = {}
    for attr, key in [
        ("theme", "theme"),
        ("unit", "unit"),
        ("notes", "personal_notes"),
        ("evaluation", "evaluation_type"),
        ("objective", "objectives"),
        ("activity", "activities"),
    ]:
        value = getattr(args, attr)
        if value is not None:
            changes[key] = value

    if not changes:
        course = store.get_course(args.course_id)
        if course is None:
            console.print(f"Not found: {args.course_id}")
            return 1
        console.print(course.details)
        return 0

    updated = await store.update_course_details(args.course_id, changes)
    if updated is None:
        console.print(f"Not found: {args.course_id}")
        return 1
    console.print(f"Updated: {updated.subject} on {updated.date}")
    return 0


async def _cmd_status(args: argparse.Namespace, store: ScheduleStore) -> int:
    updated = await store.update_course_status(args.course_id, args.status)
    if updated is None:
        console.print(f"Not found: {args.course_id}")
        return 1
    console.print(f"{updated.subject} on {updated.date}: {updated.status}")
    return 0


# ---------------------------------------------------------------------------
# Personal activities
# ---------------------------------------------------------------------------


async def _cmd_activity(args: argparse.Namespace, store: ScheduleStore) -> int:
    if args.action == "add":
        _check_time_range(args.start, args.end)
        activity = await store.add_activity(
            title=args.title,
            date=args.date,
            start_time=args.start,
            end_time=args.end,
            description=args.description or "",
            activity_type=args.type,
            reminder=args.reminder,
        )
        console.print(f"Added: {activity.title} ({activity.id})")
        return 0

    if args.action == "list":
        activities = store.activities_by_date(args.date) if args.date else store.activities
        if not activities:
            console.print("No activities.")
            return 0
        for a in sorted(activities, key=lambda a: (a.date, a.start_time)):
            mark = "x" if a.complete else " "
            console.print(f"[{mark}] {a.date} {a.start_time}-{a.end_time} {a.title} ({a.activity_type})  [dim]{a.id}[/]")
        return 0

    if args.action == "done":
        activity = await store.toggle_complete(args.id)
        if activity is None:
            console.print(f"Not found: {args.id}")
            return 1
        console.print(f"{activity.title}: {'complete' if activity.complete else 'not complete'}")
        return 0

    await store.delete_activity(args.id)
    console.print(f"Removed: {args.id}")
    return 0


# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------


async def _cmd_export(args: argparse.Namespace, store: ScheduleStore) -> int:
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(await store.export_data(), encoding="utf-8")
    console.print(f"Exported {len(store.courses)} courses to: {out}")
    return 0


async def _cmd_import(args: argparse.Namespace, store: ScheduleStore) -> int:
    data = await store.import_data(Path(args.file).read_text(encoding="utf-8"))
    console.print(f"Imported {len(data.courses)} courses.")
    return 0


HANDLERS: Dict[str, Handler] = {
    "template": _cmd_template,
    "period": _cmd_period,
    "vacation": _cmd_vacation,
    "generate": _cmd_generate,
    "reset": _cmd_reset,
    "week": _cmd_week,
    "day": _cmd_day,
    "month": _cmd_month,
    "next": _cmd_next,
    "search": _cmd_search,
    "stats": _cmd_stats,
    "details": _cmd_details,
    "status": _cmd_status,
    "activity": _cmd_activity,
    "export": _cmd_export,
    "import": _cmd_import,
}


def _date_arg(text: str) -> date:
    try:
        return parse_date(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {text!r}")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="myplanner", description="MyPlanner CLI")
    parser.add_argument("--data", type=str, default=None, help="Path of the JSON data file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log storage operations")
    sub = parser.add_subparsers(dest="command", required=True)

    p_tpl = sub.add_parser("template", help="Edit the weekly template")
    tpl = p_tpl.add_subparsers(dest="action", required=True)
    tpl.add_parser("show", help="Show the weekly template")
    p_tpl_add = tpl.add_parser("add", help="Add a slot")
    p_tpl_add.add_argument("weekday", type=str, help="monday..friday")
    p_tpl_add.add_argument("start", type=str, help="HH:MM")
    p_tpl_add.add_argument("end", type=str, help="HH:MM")
    p_tpl_add.add_argument("subject", type=str)
    p_tpl_add.add_argument("--room", type=str, default="")
    p_tpl_add.add_argument("--color", type=str, default="")
    p_tpl_clear = tpl.add_parser("clear", help="Remove all slots of a weekday")
    p_tpl_clear.add_argument("weekday", type=str)

    p_period = sub.add_parser("period", help="Set the school year")
    p_period.add_argument("start", type=_date_arg)
    p_period.add_argument("end", type=_date_arg)

    p_vac = sub.add_parser("vacation", help="Manage vacations")
    vac = p_vac.add_subparsers(dest="action", required=True)
    vac.add_parser("list")
    p_vac_add = vac.add_parser("add")
    p_vac_add.add_argument("name", type=str)
    p_vac_add.add_argument("start", type=_date_arg)
    p_vac_add.add_argument("end", type=_date_arg)
    p_vac_rm = vac.add_parser("remove")
    p_vac_rm.add_argument("id", type=str)

    p_gen = sub.add_parser("generate", help="Generate all courses of the school year")
    p_gen.add_argument("--discard-details", action="store_true", help="Drop notes of existing courses")

    sub.add_parser("reset", help="Remove configuration and courses")

    p_week = sub.add_parser("week", help="Week timetable")
    p_week.add_argument("--date", type=_date_arg, default=None)
    p_week.add_argument("--offset", type=int, default=0, help="Weeks forward (+) or back (-)")

    p_day = sub.add_parser("day", help="Courses and activities of one day")
    p_day.add_argument("date", type=_date_arg, nargs="?", default=None)

    p_month = sub.add_parser("month", help="Month overview")
    p_month.add_argument("year", type=int, nargs="?", default=None)
    p_month.add_argument("month", type=int, nargs="?", default=None)

    sub.add_parser("next", help="Next upcoming course")

    p_search = sub.add_parser("search", help="Search courses and notes")
    p_search.add_argument("text", type=str)

    sub.add_parser("stats", help="Course statistics")

    p_details = sub.add_parser("details", help="Show or edit course notes")
    p_details.add_argument("course_id", type=str)
    p_details.add_argument("--theme", type=str)
    p_details.add_argument("--unit", type=str)
    p_details.add_argument("--notes", type=str)
    p_details.add_argument("--evaluation", type=str)
    p_details.add_argument("--objective", action="append")
    p_details.add_argument("--activity", action="append")

    p_status = sub.add_parser("status", help="Set a course status")
    p_status.add_argument("course_id", type=str)
    p_status.add_argument("status", type=str, choices=STATUSES)

    p_act = sub.add_parser("activity", help="Personal activities")
    act = p_act.add_subparsers(dest="action", required=True)
    p_act_add = act.add_parser("add")
    p_act_add.add_argument("title", type=str)
    p_act_add.add_argument("date", type=_date_arg)
    p_act_add.add_argument("start", type=str)
    p_act_add.add_argument("end", type=str)
    p_act_add.add_argument("--type", type=str, default="other", choices=ACTIVITY_TYPES)
    p_act_add.add_argument("--description", type=str, default="")
    p_act_add.add_argument("--reminder", action="store_true")
    p_act_list = act.add_parser("list")
    p_act_list.add_argument("--date", type=_date_arg, default=None)
    p_act_done = act.add_parser("done", help="Toggle completion")
    p_act_done.add_argument("id", type=str)
    p_act_rm = act.add_parser("remove")
    p_act_rm.add_argument("id", type=str)

    p_export = sub.add_parser("export", help="Write a JSON backup")
    p_export.add_argument("out", type=str)

    p_import = sub.add_parser("import", help="Restore a JSON backup")
    p_import.add_argument("file", type=str)

    return parser


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


async def _run(args: argparse.Namespace) -> int:
    store = build_store(args.data)
    try:
        await store.load()
        return await HANDLERS[args.command](args, store)
    except (PlannerError, ValueError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error:[/] {e}")
        return 1


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, runs the command handler,
    and exits via SystemExit with its return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    raise SystemExit(asyncio.run(_run(args)))
