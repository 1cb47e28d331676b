from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from timetabler.schemas.timetable import FacultyWorkload, PlacedSession
from timetabler.services.slot_calendar import DEFAULT_CALENDAR, SlotCalendar


def _session_sort_key(calendar: SlotCalendar, session: PlacedSession) -> tuple[int, int]:
    day_position = calendar.day_index(session.day)
    return (len(calendar.days) if day_position is None else day_position, min(session.period_indices))


def compute_workloads(
    placement: Iterable[PlacedSession],
    calendar: SlotCalendar = DEFAULT_CALENDAR,
) -> list[FacultyWorkload]:
    """Per-faculty totals derived from a placement.

    Always recomputed from scratch; nothing here is cached between calls, so a
    workload can never drift from the placement it describes.
    """
    by_faculty: dict[str, list[PlacedSession]] = defaultdict(list)
    names: dict[str, str] = {}
    for session in placement:
        by_faculty[session.faculty_id].append(session)
        names.setdefault(session.faculty_id, session.faculty_name)

    workloads: list[FacultyWorkload] = []
    for faculty_id, sessions in by_faculty.items():
        morning = 0
        afternoon = 0
        periods_per_day: dict[str, int] = {day: 0 for day in calendar.days}
        for session in sessions:
            # A lab counts once; it never straddles the lunch cutoff.
            if calendar.is_morning(session.period_indices[0]):
                morning += 1
            else:
                afternoon += 1
            periods_per_day[session.day] = periods_per_day.get(session.day, 0) + 1

        day_schedule: dict[str, list[PlacedSession]] = {day: [] for day in calendar.days}
        for session in sorted(sessions, key=lambda item: _session_sort_key(calendar, item)):
            day_schedule.setdefault(session.day, []).append(session)

        workloads.append(
            FacultyWorkload(
                faculty_id=faculty_id,
                faculty_name=names[faculty_id],
                total_periods=morning + afternoon,
                total_sessions=len(sessions),
                morning_periods=morning,
                afternoon_periods=afternoon,
                day_schedule=day_schedule,
                periods_per_day=periods_per_day,
            )
        )

    workloads.sort(key=lambda item: (item.faculty_name.lower(), item.faculty_id))
    return workloads


def skewed_workloads(workloads: Iterable[FacultyWorkload], threshold: int) -> list[FacultyWorkload]:
    return [item for item in workloads if item.skew > threshold]
