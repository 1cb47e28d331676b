from __future__ import annotations

import logging
import uuid

from timetabler.schemas.conflict import SlotConflict
from timetabler.schemas.timetable import SESSION_WIDTH, PlacedSession
from timetabler.services.occupancy import OccupancyIndex
from timetabler.services.slot_calendar import DEFAULT_CALENDAR, SlotCalendar

logger = logging.getLogger(__name__)


class TimetableEditor:
    """Incremental add/edit/remove on a caller-owned placement list.

    The list passed in is mutated in place on success and left untouched on
    any conflict. The engine is never re-run; only the affected cells are
    checked against the occupancy index.
    """

    def __init__(self, placement: list[PlacedSession], calendar: SlotCalendar = DEFAULT_CALENDAR) -> None:
        self.placement = placement
        self.calendar = calendar
        self.index = OccupancyIndex(placement)

    def find(self, session_id: str) -> PlacedSession | None:
        position = self._position(session_id)
        return None if position is None else self.placement[position]

    def _position(self, session_id: str) -> int | None:
        for position, session in enumerate(self.placement):
            if session.id == session_id:
                return position
        return None

    def _period_label(self, index: int) -> str:
        period = self.calendar.period(index)
        return period.label if period is not None else f"period {index}"

    def check(self, session: PlacedSession, *, ignore_id: str | None = None) -> SlotConflict | None:
        """First reason `session` cannot sit in its cells, or None when it fits."""
        day = session.day
        indices = list(session.period_indices)
        width = SESSION_WIDTH[session.kind]

        if self.calendar.day_index(day) is None:
            return SlotConflict(
                conflict_type="invalid_slot",
                description=f"{day} is not a teaching day",
                day=day,
            )
        if len(indices) != width or (width == 2 and indices[1] != indices[0] + 1):
            return SlotConflict(
                conflict_type="lab_contiguity" if session.kind == "lab" else "invalid_slot",
                description=(
                    f"A {session.kind} session needs {width} consecutive period(s), got {indices}"
                ),
                day=day,
                period_index=indices[0],
            )

        for index in indices:
            period = self.calendar.period(index)
            if period is None:
                return SlotConflict(
                    conflict_type="invalid_slot",
                    description=f"Period {index} does not exist",
                    day=day,
                    period_index=index,
                )
            if period.is_lunch:
                return SlotConflict(
                    conflict_type="lunch_break",
                    description=f"{day} {period.start}-{period.end} is the lunch break",
                    day=day,
                    period_index=index,
                )
            if not self.calendar.is_available(day, index):
                return SlotConflict(
                    conflict_type="invalid_slot",
                    description=f"{period.label} is not available for teaching on {day}",
                    day=day,
                    period_index=index,
                )

        for index in indices:
            occupant = self.index.faculty_occupant(session.faculty_id, day, index)
            if occupant is not None and occupant.id != ignore_id:
                return SlotConflict(
                    conflict_type="faculty_conflict",
                    description=(
                        f"{occupant.faculty_name} already teaches {occupant.subject_code} "
                        f"{occupant.subject_name} to section {occupant.section} on {day}, "
                        f"{self._period_label(index)}"
                    ),
                    day=day,
                    period_index=index,
                    existing=occupant,
                )
            occupant = self.index.section_occupant(session.section, day, index)
            if occupant is not None and occupant.id != ignore_id:
                return SlotConflict(
                    conflict_type="section_conflict",
                    description=(
                        f"Section {occupant.section} already has {occupant.subject_code} "
                        f"{occupant.subject_name} with {occupant.faculty_name} on {day}, "
                        f"{self._period_label(index)}"
                    ),
                    day=day,
                    period_index=index,
                    existing=occupant,
                )
        return None

    def _with_times(self, session: PlacedSession, **changes) -> PlacedSession:
        updated = session.model_copy(update=changes)
        start_time, end_time = self.calendar.times_for(updated.period_indices)
        return updated.model_copy(update={"start_time": start_time, "end_time": end_time})

    def add(self, session: PlacedSession) -> PlacedSession | SlotConflict:
        conflict = self.check(session)
        if conflict is not None:
            logger.info("Rejected manual add of %s: %s", session.subject_code, conflict.conflict_type)
            return conflict

        changes = {}
        if self.find(session.id) is not None:
            changes["id"] = uuid.uuid4().hex
        placed = self._with_times(session, **changes)
        self.placement.append(placed)
        self.index.add(placed)
        return placed

    def edit(self, target: PlacedSession | str, day: str, start_period: int) -> PlacedSession | SlotConflict:
        target_id = target if isinstance(target, str) else target.id
        position = self._position(target_id)
        if position is None:
            return SlotConflict(
                conflict_type="not_found",
                description=f"Session {target_id} is not part of this timetable",
            )
        current = self.placement[position]
        width = SESSION_WIDTH[current.kind]
        moved = current.model_copy(
            update={"day": day, "period_indices": list(range(start_period, start_period + width))}
        )

        # The session's own cells never count against it.
        conflict = self.check(moved, ignore_id=current.id)
        if conflict is not None:
            logger.info("Rejected move of %s to %s/%d: %s", current.id, day, start_period, conflict.conflict_type)
            return conflict

        moved = self._with_times(moved)
        self.index.discard(current)
        self.placement[position] = moved
        self.index.add(moved)
        return moved

    def remove(self, target: PlacedSession | str) -> list[PlacedSession]:
        target_id = target if isinstance(target, str) else target.id
        position = self._position(target_id)
        if position is not None:
            removed = self.placement.pop(position)
            self.index.discard(removed)
        return self.placement


def add_session(
    placement: list[PlacedSession],
    session: PlacedSession,
    calendar: SlotCalendar = DEFAULT_CALENDAR,
) -> PlacedSession | SlotConflict:
    return TimetableEditor(placement, calendar).add(session)


def edit_session(
    placement: list[PlacedSession],
    target: PlacedSession | str,
    day: str,
    start_period: int,
    calendar: SlotCalendar = DEFAULT_CALENDAR,
) -> PlacedSession | SlotConflict:
    return TimetableEditor(placement, calendar).edit(target, day, start_period)


def remove_session(
    placement: list[PlacedSession],
    target: PlacedSession | str,
    calendar: SlotCalendar = DEFAULT_CALENDAR,
) -> list[PlacedSession]:
    return TimetableEditor(placement, calendar).remove(target)
