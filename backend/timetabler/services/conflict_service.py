from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from timetabler.schemas.conflict import ConflictDetail, ConflictReport, ResolutionAction
from timetabler.schemas.timetable import SESSION_WIDTH, PlacedSession
from timetabler.services.occupancy import OccupancyIndex
from timetabler.services.slot_calendar import DEFAULT_CALENDAR, SlotCalendar


class ConflictService:
    def __init__(self, placement: Iterable[PlacedSession], calendar: SlotCalendar = DEFAULT_CALENDAR):
        self.slots: list[PlacedSession] = list(placement)
        self.calendar = calendar

    def detect_conflicts(self) -> ConflictReport:
        conflicts: list[ConflictDetail] = []
        conflicts.extend(self._cell_conflicts())
        conflicts.extend(self._double_bookings("faculty_id", "faculty_conflict"))
        conflicts.extend(self._double_bookings("section", "section_conflict"))
        return ConflictReport(conflicts=conflicts, suggested_resolutions=[])

    def _cell_conflicts(self) -> list[ConflictDetail]:
        conflicts: list[ConflictDetail] = []
        for slot in self.slots:
            indices = list(slot.period_indices)
            width = SESSION_WIDTH[slot.kind]
            if len(indices) != width or (width == 2 and indices[1] != indices[0] + 1):
                conflicts.append(ConflictDetail(
                    id=f"shape-{slot.id}",
                    conflict_type="lab_contiguity" if slot.kind == "lab" else "invalid_slot",
                    description=f"{slot.subject_code} {slot.kind} session occupies periods {indices}",
                    severity="hard",
                    affected_slots=[slot.id],
                ))

            for index in indices:
                period = self.calendar.period(index)
                if period is not None and period.is_lunch:
                    conflicts.append(ConflictDetail(
                        id=f"lunch-{slot.id}-{index}",
                        conflict_type="lunch_break",
                        description=f"{slot.subject_code} is scheduled over lunch on {slot.day}",
                        severity="hard",
                        affected_slots=[slot.id],
                    ))
                elif not self.calendar.is_available(slot.day, index):
                    conflicts.append(ConflictDetail(
                        id=f"cell-{slot.id}-{index}",
                        conflict_type="invalid_slot",
                        description=f"{slot.subject_code} uses unavailable cell {slot.day} period {index}",
                        severity="hard",
                        affected_slots=[slot.id],
                    ))
        return conflicts

    def _double_bookings(self, attribute: str, conflict_type: str) -> list[ConflictDetail]:
        # Bucket by (owner, day, period) so the check stays linear in placement size.
        holders: dict[tuple[str, str, int], list[PlacedSession]] = defaultdict(list)
        for slot in self.slots:
            owner = getattr(slot, attribute)
            for day, index in slot.cells:
                holders[(owner, day, index)].append(slot)

        conflicts: list[ConflictDetail] = []
        reported: set[tuple[str, ...]] = set()
        for (owner, day, index), sessions in holders.items():
            if len(sessions) < 2:
                continue
            ids = tuple(sorted(session.id for session in sessions))
            # A lab clashing over both its periods is one conflict, not two.
            if ids in reported:
                continue
            reported.add(ids)
            first = sessions[0]
            who = first.faculty_name if attribute == "faculty_id" else f"section {owner}"
            codes = ", ".join(session.subject_code for session in sessions)
            conflicts.append(ConflictDetail(
                id=f"{conflict_type}-{'-'.join(ids)}",
                conflict_type=conflict_type,
                description=f"Overlap for {who} on {day} period {index}: {codes}",
                severity="hard",
                affected_slots=list(ids),
            ))
        return conflicts

    def _first_free_cell(self, slot: PlacedSession) -> tuple[str, int] | None:
        others = OccupancyIndex(item for item in self.slots if item.id != slot.id)
        width = SESSION_WIDTH[slot.kind]
        for day, start in self.calendar.candidate_cells():
            indices = self.calendar.span(day, start, width)
            if indices is None:
                continue
            if others.is_free(slot.faculty_id, slot.section, day, indices):
                return day, start
        return None

    def generate_resolutions(self, conflict: ConflictDetail) -> list[ResolutionAction]:
        resolutions = []
        by_id = {slot.id: slot for slot in self.slots}
        target = by_id.get(conflict.affected_slots[-1])
        if target is None:
            return resolutions

        free_cell = self._first_free_cell(target)
        if free_cell is not None:
            day, start = free_cell
            resolutions.append(ResolutionAction(
                action_type="move_slot",
                description=f"Move {target.subject_code} to {day}, {self.calendar.period(start).label}",
                target_slot_id=target.id,
                parameters={"day": day, "startPeriod": start},
            ))
        resolutions.append(ResolutionAction(
            action_type="remove_slot",
            description=f"Remove {target.subject_code} from the timetable",
            target_slot_id=target.id,
            parameters={},
        ))
        return resolutions
