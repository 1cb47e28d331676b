from __future__ import annotations

from collections import Counter, defaultdict
from typing import Iterable

from timetabler.schemas.timetable import PlacedSession

CellKey = tuple[str, str, int]


class OccupancyIndex:
    """Constant-time lookup of who holds a (day, period) cell.

    Cells are tracked twice, once per faculty and once per section, because a
    single grid cell legitimately holds several sessions as long as they
    involve different faculty and different sections.
    """

    def __init__(self, sessions: Iterable[PlacedSession] = ()) -> None:
        self._faculty: dict[CellKey, PlacedSession] = {}
        self._section: dict[CellKey, PlacedSession] = {}
        self._cells: dict[tuple[str, int], list[PlacedSession]] = defaultdict(list)
        self._subject_days: Counter[tuple[str, str, str]] = Counter()
        for session in sessions:
            self.add(session)

    @staticmethod
    def _subject_key(session: PlacedSession) -> tuple[str, str, str]:
        return (session.subject_id, session.section, session.day)

    def add(self, session: PlacedSession) -> None:
        for day, index in session.cells:
            self._faculty[(session.faculty_id, day, index)] = session
            self._section[(session.section, day, index)] = session
            self._cells[(day, index)].append(session)
        self._subject_days[self._subject_key(session)] += 1

    def discard(self, session: PlacedSession) -> None:
        for day, index in session.cells:
            key = (session.faculty_id, day, index)
            if key in self._faculty and self._faculty[key].id == session.id:
                del self._faculty[key]
            key = (session.section, day, index)
            if key in self._section and self._section[key].id == session.id:
                del self._section[key]
            remaining = [item for item in self._cells.get((day, index), []) if item.id != session.id]
            if remaining:
                self._cells[(day, index)] = remaining
            else:
                self._cells.pop((day, index), None)
        subject_key = self._subject_key(session)
        if self._subject_days[subject_key] > 1:
            self._subject_days[subject_key] -= 1
        else:
            self._subject_days.pop(subject_key, None)

    def faculty_occupant(self, faculty_id: str, day: str, index: int) -> PlacedSession | None:
        return self._faculty.get((faculty_id, day, index))

    def section_occupant(self, section: str, day: str, index: int) -> PlacedSession | None:
        return self._section.get((section, day, index))

    def occupants(self, day: str, index: int) -> list[PlacedSession]:
        return list(self._cells.get((day, index), []))

    def subject_on_day(self, subject_id: str, section: str, day: str) -> bool:
        return self._subject_days[(subject_id, section, day)] > 0

    def is_free(
        self,
        faculty_id: str,
        section: str,
        day: str,
        indices: Iterable[int],
        *,
        ignore_id: str | None = None,
    ) -> bool:
        for index in indices:
            for occupant in (
                self.faculty_occupant(faculty_id, day, index),
                self.section_occupant(section, day, index),
            ):
                if occupant is not None and occupant.id != ignore_id:
                    return False
        return True
