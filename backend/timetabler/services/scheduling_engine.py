from __future__ import annotations

from collections import Counter
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Iterator, Sequence

from timetabler.schemas.timetable import (
    SESSION_WIDTH,
    FacultyWorkload,
    GenerationResult,
    PlacedSession,
    SessionRequest,
    Shortfall,
)
from timetabler.services.occupancy import OccupancyIndex
from timetabler.services.slot_calendar import DEFAULT_CALENDAR, UNASSIGNED_ROOM, SlotCalendar
from timetabler.services.workload import compute_workloads, skewed_workloads

DEFAULT_SKEW_THRESHOLD = 4

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementDemand:
    request_index: int
    ordinal: int
    request: SessionRequest
    width: int

    @property
    def is_lab(self) -> bool:
        return self.request.kind == "lab"


@dataclass(frozen=True)
class CandidateCell:
    day: str
    day_position: int
    period_indices: tuple[int, ...]


def weekly_demand(request: SessionRequest) -> int:
    """Blocks a request needs per week; a lab is always a single double-period block."""
    if request.sessions_per_week <= 0:
        return 0
    return 1 if request.kind == "lab" else request.sessions_per_week


class FacultyBalance:
    """Running morning/afternoon session counts per faculty during one generation."""

    def __init__(self, calendar: SlotCalendar) -> None:
        self._calendar = calendar
        self._counts: dict[str, list[int]] = {}

    def record(self, faculty_id: str, indices: Sequence[int]) -> None:
        counts = self._counts.setdefault(faculty_id, [0, 0])
        counts[0 if self._calendar.is_morning(indices[0]) else 1] += 1

    def skew_after(self, faculty_id: str, indices: Sequence[int]) -> int:
        morning, afternoon = self._counts.get(faculty_id, (0, 0))
        if self._calendar.is_morning(indices[0]):
            morning += 1
        else:
            afternoon += 1
        return abs(morning - afternoon)


class SchedulingEngine:
    """Greedy, deterministic weekly placement of session requests.

    Lab demands go first because they need two consecutive free periods. Each
    demand takes the legal cell that keeps its faculty's morning/afternoon
    split most even, breaking ties by earliest day and then earliest period.
    Demands with no legal cell are dropped and reported, never raised.
    """

    def __init__(
        self,
        *,
        calendar: SlotCalendar = DEFAULT_CALENDAR,
        skew_threshold: int = DEFAULT_SKEW_THRESHOLD,
        default_room: str = UNASSIGNED_ROOM,
    ) -> None:
        self.calendar = calendar
        self.skew_threshold = skew_threshold
        self.default_room = default_room

    def generate(
        self,
        requests: Sequence[SessionRequest],
        reserved: Sequence[PlacedSession] = (),
    ) -> GenerationResult:
        started = perf_counter()
        occupancy = OccupancyIndex(reserved)
        balance = FacultyBalance(self.calendar)
        for session in reserved:
            balance.record(session.faculty_id, session.period_indices)

        taken_ids = {session.id for session in reserved}
        id_counters: Counter[tuple[str, str, str]] = Counter()
        placed_by_request: Counter[int] = Counter()
        placement: list[PlacedSession] = []

        demands = self._expand(requests)
        for demand in self._priority_order(demands):
            cell = self._choose_cell(demand, occupancy, balance)
            if cell is None:
                logger.warning(
                    "No legal slot for %s %s (section %s, %s session %d)",
                    demand.request.subject_code,
                    demand.request.subject_name,
                    demand.request.section,
                    demand.request.kind,
                    demand.ordinal + 1,
                )
                continue

            session = self._build_session(demand, cell, taken_ids, id_counters)
            occupancy.add(session)
            balance.record(session.faculty_id, session.period_indices)
            placement.append(session)
            placed_by_request[demand.request_index] += 1

        workloads = compute_workloads(placement, self.calendar)
        shortfalls = self._shortfalls(requests, placed_by_request)
        notes = self._build_notes(
            requests=requests,
            demands=demands,
            placement=placement,
            shortfalls=shortfalls,
            workloads=workloads,
            reserved=reserved,
        )

        logger.info(
            "Generated timetable: placed %d/%d demands, %d shortfall(s) in %.2fms",
            len(placement),
            len(demands),
            len(shortfalls),
            (perf_counter() - started) * 1000,
        )
        return GenerationResult(placement=placement, workloads=workloads, notes=notes, shortfalls=shortfalls)

    def _expand(self, requests: Sequence[SessionRequest]) -> list[PlacementDemand]:
        demands: list[PlacementDemand] = []
        for request_index, request in enumerate(requests):
            if request.sessions_per_week <= 0:
                logger.debug("Ignoring %s with %d weekly sessions", request.subject_code, request.sessions_per_week)
                continue
            count = weekly_demand(request)
            if count < request.sessions_per_week:
                logger.debug(
                    "Clamping %s lab to one block (requested %d)", request.subject_code, request.sessions_per_week
                )
            width = SESSION_WIDTH[request.kind]
            for ordinal in range(count):
                demands.append(
                    PlacementDemand(request_index=request_index, ordinal=ordinal, request=request, width=width)
                )
        return demands

    @staticmethod
    def _priority_order(demands: list[PlacementDemand]) -> list[PlacementDemand]:
        return sorted(demands, key=lambda demand: (not demand.is_lab, demand.request_index, demand.ordinal))

    def _legal_cells(
        self,
        demand: PlacementDemand,
        occupancy: OccupancyIndex,
        *,
        spread_days: bool,
    ) -> Iterator[CandidateCell]:
        request = demand.request
        for day, start in self.calendar.candidate_cells():
            if spread_days and occupancy.subject_on_day(request.subject_id, request.section, day):
                continue
            indices = self.calendar.span(day, start, demand.width)
            if indices is None:
                continue
            if not occupancy.is_free(request.faculty_id, request.section, day, indices):
                continue
            yield CandidateCell(day=day, day_position=self.calendar.day_index(day), period_indices=indices)

    def _choose_cell(
        self,
        demand: PlacementDemand,
        occupancy: OccupancyIndex,
        balance: FacultyBalance,
    ) -> CandidateCell | None:
        candidates = list(self._legal_cells(demand, occupancy, spread_days=True))
        if not candidates:
            candidates = list(self._legal_cells(demand, occupancy, spread_days=False))
        if not candidates:
            return None
        faculty_id = demand.request.faculty_id
        return min(
            candidates,
            key=lambda cell: (
                balance.skew_after(faculty_id, cell.period_indices),
                cell.day_position,
                cell.period_indices[0],
            ),
        )

    def _build_session(
        self,
        demand: PlacementDemand,
        cell: CandidateCell,
        taken_ids: set[str],
        id_counters: Counter[tuple[str, str, str]],
    ) -> PlacedSession:
        request = demand.request
        counter_key = (request.subject_id, request.section, request.kind)
        while True:
            id_counters[counter_key] += 1
            session_id = f"{request.subject_id}:{request.section}:{request.kind}:{id_counters[counter_key]}"
            if session_id not in taken_ids:
                break
        taken_ids.add(session_id)

        start_time, end_time = self.calendar.times_for(cell.period_indices)
        return PlacedSession(
            id=session_id,
            subject_id=request.subject_id,
            subject_code=request.subject_code,
            subject_name=request.subject_name,
            faculty_id=request.faculty_id,
            faculty_name=request.faculty_name,
            section=request.section,
            day=cell.day,
            period_indices=list(cell.period_indices),
            start_time=start_time,
            end_time=end_time,
            room=request.room or self.default_room,
            kind=request.kind,
        )

    @staticmethod
    def _shortfalls(requests: Sequence[SessionRequest], placed_by_request: Counter[int]) -> list[Shortfall]:
        shortfalls: list[Shortfall] = []
        for request_index, request in enumerate(requests):
            if request.sessions_per_week <= 0:
                continue
            requested = weekly_demand(request)
            placed = placed_by_request[request_index]
            if placed >= requested:
                continue
            shortfalls.append(
                Shortfall(
                    subject_id=request.subject_id,
                    subject_code=request.subject_code,
                    subject_name=request.subject_name,
                    section=request.section,
                    kind=request.kind,
                    requested=requested,
                    placed=placed,
                    missing=requested - placed,
                )
            )
        return shortfalls

    def _build_notes(
        self,
        *,
        requests: Sequence[SessionRequest],
        demands: list[PlacementDemand],
        placement: list[PlacedSession],
        shortfalls: list[Shortfall],
        workloads: list[FacultyWorkload],
        reserved: Sequence[PlacedSession],
    ) -> list[str]:
        notes: list[str] = []
        active = [request for request in requests if request.sessions_per_week > 0]
        if not active:
            notes.append("No session requests with a positive weekly session count were provided.")
            return notes

        notes.append(
            f"Placed {len(placement)} of {len(demands)} requested session(s) "
            f"across {len(active)} subject request(s)."
        )
        notes.append(
            f"{len(active) - len(shortfalls)} subject(s) fully scheduled, "
            f"{len(shortfalls)} partially scheduled."
        )
        if any(demand.is_lab for demand in demands):
            notes.append("Lab sessions were placed first so each could claim two consecutive periods clear of lunch.")
        notes.append("Sessions of the same subject were spread across different days wherever a free day remained.")
        notes.append(
            "Among legal slots, the one keeping each faculty member's morning and afternoon "
            "load closest was chosen, earliest day first."
        )

        for shortfall in shortfalls:
            notes.append(
                f"Could not place {shortfall.missing} of {shortfall.requested} {shortfall.kind} session(s) "
                f"for {shortfall.subject_code} {shortfall.subject_name} (section {shortfall.section})."
            )

        for workload in skewed_workloads(workloads, self.skew_threshold):
            notes.append(
                f"{workload.faculty_name} has an uneven load: {workload.morning_periods} morning vs "
                f"{workload.afternoon_periods} afternoon period(s)."
            )

        if reserved:
            held = sum(len(session.period_indices) for session in reserved)
            notes.append(f"{held} period(s) already held by existing sessions were left untouched.")
        return notes


def generate(
    requests: Sequence[SessionRequest],
    reserved: Sequence[PlacedSession] = (),
    *,
    calendar: SlotCalendar = DEFAULT_CALENDAR,
    skew_threshold: int = DEFAULT_SKEW_THRESHOLD,
) -> GenerationResult:
    engine = SchedulingEngine(calendar=calendar, skew_threshold=skew_threshold)
    return engine.generate(requests, reserved)
