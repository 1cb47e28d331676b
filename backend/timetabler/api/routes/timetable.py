import logging

from fastapi import APIRouter, Depends, HTTPException, status

from timetabler.api.deps import get_calendar, get_engine
from timetabler.core.exceptions import SessionNotFoundError
from timetabler.schemas.conflict import SlotConflict
from timetabler.schemas.timetable import (
    AddSessionRequest,
    FacultyWorkload,
    GenerateTimetableRequest,
    GenerationResult,
    MoveSessionRequest,
    PlacementPayload,
    PlacementResponse,
)
from timetabler.services.overrides import TimetableEditor
from timetabler.services.scheduling_engine import SchedulingEngine
from timetabler.services.slot_calendar import SlotCalendar
from timetabler.services.workload import compute_workloads

router = APIRouter()
logger = logging.getLogger(__name__)


def _conflict_response(conflict: SlotConflict) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=conflict.model_dump(mode="json", by_alias=True),
    )


@router.post("/generate", response_model=GenerationResult)
def generate_timetable(
    payload: GenerateTimetableRequest,
    engine: SchedulingEngine = Depends(get_engine),
) -> GenerationResult:
    logger.info("Generating timetable for %d request(s)", len(payload.requests))
    return engine.generate(payload.requests, payload.reserved)


@router.post("/workloads", response_model=list[FacultyWorkload])
def faculty_workloads(
    payload: PlacementPayload,
    calendar: SlotCalendar = Depends(get_calendar),
) -> list[FacultyWorkload]:
    return compute_workloads(payload.placement, calendar)


@router.post("/slots", response_model=PlacementResponse, status_code=status.HTTP_201_CREATED)
def add_slot(
    payload: AddSessionRequest,
    calendar: SlotCalendar = Depends(get_calendar),
) -> PlacementResponse:
    editor = TimetableEditor(payload.placement, calendar)
    result = editor.add(payload.session)
    if isinstance(result, SlotConflict):
        raise _conflict_response(result)
    return PlacementResponse(placement=editor.placement, session=result)


@router.put("/slots/{session_id}", response_model=PlacementResponse)
def move_slot(
    session_id: str,
    payload: MoveSessionRequest,
    calendar: SlotCalendar = Depends(get_calendar),
) -> PlacementResponse:
    editor = TimetableEditor(payload.placement, calendar)
    if editor.find(session_id) is None:
        raise SessionNotFoundError(session_id)
    result = editor.edit(session_id, payload.day, payload.start_period)
    if isinstance(result, SlotConflict):
        raise _conflict_response(result)
    return PlacementResponse(placement=editor.placement, session=result)


@router.post("/slots/{session_id}/remove", response_model=PlacementResponse)
def remove_slot(
    session_id: str,
    payload: PlacementPayload,
    calendar: SlotCalendar = Depends(get_calendar),
) -> PlacementResponse:
    editor = TimetableEditor(payload.placement, calendar)
    return PlacementResponse(placement=editor.remove(session_id))
