from fastapi import APIRouter, Depends

from timetabler.api.deps import get_calendar
from timetabler.schemas.conflict import ConflictReport
from timetabler.schemas.timetable import PlacementPayload
from timetabler.services.conflict_service import ConflictService
from timetabler.services.slot_calendar import SlotCalendar

router = APIRouter()


@router.post("/detect", response_model=ConflictReport)
def detect_conflicts(
    payload: PlacementPayload,
    calendar: SlotCalendar = Depends(get_calendar),
) -> ConflictReport:
    service = ConflictService(payload.placement, calendar)
    report = service.detect_conflicts()

    for conflict in report.conflicts:
        resolutions = service.generate_resolutions(conflict)
        report.suggested_resolutions.extend(resolutions)

    return report
