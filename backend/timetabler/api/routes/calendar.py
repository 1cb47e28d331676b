from fastapi import APIRouter, Depends

from timetabler.api.deps import get_calendar
from timetabler.schemas.timetable import PeriodOut, SlotCalendarOut
from timetabler.services.slot_calendar import SlotCalendar

router = APIRouter()


@router.get("/calendar", response_model=SlotCalendarOut)
def read_calendar(calendar: SlotCalendar = Depends(get_calendar)) -> SlotCalendarOut:
    return SlotCalendarOut(
        days=list(calendar.days),
        periods=[
            PeriodOut(
                index=period.index,
                start=period.start,
                end=period.end,
                label=period.label,
                is_lunch=period.is_lunch,
            )
            for period in calendar.periods
        ],
        half_days=[day for day in calendar.days if day in calendar.half_days],
        morning_cutoff=calendar.morning_cutoff,
    )
