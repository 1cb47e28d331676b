from fastapi import Depends

from timetabler.core.config import Settings, get_settings
from timetabler.services.scheduling_engine import SchedulingEngine
from timetabler.services.slot_calendar import DEFAULT_CALENDAR, SlotCalendar


def get_calendar() -> SlotCalendar:
    return DEFAULT_CALENDAR


def get_engine(
    settings: Settings = Depends(get_settings),
    calendar: SlotCalendar = Depends(get_calendar),
) -> SchedulingEngine:
    return SchedulingEngine(
        calendar=calendar,
        skew_threshold=settings.workload_skew_threshold,
        default_room=settings.default_room,
    )
