import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without running a real server.

from timetabler.main import app
from timetabler.schemas.timetable import PlacedSession, SessionRequest
from timetabler.services.slot_calendar import SlotCalendar, hourly_periods

WEEK = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")


@pytest.fixture()
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def five_by_five():
    # periods 0-2 morning, 3 lunch, 4-5 afternoon
    return SlotCalendar(days=WEEK, periods=hourly_periods(9, 6, lunch_at=3))


@pytest.fixture()
def five_by_four():
    # periods 0-1 morning, 2 lunch, 3-4 afternoon
    return SlotCalendar(days=WEEK, periods=hourly_periods(9, 5, lunch_at=2))


def make_request(subject, faculty, *, section="A", kind="theory", sessions=3, room=None):
    return SessionRequest(
        subject_id=subject.lower(),
        subject_code=subject,
        subject_name=f"{subject} Subject",
        faculty_id=faculty.lower(),
        faculty_name=f"Prof {faculty}",
        section=section,
        kind=kind,
        sessions_per_week=sessions,
        room=room,
    )


def make_session(session_id, subject, faculty, day, periods, *, section="A", kind="theory"):
    return PlacedSession(
        id=session_id,
        subject_id=subject.lower(),
        subject_code=subject,
        subject_name=f"{subject} Subject",
        faculty_id=faculty.lower(),
        faculty_name=f"Prof {faculty}",
        section=section,
        day=day,
        period_indices=list(periods),
        kind=kind,
    )


@pytest.fixture()
def request_factory():
    return make_request


@pytest.fixture()
def session_factory():
    return make_session
