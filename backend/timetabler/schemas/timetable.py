from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from timetabler.services.slot_calendar import TIME_PATTERN, UNASSIGNED_ROOM, parse_time_to_minutes

DAY_VALUES = {
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
}

SessionKind = Literal["theory", "lab"]

# Periods occupied by one session of each kind.
SESSION_WIDTH: dict[str, int] = {"theory": 1, "lab": 2}

CAMEL_CONFIG = {
    "populate_by_name": True,
    "from_attributes": True,
}


class SessionRequest(BaseModel):
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=64)
    subject_code: str = Field(alias="subjectCode", min_length=1, max_length=50)
    subject_name: str = Field(alias="subjectName", min_length=1, max_length=200)
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=64)
    faculty_name: str = Field(alias="facultyName", min_length=1, max_length=200)
    section: str = Field(min_length=1, max_length=50)
    kind: SessionKind = "theory"
    sessions_per_week: int = Field(alias="sessionsPerWeek", le=40)
    room: str | None = Field(default=None, max_length=100)

    model_config = CAMEL_CONFIG


class PlacedSession(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, min_length=1, max_length=128)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=64)
    subject_code: str = Field(alias="subjectCode", min_length=1, max_length=50)
    subject_name: str = Field(alias="subjectName", min_length=1, max_length=200)
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=64)
    faculty_name: str = Field(alias="facultyName", min_length=1, max_length=200)
    section: str = Field(min_length=1, max_length=50)
    day: str
    period_indices: list[int] = Field(alias="periodIndices", min_length=1, max_length=2)
    start_time: str = Field(default="", alias="startTime")
    end_time: str = Field(default="", alias="endTime")
    room: str = Field(default=UNASSIGNED_ROOM, max_length=100)
    kind: SessionKind = "theory"

    model_config = CAMEL_CONFIG

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        day = value.strip()
        if day not in DAY_VALUES:
            raise ValueError("Invalid day value")
        return day

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if value and not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "PlacedSession":
        if self.start_time and self.end_time:
            if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
                raise ValueError("End time must be after start time")
        return self

    @property
    def cells(self) -> list[tuple[str, int]]:
        return [(self.day, index) for index in self.period_indices]

    @property
    def label(self) -> str:
        return f"{self.subject_code} {self.subject_name} ({self.section}, {self.kind})"


class FacultyWorkload(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    faculty_name: str = Field(alias="facultyName")
    total_periods: int = Field(alias="totalPeriods", ge=0)
    total_sessions: int = Field(alias="totalSessions", ge=0)
    morning_periods: int = Field(alias="morningPeriods", ge=0)
    afternoon_periods: int = Field(alias="afternoonPeriods", ge=0)
    day_schedule: dict[str, list[PlacedSession]] = Field(default_factory=dict, alias="daySchedule")
    periods_per_day: dict[str, int] = Field(default_factory=dict, alias="periodsPerDay")

    model_config = CAMEL_CONFIG

    @property
    def skew(self) -> int:
        return abs(self.morning_periods - self.afternoon_periods)


class Shortfall(BaseModel):
    subject_id: str = Field(alias="subjectId")
    subject_code: str = Field(alias="subjectCode")
    subject_name: str = Field(alias="subjectName")
    section: str
    kind: SessionKind
    requested: int = Field(ge=0)
    placed: int = Field(ge=0)
    missing: int = Field(ge=0)

    model_config = CAMEL_CONFIG


class GenerationResult(BaseModel):
    placement: list[PlacedSession] = Field(default_factory=list)
    workloads: list[FacultyWorkload] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    shortfalls: list[Shortfall] = Field(default_factory=list)

    model_config = CAMEL_CONFIG


class GenerateTimetableRequest(BaseModel):
    requests: list[SessionRequest] = Field(default_factory=list, max_length=1000)
    reserved: list[PlacedSession] = Field(default_factory=list, max_length=2000)

    model_config = CAMEL_CONFIG


class PlacementPayload(BaseModel):
    placement: list[PlacedSession] = Field(default_factory=list, max_length=2000)

    model_config = CAMEL_CONFIG

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "PlacementPayload":
        seen: set[str] = set()
        duplicates: set[str] = set()
        for item in self.placement:
            if item.id in seen:
                duplicates.add(item.id)
            else:
                seen.add(item.id)
        if duplicates:
            raise ValueError(f"Duplicate session id(s): {', '.join(sorted(duplicates))}")
        return self


class AddSessionRequest(PlacementPayload):
    session: PlacedSession


class MoveSessionRequest(PlacementPayload):
    day: str
    start_period: int = Field(alias="startPeriod", ge=0)


class PlacementResponse(BaseModel):
    placement: list[PlacedSession] = Field(default_factory=list)
    session: PlacedSession | None = None

    model_config = CAMEL_CONFIG


class PeriodOut(BaseModel):
    index: int
    start: str
    end: str
    label: str
    is_lunch: bool = Field(alias="isLunch")

    model_config = CAMEL_CONFIG


class SlotCalendarOut(BaseModel):
    days: list[str]
    periods: list[PeriodOut]
    half_days: list[str] = Field(alias="halfDays")
    morning_cutoff: int = Field(alias="morningCutoff")

    model_config = CAMEL_CONFIG
