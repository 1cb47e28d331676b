from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from timetabler.schemas.timetable import PlacedSession

ConflictType = Literal[
    "faculty_conflict",
    "section_conflict",
    "lunch_break",
    "invalid_slot",
    "lab_contiguity",
    "not_found",
]


class SlotConflict(BaseModel):
    """Why a single session could not be put where it was asked to go."""

    conflict_type: ConflictType = Field(alias="conflictType")
    description: str
    day: str | None = None
    period_index: int | None = Field(default=None, alias="periodIndex")
    existing: PlacedSession | None = None

    model_config = {"populate_by_name": True}


class ConflictDetail(BaseModel):
    id: str
    conflict_type: ConflictType
    description: str
    severity: Literal["hard", "soft"]
    affected_slots: list[str]  # ids of the placed sessions involved


class ResolutionAction(BaseModel):
    action_type: Literal["move_slot", "remove_slot"]
    description: str
    target_slot_id: str
    parameters: dict  # e.g. {"day": "Tuesday", "startPeriod": 4}


class ConflictReport(BaseModel):
    conflicts: list[ConflictDetail]
    suggested_resolutions: list[ResolutionAction]
