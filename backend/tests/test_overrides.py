import pytest

from timetabler.schemas.conflict import SlotConflict
from timetabler.schemas.timetable import PlacedSession
from timetabler.services.overrides import TimetableEditor, add_session, edit_session, remove_session
from timetabler.services.scheduling_engine import generate


@pytest.fixture()
def placement(session_factory):
    return [
        session_factory("ds-1", "CS201", "Rao", "Monday", [0]),
        session_factory("os-1", "CS202", "Iyer", "Monday", [1]),
        session_factory("lab-1", "CS201L", "Rao", "Tuesday", [4, 5], kind="lab"),
    ]


def snapshot(placement):
    return [session.model_dump() for session in placement]


def test_add_into_free_cell_fills_times(placement, session_factory):
    result = add_session(placement, session_factory("new", "CS203", "Das", "Wednesday", [2]))

    assert isinstance(result, PlacedSession)
    assert (result.start_time, result.end_time) == ("11:00", "12:00")
    assert len(placement) == 4
    assert placement[-1] is result


def test_add_conflicting_section_leaves_placement_unchanged(placement, session_factory):
    before = snapshot(placement)
    result = add_session(placement, session_factory("clash", "CS299", "Das", "Monday", [0]))

    assert isinstance(result, SlotConflict)
    assert result.conflict_type == "section_conflict"
    assert result.existing.subject_code == "CS201"
    assert "CS201" in result.description
    assert snapshot(placement) == before


def test_add_conflicting_faculty(placement, session_factory):
    result = add_session(placement, session_factory("clash", "CS201", "Rao", "Monday", [0], section="B"))

    assert isinstance(result, SlotConflict)
    assert result.conflict_type == "faculty_conflict"
    assert result.existing.id == "ds-1"
    assert (result.day, result.period_index) == ("Monday", 0)


@pytest.mark.parametrize(
    "day, periods, kind, expected",
    [
        ("Monday", [3], "theory", "lunch_break"),
        ("Saturday", [4], "theory", "invalid_slot"),
        ("Sunday", [0], "theory", "invalid_slot"),
        ("Monday", [9], "theory", "invalid_slot"),
        ("Thursday", [0, 2], "lab", "lab_contiguity"),
        ("Thursday", [0], "lab", "lab_contiguity"),
        ("Thursday", [2, 3], "lab", "lunch_break"),
        ("Thursday", [0, 1], "theory", "invalid_slot"),
    ],
)
def test_add_rejects_cells_outside_the_teaching_grid(placement, session_factory, day, periods, kind, expected):
    before = snapshot(placement)
    result = add_session(placement, session_factory("bad", "CS299", "Das", day, periods, kind=kind))

    assert isinstance(result, SlotConflict)
    assert result.conflict_type == expected
    assert snapshot(placement) == before


def test_add_with_taken_id_gets_fresh_id(placement, session_factory):
    result = add_session(placement, session_factory("ds-1", "CS203", "Das", "Friday", [0]))

    assert isinstance(result, PlacedSession)
    assert result.id != "ds-1"
    assert len({session.id for session in placement}) == 4


def test_edit_to_own_cell_always_succeeds(placement):
    editor = TimetableEditor(placement)
    for session in list(placement):
        result = editor.edit(session, session.day, session.period_indices[0])
        assert isinstance(result, PlacedSession)
        assert result.id == session.id
        assert result.period_indices == session.period_indices
    assert len(placement) == 3


def test_edit_lab_overlapping_its_own_cells(placement):
    result = edit_session(placement, "lab-1", "Tuesday", 5)

    assert isinstance(result, PlacedSession)
    assert result.period_indices == [5, 6]
    assert (result.start_time, result.end_time) == ("14:00", "16:00")
    assert placement[2] is result


def test_edit_into_occupied_cell_is_rejected_atomically(placement):
    before = snapshot(placement)
    result = edit_session(placement, "os-1", "Monday", 0)

    assert isinstance(result, SlotConflict)
    assert result.conflict_type == "section_conflict"
    assert result.existing.id == "ds-1"
    assert snapshot(placement) == before


def test_edit_frees_old_cell(placement, session_factory):
    editor = TimetableEditor(placement)
    moved = editor.edit("ds-1", "Friday", 4)
    assert isinstance(moved, PlacedSession)
    assert (moved.day, moved.period_indices) == ("Friday", [4])

    refill = editor.add(session_factory("refill", "CS205", "Das", "Monday", [0]))
    assert isinstance(refill, PlacedSession)


def test_edit_unknown_session_is_not_found(placement):
    result = edit_session(placement, "missing", "Monday", 0)

    assert isinstance(result, SlotConflict)
    assert result.conflict_type == "not_found"


def test_remove_frees_cells_and_ignores_unknown(placement, session_factory):
    remaining = remove_session(placement, "lab-1")
    assert [session.id for session in remaining] == ["ds-1", "os-1"]

    assert remove_session(placement, "missing") == remaining

    result = add_session(placement, session_factory("lab-2", "CS202L", "Iyer", "Tuesday", [4, 5], kind="lab"))
    assert isinstance(result, PlacedSession)


def test_editing_generated_placement_keeps_it_conflict_free(request_factory):
    result = generate([request_factory("CS101", "F1"), request_factory("CS102", "F2")])
    editor = TimetableEditor(result.placement)

    target = result.placement[0]
    for day, start in [("Monday", 0), ("Monday", 1), ("Tuesday", 4), ("Saturday", 2)]:
        outcome = editor.edit(target, day, start)
        if isinstance(outcome, PlacedSession):
            target = outcome

    cells = [(session.section, day, index) for session in editor.placement for day, index in session.cells]
    assert len(cells) == len(set(cells))
