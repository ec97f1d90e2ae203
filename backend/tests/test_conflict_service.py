import pytest

from app.schemas.modification import modification_adapter
from app.services.conflict_service import check_modifications, detect_conflicts


def slot(entry_id, *, faculty="Prof A", classroom="Room 1", day="Monday", start="09:00", end="10:00", status="active", subject="Course"):
    return {
        "id": entry_id,
        "subject": subject,
        "faculty": faculty,
        "classroom": classroom,
        "day": day,
        "startTime": start,
        "endTime": end,
        "status": status,
    }


def test_detect_room_conflict():
    existing = [slot("s1", faculty="Prof A")]
    candidate = slot("s2", faculty="Prof B", start="09:30", end="10:30")

    conflicts = detect_conflicts(candidate, existing)

    assert len(conflicts) == 1
    assert conflicts[0].type == "room_conflict"
    assert conflicts[0].entryId == "s1"
    assert "Room overlap in Room 1" in conflicts[0].message


def test_detect_faculty_conflict():
    existing = [slot("s1", classroom="Room 1")]
    candidate = slot("s2", classroom="Room 2")

    conflicts = detect_conflicts(candidate, existing)

    assert [conflict.type for conflict in conflicts] == ["faculty_conflict"]
    assert "Faculty overlap for Prof A" in conflicts[0].message


def test_faculty_and_room_conflicts_fire_together_once_each():
    existing = [slot("s1")]
    candidate = slot("s2", start="09:15", end="09:45")

    conflicts = detect_conflicts(candidate, existing)

    assert sorted(conflict.type for conflict in conflicts) == ["faculty_conflict", "room_conflict"]


@pytest.mark.parametrize(
    ("start", "end"),
    [("10:00", "11:00"), ("08:00", "09:00")],
)
def test_back_to_back_classes_do_not_conflict(start, end):
    existing = [slot("s1")]
    candidate = slot("s2", start=start, end=end)

    assert detect_conflicts(candidate, existing) == []


def test_entry_never_conflicts_with_itself():
    entry = slot("s1")

    assert detect_conflicts(entry, [entry]) == []


def test_cancelled_entries_are_ignored():
    existing = [slot("s1", status="cancelled")]
    candidate = slot("s2")

    assert detect_conflicts(candidate, existing) == []
    assert detect_conflicts(slot("s3", status="cancelled"), [slot("s1")]) == []


def test_other_days_do_not_conflict():
    existing = [slot("s1", day="Tuesday")]

    assert detect_conflicts(slot("s2"), existing) == []


def test_candidate_without_id_is_checked_against_every_entry():
    existing = [slot("s1")]
    candidate = slot(None, faculty="Prof B", start="09:30", end="10:30")

    conflicts = detect_conflicts(candidate, existing)

    assert [conflict.type for conflict in conflicts] == ["room_conflict"]


def test_move_is_checked_against_persisted_state(db, make_entry):
    math = make_entry(db, subject="Math")
    physics = make_entry(db, subject="Physics", faculty="FacultyB", classroom="Room2", start_time="11:00", end_time="12:00")
    modifications = [
        modification_adapter.validate_python(
            {
                "id": "m1",
                "type": "move",
                "description": "Move Math to 11:30",
                "originalData": {"id": math.id},
                "newData": {"startTime": "11:30", "endTime": "12:30", "classroom": "Room2"},
                "affected": ["Math"],
            }
        ),
        modification_adapter.validate_python(
            {
                "id": "m2",
                "type": "cancel",
                "description": "Cancel Physics",
                "originalData": {"id": physics.id},
                "newData": None,
                "affected": ["Physics"],
            }
        ),
    ]

    report = check_modifications(modifications, [math, physics])

    # the cancel in the same batch is not visible to the move
    assert report[0].modificationId == "m1"
    assert [conflict.type for conflict in report[0].conflicts] == ["room_conflict"]
    assert report[0].conflicts[0].entryId == physics.id
    assert report[1].conflicts == []


def test_add_conflicts_are_reported(db, make_entry):
    math = make_entry(db)
    modification = modification_adapter.validate_python(
        {
            "id": "m1",
            "type": "add",
            "description": "Add Chemistry",
            "originalData": None,
            "newData": {
                "subject": "Chemistry",
                "faculty": "FacultyA",
                "classroom": "Room9",
                "day": "Monday",
                "startTime": "09:30",
                "endTime": "10:30",
            },
            "affected": ["Chemistry"],
        }
    )

    report = check_modifications([modification], [math])

    assert [conflict.type for conflict in report[0].conflicts] == ["faculty_conflict"]
