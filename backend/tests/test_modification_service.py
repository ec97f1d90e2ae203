import pytest
from sqlalchemy import select

from app.core.exceptions import ApplyFailure, StaleModification, UndoNotFound, ValidationError
from app.models.audit_record import AuditRecord
from app.models.schedule import ScheduleEntry, ScheduleStatus
from app.schemas.modification import modification_adapter
from app.schemas.schedule import entry_to_data
from app.services.modification_service import apply_modifications, undo_modification


def build(payload):
    return modification_adapter.validate_python(payload)


def move(entry, **new_data):
    return build(
        {
            "id": "move-1",
            "type": "move",
            "description": "Move class",
            "originalData": entry_to_data(entry),
            "newData": new_data,
            "affected": [entry.subject],
        }
    )


def cancel(entry):
    return build(
        {
            "id": "cancel-1",
            "type": "cancel",
            "description": "Cancel class",
            "originalData": entry_to_data(entry),
            "newData": None,
            "affected": [entry.subject],
        }
    )


def add(**new_data):
    values = {
        "subject": "Chemistry",
        "faculty": "FacultyC",
        "classroom": "Lab 1",
        "day": "Friday",
        "startTime": "13:00",
        "endTime": "14:00",
    }
    values.update(new_data)
    return build(
        {
            "id": "add-1",
            "type": "add",
            "description": "Add Chemistry",
            "originalData": None,
            "newData": values,
            "affected": ["Chemistry"],
        }
    )


def audit_kinds(db):
    return [record.kind for record in db.execute(select(AuditRecord)).scalars()]


def test_move_then_undo_restores_original_data(db, make_entry):
    entry = make_entry(db)
    original = entry_to_data(entry)
    modification = move(entry, day="Tuesday", startTime="11:00", endTime="12:00", classroom="Room2")

    apply_modifications(db, [modification], actor="admin@example.com")
    db.refresh(entry)
    assert (entry.day, entry.start_time, entry.end_time, entry.classroom) == ("Tuesday", "11:00", "12:00", "Room2")
    assert entry.modified_by == "admin@example.com"
    assert entry.last_modified is not None

    undo_modification(db, modification, actor="undo@example.com")
    db.refresh(entry)
    assert entry_to_data(entry) == original
    assert entry.modified_by == "undo@example.com"
    assert sorted(kind.value for kind in audit_kinds(db)) == ["apply", "undo"]


def test_cancel_then_undo_reactivates_entry(db, make_entry):
    entry = make_entry(db)
    modification = cancel(entry)

    apply_modifications(db, [modification], actor="admin@example.com")
    db.refresh(entry)
    assert entry.status == ScheduleStatus.cancelled
    assert entry.cancelled_by == "admin@example.com"
    assert entry.cancelled_at is not None

    undo_modification(db, modification, actor="undo@example.com")
    db.refresh(entry)
    assert entry.status == ScheduleStatus.active
    assert entry.cancelled_at is None
    assert entry.cancelled_by is None
    assert entry.modified_by == "undo@example.com"
    assert entry.last_modified is not None


def test_add_assigns_id_and_second_undo_fails(db):
    record, applied = apply_modifications(db, [add()], actor="admin@example.com")

    created_id = applied[0].newData.id
    created = db.get(ScheduleEntry, created_id)
    assert created is not None
    assert created.created_by == "admin@example.com"
    assert created.status == ScheduleStatus.active
    assert record.details["modifications"][0]["newData"]["id"] == created_id

    undo_modification(db, applied[0], actor="admin@example.com")
    assert db.get(ScheduleEntry, created_id) is None

    with pytest.raises(UndoNotFound):
        undo_modification(db, applied[0], actor="admin@example.com")


def test_add_keeps_caller_supplied_id(db):
    _, applied = apply_modifications(db, [add(id="chem-1")], actor="admin@example.com")

    assert applied[0].newData.id == "chem-1"
    assert db.get(ScheduleEntry, "chem-1") is not None


def test_batch_is_all_or_nothing(db, make_entry):
    entry = make_entry(db)
    missing = build(
        {
            "id": "move-2",
            "type": "move",
            "description": "Move a class that does not exist",
            "originalData": {"id": "does-not-exist"},
            "newData": {"day": "Friday"},
            "affected": [],
        }
    )

    with pytest.raises(ApplyFailure):
        apply_modifications(db, [move(entry, day="Wednesday"), add(), missing], actor="admin@example.com")

    db.refresh(entry)
    assert entry.day == "Monday"
    assert db.execute(select(ScheduleEntry)).scalars().all() == [entry]
    assert audit_kinds(db) == []


def test_stale_original_data_rejects_batch(db, make_entry):
    entry = make_entry(db)
    modification = move(entry, day="Wednesday")
    entry.classroom = "Room7"
    db.commit()

    with pytest.raises(StaleModification) as exc_info:
        apply_modifications(db, [modification], actor="admin@example.com")

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["fields"] == ["classroom"]
    db.refresh(entry)
    assert entry.day == "Monday"


def test_cancelling_twice_is_stale(db, make_entry):
    entry = make_entry(db)
    modification = cancel(entry)
    apply_modifications(db, [modification], actor="admin@example.com")

    with pytest.raises(StaleModification):
        apply_modifications(db, [modification], actor="admin@example.com")


def test_merged_interval_must_stay_ordered(db, make_entry):
    entry = make_entry(db)

    with pytest.raises(ApplyFailure):
        apply_modifications(db, [move(entry, startTime="11:00")], actor="admin@example.com")

    db.refresh(entry)
    assert entry.start_time == "09:00"


def test_empty_batch_is_rejected(db):
    with pytest.raises(ValidationError):
        apply_modifications(db, [], actor="admin@example.com")
    assert audit_kinds(db) == []


def test_undo_of_missing_entry_raises_not_found(db, make_entry):
    entry = make_entry(db)
    modification = cancel(entry)
    db.delete(entry)
    db.commit()

    with pytest.raises(UndoNotFound) as exc_info:
        undo_modification(db, modification, actor="admin@example.com")

    assert exc_info.value.status_code == 404
    assert audit_kinds(db) == []


def test_undo_restores_entry_when_original_data_only_names_the_id(db, make_entry):
    entry = make_entry(db)
    original = entry_to_data(entry)
    modification = build(
        {
            "id": "move-3",
            "type": "move",
            "description": "Move Math to Tuesday",
            "originalData": {"id": entry.id},
            "newData": {"day": "Tuesday", "startTime": "11:00", "endTime": "12:00"},
            "affected": ["Math"],
        }
    )

    record, applied = apply_modifications(db, [modification], actor="admin@example.com")

    assert applied[0].originalData.provided_fields() == {key: value for key, value in original.items() if key != "id"}
    assert record.details["modifications"][0]["originalData"]["day"] == "Monday"

    undo_modification(db, applied[0], actor="admin@example.com")
    db.refresh(entry)
    assert entry_to_data(entry) == original
