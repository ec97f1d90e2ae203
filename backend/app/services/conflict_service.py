from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Union

from app.models.schedule import ScheduleEntry
from app.schemas.conflict import Conflict, ModificationConflicts
from app.schemas.modification import AddModification, CancelModification, Modification
from app.schemas.schedule import entry_to_data, parse_time_to_minutes

EntryLike = Union[ScheduleEntry, Mapping[str, object]]


@dataclass(frozen=True)
class _Slot:
    id: str | None
    subject: str
    faculty: str | None
    classroom: str | None
    day: str
    start: int
    end: int
    cancelled: bool


def _to_slot(value: EntryLike) -> _Slot | None:
    data = entry_to_data(value) if isinstance(value, ScheduleEntry) else value
    day = data.get("day")
    start_time = data.get("startTime")
    end_time = data.get("endTime")
    if not day or not start_time or not end_time:
        return None
    return _Slot(
        id=data.get("id"),
        subject=str(data.get("subject") or "Untitled class"),
        faculty=data.get("faculty"),
        classroom=data.get("classroom"),
        day=str(day),
        start=parse_time_to_minutes(str(start_time)),
        end=parse_time_to_minutes(str(end_time)),
        cancelled=data.get("status") == "cancelled",
    )


def _window(slot: _Slot) -> str:
    return f"{slot.day} {slot.start // 60:02d}:{slot.start % 60:02d}-{slot.end // 60:02d}:{slot.end % 60:02d}"


def detect_conflicts(candidate: EntryLike, entries: Iterable[EntryLike]) -> List[Conflict]:
    """Faculty and room double-bookings the candidate would create.

    Intervals are half-open, so back-to-back classes never collide. Cancelled
    entries, the candidate's own entry and a cancelled candidate are ignored.
    """
    slot = _to_slot(candidate)
    if slot is None or slot.cancelled:
        return []

    conflicts: List[Conflict] = []
    for entry in entries:
        other = _to_slot(entry)
        if other is None or other.cancelled or other.day != slot.day:
            continue
        if slot.id is not None and other.id == slot.id:
            continue
        if not (slot.start < other.end and slot.end > other.start):
            continue
        if slot.faculty and slot.faculty == other.faculty:
            conflicts.append(Conflict(
                type="faculty_conflict",
                message=(
                    f"Faculty overlap for {slot.faculty}: {slot.subject} ({_window(slot)}) "
                    f"clashes with {other.subject} ({_window(other)})"
                ),
                entryId=str(other.id),
            ))
        if slot.classroom and slot.classroom == other.classroom:
            conflicts.append(Conflict(
                type="room_conflict",
                message=(
                    f"Room overlap in {slot.classroom}: {slot.subject} ({_window(slot)}) "
                    f"clashes with {other.subject} ({_window(other)})"
                ),
                entryId=str(other.id),
            ))
    return conflicts


def candidate_for(modification: Modification, entries_by_id: Mapping[str, ScheduleEntry]) -> dict | None:
    """The entry a modification would leave behind, or None when it frees a slot."""
    if isinstance(modification, CancelModification):
        return None
    if isinstance(modification, AddModification):
        return modification.newData.model_dump()

    entry_id = modification.originalData.id
    persisted = entries_by_id.get(entry_id)
    if persisted is not None:
        base = entry_to_data(persisted)
    else:
        base = modification.originalData.model_dump()
    return {**base, **modification.newData.provided_fields(), "id": entry_id}


def check_modifications(
    modifications: Iterable[Modification], entries: Iterable[ScheduleEntry]
) -> List[ModificationConflicts]:
    # Each proposal is checked against persisted state only; siblings never see each other.
    entries = list(entries)
    entries_by_id = {entry.id: entry for entry in entries}
    report: List[ModificationConflicts] = []
    for modification in modifications:
        candidate = candidate_for(modification, entries_by_id)
        conflicts = [] if candidate is None else detect_conflicts(candidate, entries)
        report.append(ModificationConflicts(modificationId=modification.id, conflicts=conflicts))
    return report
