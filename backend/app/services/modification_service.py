from __future__ import annotations

from datetime import datetime, timezone
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import AppError, ApplyFailure, StaleModification, UndoNotFound, ValidationError
from app.models.audit_record import AuditKind, AuditRecord
from app.models.schedule import ScheduleEntry, ScheduleStatus
from app.schemas.modification import (
    AddModification,
    CancelModification,
    Modification,
)
from app.schemas.schedule import ExistingEntryData, assign_fields, entry_to_data, parse_time_to_minutes
from app.services.audit import record_audit

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_entry(db: Session, entry_id: str) -> ScheduleEntry:
    entry = db.get(ScheduleEntry, entry_id)
    if entry is None:
        raise ApplyFailure(f"Schedule entry {entry_id} not found", details={"entryId": entry_id})
    return entry


def _ensure_unchanged(entry: ScheduleEntry, expected: dict[str, str]) -> None:
    current = entry_to_data(entry)
    mismatched = sorted(name for name, value in expected.items() if current.get(name) != value)
    if mismatched:
        raise StaleModification(entry.id, mismatched)


def _ensure_valid_interval(entry: ScheduleEntry) -> None:
    if parse_time_to_minutes(entry.start_time) >= parse_time_to_minutes(entry.end_time):
        raise ApplyFailure(
            f"Schedule entry {entry.id} would end before it starts",
            details={"entryId": entry.id, "startTime": entry.start_time, "endTime": entry.end_time},
        )


def _stage_add(db: Session, modification: AddModification, *, actor: str, now: datetime) -> Modification:
    data = modification.newData
    entry_id = data.id or str(uuid.uuid4())
    if db.get(ScheduleEntry, entry_id) is not None:
        raise ApplyFailure(f"Schedule entry {entry_id} already exists", details={"entryId": entry_id})
    entry = ScheduleEntry(id=entry_id, status=ScheduleStatus.active, created_at=now, created_by=actor)
    assign_fields(entry, data.provided_fields())
    db.add(entry)
    # Undo of an add deletes by newData.id, so hand back the id actually used.
    return modification.model_copy(update={"newData": data.model_copy(update={"id": entry_id})})


def _stage(db: Session, modification: Modification, *, actor: str, now: datetime) -> Modification:
    if isinstance(modification, AddModification):
        return _stage_add(db, modification, actor=actor, now=now)

    entry = _require_entry(db, modification.originalData.id)
    _ensure_unchanged(entry, modification.originalData.provided_fields())
    # Undo restores from originalData, which must hold the full persisted before-state.
    modification = modification.model_copy(
        update={"originalData": ExistingEntryData.model_validate(entry_to_data(entry))}
    )

    if isinstance(modification, CancelModification):
        if entry.status == ScheduleStatus.cancelled:
            raise StaleModification(entry.id, ["status"])
        entry.status = ScheduleStatus.cancelled
        entry.cancelled_at = now
        entry.cancelled_by = actor
        return modification

    assign_fields(entry, modification.newData.provided_fields())
    _ensure_valid_interval(entry)
    entry.last_modified = now
    entry.modified_by = actor
    return modification


def apply_modifications(
    db: Session,
    modifications: list[Modification],
    *,
    actor: str,
    session_id: str | None = None,
) -> tuple[AuditRecord, list[Modification]]:
    """Applies a batch in listed order as one transaction with its audit record.

    Either every write and the audit record commit, or nothing does.
    """
    if not modifications:
        raise ValidationError("Modifications must be a non-empty array")

    now = _utcnow()
    applied: list[Modification] = []
    try:
        for modification in modifications:
            applied.append(_stage(db, modification, actor=actor, now=now))
            db.flush()
        record = record_audit(
            db,
            kind=AuditKind.apply,
            actor=actor,
            session_id=session_id,
            details={
                "type": "ai_modification",
                "count": len(applied),
                "modifications": [item.model_dump(mode="json") for item in applied],
            },
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Modification batch of %d item(s) failed to commit", len(modifications))
        raise ApplyFailure("Failed to apply modifications") from exc

    logger.info("Applied %d modification(s) for %s (audit %s)", len(applied), actor, record.id)
    return record, applied


def undo_modification(
    db: Session,
    modification: Modification,
    *,
    actor: str,
    session_id: str | None = None,
) -> AuditRecord:
    """Reverts one applied modification from its own recorded before/after state.

    Must be called at most once per applied modification; a second undo of an
    add finds nothing to delete and raises ``UndoNotFound``.
    """
    now = _utcnow()
    try:
        if isinstance(modification, AddModification):
            entry_id = modification.newData.id
            if not entry_id:
                raise ValidationError("Cannot undo an add modification without newData.id")
            entry = db.get(ScheduleEntry, entry_id)
            if entry is None:
                raise UndoNotFound(entry_id)
            db.delete(entry)
        else:
            entry_id = modification.originalData.id
            entry = db.get(ScheduleEntry, entry_id)
            if entry is None:
                raise UndoNotFound(entry_id)
            if isinstance(modification, CancelModification):
                entry.status = ScheduleStatus.active
                entry.cancelled_at = None
                entry.cancelled_by = None
            else:
                assign_fields(entry, modification.originalData.provided_fields())
                _ensure_valid_interval(entry)
            entry.last_modified = now
            entry.modified_by = actor
        db.flush()
        record = record_audit(
            db,
            kind=AuditKind.undo,
            actor=actor,
            session_id=session_id,
            details={"entryId": entry_id, "modification": modification.model_dump(mode="json")},
        )
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Undo of modification %s failed to commit", modification.id)
        raise ApplyFailure("Failed to undo modification") from exc

    logger.info("Undid %s modification %s for %s", modification.type, modification.id, actor)
    return record
