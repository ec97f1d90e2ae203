from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.audit_record import AuditKind, AuditRecord


def record_audit(
    db: Session,
    *,
    kind: AuditKind,
    actor: str,
    session_id: str | None = None,
    details: dict | None = None,
) -> AuditRecord:
    """Stages an append-only audit record; it commits with the caller's unit of work."""
    record = AuditRecord(
        kind=kind,
        actor=actor,
        session_id=session_id,
        details=details or {},
    )
    db.add(record)
    db.flush()
    return record


def list_audit_records(
    db: Session,
    *,
    kind: AuditKind | None = None,
    session_id: str | None = None,
    limit: int = 100,
) -> list[AuditRecord]:
    query = select(AuditRecord)
    if kind is not None:
        query = query.where(AuditRecord.kind == kind)
    if session_id is not None:
        query = query.where(AuditRecord.session_id == session_id)
    query = query.order_by(AuditRecord.created_at.desc()).limit(max(1, limit))
    return list(db.execute(query).scalars())
