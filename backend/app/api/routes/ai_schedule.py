from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.orm import Session

from app.api.deps import (
    Actor,
    ActorRole,
    get_db,
    get_rate_limiter,
    get_schedule_assistant,
    require_roles,
)
from app.core.config import get_settings
from app.core.exceptions import ValidationError
from app.models.audit_record import AuditKind
from app.schemas.activity import AuditRecordOut
from app.schemas.conflict import ModificationConflicts
from app.schemas.modification import (
    ApplyModificationsRequest,
    CheckConflictsRequest,
    ModificationResult,
    ModificationSetOut,
    UndoModificationRequest,
)
from app.services.audit import list_audit_records
from app.services.conflict_service import check_modifications
from app.services.file_records import read_file_records
from app.services.modification_service import apply_modifications, undo_modification
from app.services.rate_limit import RateLimiter, enforce_rate_limit
from app.services.schedule_assistant import ModificationRequest, ScheduleAssistant, sanitize_message
from app.services.snapshot import load_active_entries

router = APIRouter()
settings = get_settings()

schedule_editor = require_roles(ActorRole.admin, ActorRole.scheduler)


@router.post("/schedule-modify", response_model=ModificationSetOut)
def request_schedule_modification(
    request: Request,
    message: str | None = Form(default=None),
    session_id: str | None = Form(default=None, alias="sessionId", max_length=100),
    file: UploadFile | None = File(default=None),
    current_actor: Actor = Depends(schedule_editor),
    limiter: RateLimiter = Depends(get_rate_limiter),
    assistant: ScheduleAssistant = Depends(get_schedule_assistant),
    db: Session = Depends(get_db),
) -> ModificationSetOut:
    enforce_rate_limit(limiter, request=request, scope="ai.schedule_modify", identity=current_actor.identity)

    cleaned_message = sanitize_message(message)
    has_file = file is not None and bool(file.filename)
    if not cleaned_message and not has_file:
        raise ValidationError("Message or file is required")

    file_records = None
    file_name = None
    if has_file:
        content = file.file.read(settings.upload_max_bytes + 1)
        file_records = read_file_records(content, file.content_type, max_bytes=settings.upload_max_bytes)
        file_name = file.filename

    modification_request = ModificationRequest(
        message=cleaned_message,
        session_id=session_id,
        file_records=file_records,
        file_name=file_name,
    )
    return assistant.propose(db, modification_request, actor=current_actor.identity)


@router.post("/apply-modifications", response_model=ModificationResult)
def apply_schedule_modifications(
    payload: ApplyModificationsRequest,
    request: Request,
    session_id: str | None = Query(default=None, alias="sessionId", max_length=100),
    current_actor: Actor = Depends(schedule_editor),
    limiter: RateLimiter = Depends(get_rate_limiter),
    db: Session = Depends(get_db),
) -> ModificationResult:
    enforce_rate_limit(limiter, request=request, scope="ai.apply", identity=current_actor.identity)
    record, applied = apply_modifications(
        db,
        payload.modifications,
        actor=current_actor.identity,
        session_id=session_id,
    )
    return ModificationResult(
        success=True,
        message="Modifications applied successfully",
        auditId=record.id,
        modifications=applied,
    )


@router.post("/undo-modification", response_model=ModificationResult)
def undo_schedule_modification(
    payload: UndoModificationRequest,
    request: Request,
    session_id: str | None = Query(default=None, alias="sessionId", max_length=100),
    current_actor: Actor = Depends(schedule_editor),
    limiter: RateLimiter = Depends(get_rate_limiter),
    db: Session = Depends(get_db),
) -> ModificationResult:
    enforce_rate_limit(limiter, request=request, scope="ai.undo", identity=current_actor.identity)
    record = undo_modification(db, payload.modification, actor=current_actor.identity, session_id=session_id)
    return ModificationResult(success=True, message="Modification undone successfully", auditId=record.id)


@router.post("/check-conflicts", response_model=list[ModificationConflicts])
def check_schedule_conflicts(
    payload: CheckConflictsRequest,
    current_actor: Actor = Depends(schedule_editor),
    db: Session = Depends(get_db),
) -> list[ModificationConflicts]:
    return check_modifications(payload.modifications, load_active_entries(db))


@router.get("/audit", response_model=list[AuditRecordOut])
def list_modification_audit(
    kind: AuditKind | None = Query(default=None),
    session_id: str | None = Query(default=None, alias="sessionId"),
    limit: int = Query(default=100, ge=1, le=500),
    current_actor: Actor = Depends(schedule_editor),
    db: Session = Depends(get_db),
) -> list[AuditRecordOut]:
    return list_audit_records(db, kind=kind, session_id=session_id, limit=limit)
