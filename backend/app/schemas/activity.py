from datetime import datetime

from pydantic import BaseModel

from app.models.audit_record import AuditKind


class AuditRecordOut(BaseModel):
    id: str
    kind: AuditKind
    actor: str
    session_id: str | None
    details: dict
    created_at: datetime

    model_config = {"from_attributes": True}
