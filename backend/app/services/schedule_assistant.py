from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import AppError, CompletionUnavailable, ValidationError
from app.models.audit_record import AuditKind
from app.schemas.modification import ModificationSetOut
from app.services.audit import record_audit
from app.services.completion import CompletionClient
from app.services.conflict_service import check_modifications
from app.services.prompt_builder import build_system_prompt, build_user_message
from app.services.response_parser import parse_model_response
from app.services.snapshot import load_schedule_snapshot

logger = logging.getLogger(__name__)


def sanitize_message(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().replace("<", "").replace(">", "")


@dataclass
class ModificationRequest:
    message: str
    session_id: str | None = None
    file_records: list[dict[str, Any]] | None = None
    file_name: str | None = None

    @property
    def has_file(self) -> bool:
        return self.file_records is not None


class ScheduleAssistant:
    """Runs one natural-language edit request from snapshot to conflict-checked proposal."""

    def __init__(
        self,
        client: CompletionClient,
        settings: Settings,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._settings = settings
        self._sleep = sleep

    def _complete(self, system_prompt: str, user_message: str) -> str:
        backoff = max(0.0, self._settings.ai_retry_backoff_seconds)
        try:
            return self._client.complete(
                system_prompt,
                user_message,
                max_tokens=self._settings.ai_max_tokens,
                temperature=self._settings.ai_temperature,
            )
        except CompletionUnavailable:
            logger.warning("Completion failed; retrying once in %.1fs", backoff)
        if backoff > 0:
            self._sleep(backoff)
        return self._client.complete(
            system_prompt,
            user_message,
            max_tokens=self._settings.ai_max_tokens,
            temperature=self._settings.ai_temperature,
        )

    def propose(self, db: Session, request: ModificationRequest, *, actor: str) -> ModificationSetOut:
        if not request.message and not request.has_file:
            raise ValidationError("Message or file is required")

        try:
            snapshot = load_schedule_snapshot(db)
            system_prompt = build_system_prompt(
                snapshot,
                request.file_records,
                max_file_records=self._settings.ai_prompt_max_file_records,
            )
            user_message = build_user_message(request.message, has_file=request.has_file)
            raw_reply = self._complete(system_prompt, user_message)

            parsed = parse_model_response(raw_reply)
            modification_set = parsed.modification_set
            detected = check_modifications(modification_set.modifications, snapshot.active_entries)
            result = ModificationSetOut(
                response=modification_set.response,
                modifications=modification_set.modifications,
                conflicts=modification_set.conflicts,
                warnings=modification_set.warnings,
                detectedConflicts=detected,
                degraded=parsed.is_degraded,
            )

            record_audit(
                db,
                kind=AuditKind.request,
                actor=actor,
                session_id=request.session_id,
                details={
                    "userMessage": request.message,
                    "hasFile": request.has_file,
                    "fileName": request.file_name,
                    "fileRecordCount": len(request.file_records or []),
                    "degradedReason": parsed.degraded.reason if parsed.degraded else None,
                    "aiResponse": result.model_dump(mode="json"),
                },
            )
            db.commit()
        except (AppError, SQLAlchemyError) as exc:
            db.rollback()
            self._record_error(db, request, actor=actor, exc=exc)
            raise

        logger.info(
            "Proposed %d modification(s) for %s (%d with detected conflicts)",
            len(result.modifications),
            actor,
            sum(1 for item in detected if item.conflicts),
        )
        return result

    def _record_error(self, db: Session, request: ModificationRequest, *, actor: str, exc: Exception) -> None:
        message = exc.message if isinstance(exc, AppError) else str(exc)
        try:
            record_audit(
                db,
                kind=AuditKind.error,
                actor=actor,
                session_id=request.session_id,
                details={
                    "type": "ai_modification",
                    "error": message,
                    "errorType": exc.__class__.__name__,
                    "request": {"message": request.message, "hasFile": request.has_file},
                },
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Unable to record failed modification request for %s", actor)
