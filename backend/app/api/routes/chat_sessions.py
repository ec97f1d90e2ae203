from fastapi import APIRouter, Depends, Path, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import Actor, ActorRole, get_db, require_roles
from app.core.exceptions import ResourceNotFoundError
from app.models.chat_session import ChatSession
from app.schemas.chat_session import ChatSessionOut, ChatSessionUpdate

router = APIRouter()

session_owner = require_roles(ActorRole.admin, ActorRole.scheduler)


@router.get("/chat-sessions", response_model=list[ChatSessionOut])
def list_chat_sessions(
    current_actor: Actor = Depends(session_owner),
    db: Session = Depends(get_db),
) -> list[ChatSessionOut]:
    query = select(ChatSession).order_by(ChatSession.last_modified.desc()).limit(50)
    return list(db.execute(query).scalars())


@router.put("/chat-sessions/{session_id}", response_model=ChatSessionOut)
def upsert_chat_session(
    payload: ChatSessionUpdate,
    session_id: str = Path(min_length=1, max_length=100),
    current_actor: Actor = Depends(session_owner),
    db: Session = Depends(get_db),
) -> ChatSessionOut:
    chat_session = db.get(ChatSession, session_id)
    if chat_session is None:
        chat_session = ChatSession(id=session_id, messages=[], owner=current_actor.identity)
        db.add(chat_session)

    # Merge semantics: only fields present in the body are overwritten.
    updates = payload.model_dump(exclude_unset=True)
    if "title" in updates:
        chat_session.title = updates["title"]
    if updates.get("messages") is not None:
        chat_session.messages = updates["messages"]
    db.commit()
    db.refresh(chat_session)
    return chat_session


@router.delete("/chat-sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chat_session(
    session_id: str,
    current_actor: Actor = Depends(session_owner),
    db: Session = Depends(get_db),
) -> None:
    chat_session = db.get(ChatSession, session_id)
    if chat_session is None:
        raise ResourceNotFoundError("Chat session", session_id)
    db.delete(chat_session)
    db.commit()
