from collections.abc import Callable, Generator, Iterable
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.services.completion import CompletionClient, OpenAICompletionClient
from app.services.rate_limit import RateLimiter
from app.services.schedule_assistant import ScheduleAssistant

security = HTTPBearer()


class ActorRole(str, Enum):
    admin = "admin"
    scheduler = "scheduler"
    faculty = "faculty"
    student = "student"


@dataclass(frozen=True)
class Actor:
    identity: str
    role: ActorRole


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_actor(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Actor:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as exc:
        raise credentials_exception from exc

    identity = payload.get("sub")
    if not identity:
        raise credentials_exception
    try:
        role = ActorRole(payload.get("role"))
    except ValueError as exc:
        raise credentials_exception from exc
    return Actor(identity=str(identity), role=role)


def require_roles(*roles: ActorRole) -> Callable[[Actor], Actor]:
    allowed_roles: Iterable[ActorRole] = set(roles)

    def role_checker(current_actor: Actor = Depends(get_current_actor)) -> Actor:
        if current_actor.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_actor

    return role_checker


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_completion_client(request: Request) -> CompletionClient:
    client = getattr(request.app.state, "completion_client", None)
    if client is None:
        client = OpenAICompletionClient.from_settings(get_settings())
        request.app.state.completion_client = client
    return client


def get_schedule_assistant(client: CompletionClient = Depends(get_completion_client)) -> ScheduleAssistant:
    return ScheduleAssistant(client, get_settings())
