import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("AI_RETRY_BACKOFF_SECONDS", "0")
os.environ.setdefault("OPENAI_API_KEY", "")

import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without running a server
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api.deps import get_completion_client, get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.schedule import ScheduleEntry, ScheduleStatus
from app.services.rate_limit import TokenBucketRateLimiter


class FakeCompletionClient:
    """Replays queued replies; queued exceptions are raised instead of returned."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def complete(self, system_prompt, user_message, *, max_tokens, temperature):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_message": user_message,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture()
def session_factory():
    engine = create_engine( #isolated in-memory DB shared by every connection
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def completion_client():
    return FakeCompletionClient()


@pytest.fixture()
def client(session_factory, completion_client):
    # fresh limiter per test so earlier requests never count against later tests
    app.state.rate_limiter = TokenBucketRateLimiter(capacity=100, window_seconds=60)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: completion_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def build(identity="admin@example.com", role="admin"):
        token = create_access_token(identity, role)
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture()
def make_entry():
    def build(session, **overrides):
        values = {
            "subject": "Math",
            "faculty": "FacultyA",
            "classroom": "Room1",
            "day": "Monday",
            "start_time": "09:00",
            "end_time": "10:00",
            "status": ScheduleStatus.active,
        }
        values.update(overrides)
        entry = ScheduleEntry(**values)
        session.add(entry)
        session.commit()
        session.refresh(entry)
        return entry

    return build
