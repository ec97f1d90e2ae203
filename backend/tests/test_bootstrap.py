from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from app.db import bootstrap


def test_runtime_schema_bootstrap_creates_missing_tables(monkeypatch):
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    bootstrap.Base.metadata.tables["chat_sessions"].create(bind=engine)
    monkeypatch.setattr(bootstrap, "engine", engine)

    bootstrap.ensure_runtime_schema_compatibility()

    table_names = set(inspect(engine).get_table_names())
    assert {"schedules", "audit_records", "chat_sessions", "faculty", "classrooms", "students"} <= table_names


def test_runtime_schema_bootstrap_is_a_no_op_when_schema_is_complete(monkeypatch):
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    bootstrap.Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(bootstrap, "engine", engine)
    calls = []
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda **kwargs: calls.append(kwargs))

    bootstrap.ensure_runtime_schema_compatibility()

    assert calls == []
