from __future__ import annotations

import logging

from sqlalchemy import inspect

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)


def ensure_runtime_schema_compatibility() -> None:
    """Creates tables that are missing; existing tables are never altered."""
    with engine.begin() as connection:
        existing = set(inspect(connection).get_table_names())
        missing = [table for name, table in Base.metadata.tables.items() if name not in existing]
        if not missing:
            return
        Base.metadata.create_all(bind=connection, tables=missing)
    logger.info("Created missing table(s): %s", ", ".join(sorted(table.name for table in missing)))
