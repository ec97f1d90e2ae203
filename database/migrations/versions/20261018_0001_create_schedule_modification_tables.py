"""create schedule modification tables

Revision ID: 20261018_0001
Revises: None
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


schedule_status_enum = sa.Enum("active", "cancelled", name="schedule_status")
audit_kind_enum = sa.Enum("request", "apply", "undo", "error", name="audit_kind")


def upgrade() -> None:
    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("faculty", sa.String(length=200), nullable=False),
        sa.Column("classroom", sa.String(length=100), nullable=False),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("status", schedule_status_enum, nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_by", sa.String(length=200), nullable=True),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=True),
        sa.Column("modified_by", sa.String(length=200), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(length=200), nullable=True),
    )
    op.create_index("ix_schedules_faculty", "schedules", ["faculty"])
    op.create_index("ix_schedules_classroom", "schedules", ["classroom"])
    op.create_index("ix_schedules_day", "schedules", ["day"])

    op.create_table(
        "faculty",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=False, server_default="General"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_faculty_email", "faculty", ["email"], unique=True)

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("building", sa.String(length=200), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_classrooms_name", "classrooms", ["name"], unique=True)

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("section_name", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "audit_records",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("kind", audit_kind_enum, nullable=False),
        sa.Column("actor", sa.String(length=200), nullable=False),
        sa.Column("session_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_records_kind", "audit_records", ["kind"])
    op.create_index("ix_audit_records_session_id", "audit_records", ["session_id"])
    op.create_index("ix_audit_records_created_at", "audit_records", ["created_at"])

    op.create_table(
        "chat_sessions",
        sa.Column("id", sa.String(length=100), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("messages", sa.JSON(), nullable=False),
        sa.Column("owner", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_modified", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_chat_sessions_last_modified", "chat_sessions", ["last_modified"])


def downgrade() -> None:
    op.drop_index("ix_chat_sessions_last_modified", table_name="chat_sessions")
    op.drop_table("chat_sessions")
    op.drop_index("ix_audit_records_created_at", table_name="audit_records")
    op.drop_index("ix_audit_records_session_id", table_name="audit_records")
    op.drop_index("ix_audit_records_kind", table_name="audit_records")
    op.drop_table("audit_records")
    op.drop_table("students")
    op.drop_index("ix_classrooms_name", table_name="classrooms")
    op.drop_table("classrooms")
    op.drop_index("ix_faculty_email", table_name="faculty")
    op.drop_table("faculty")
    op.drop_index("ix_schedules_day", table_name="schedules")
    op.drop_index("ix_schedules_classroom", table_name="schedules")
    op.drop_index("ix_schedules_faculty", table_name="schedules")
    op.drop_table("schedules")
    audit_kind_enum.drop(op.get_bind(), checkfirst=True)
    schedule_status_enum.drop(op.get_bind(), checkfirst=True)
