from sqlalchemy import func, select

from app.db.session import SessionLocal
from app.models.audit_record import AuditRecord
from app.models.schedule import ScheduleEntry, ScheduleStatus

db = SessionLocal()
try:
    total = db.execute(select(func.count(ScheduleEntry.id))).scalar_one()
    active = db.execute(
        select(func.count(ScheduleEntry.id)).where(ScheduleEntry.status == ScheduleStatus.active)
    ).scalar_one()
    print(f"Schedules: {total} ({active} active)")

    records = db.execute(select(AuditRecord).order_by(AuditRecord.created_at.desc()).limit(5)).scalars().all()
    print(f"Recent Audit Records: {len(records)}")
    for record in records:
        print(f"  - {record.kind.value} by {record.actor} (Session: {record.session_id}, Created: {record.created_at})")
finally:
    db.close()
