from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.classroom import Classroom
from app.models.faculty import Faculty
from app.models.schedule import ScheduleEntry, ScheduleStatus
from app.models.student import Student
from app.schemas.schedule import DAY_VALUES

_DAY_ORDER = {day: index for index, day in enumerate(DAY_VALUES)}


@dataclass
class ScheduleSnapshot:
    entries: list[ScheduleEntry] = field(default_factory=list)
    faculty_names: list[str] = field(default_factory=list)
    classroom_names: list[str] = field(default_factory=list)
    student_count: int = 0

    @property
    def active_entries(self) -> list[ScheduleEntry]:
        return [entry for entry in self.entries if entry.status != ScheduleStatus.cancelled]


def load_active_entries(db: Session) -> list[ScheduleEntry]:
    query = select(ScheduleEntry).where(ScheduleEntry.status == ScheduleStatus.active)
    return list(db.execute(query).scalars())


def load_schedule_snapshot(db: Session) -> ScheduleSnapshot:
    entries = sorted(
        db.execute(select(ScheduleEntry)).scalars(),
        key=lambda entry: (_DAY_ORDER.get(entry.day, len(_DAY_ORDER)), entry.start_time, entry.subject),
    )
    faculty_names = db.execute(select(Faculty.name).order_by(Faculty.name)).scalars()
    classroom_names = db.execute(select(Classroom.name).order_by(Classroom.name)).scalars()
    student_count = db.scalar(select(func.count()).select_from(Student)) or 0
    return ScheduleSnapshot(
        entries=entries,
        faculty_names=list(faculty_names),
        classroom_names=list(classroom_names),
        student_count=student_count,
    )
