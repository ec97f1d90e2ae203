"""Seed a small weekly schedule and print bearer tokens for trying the assistant endpoints.

Run:
  PYTHONPATH=backend python scripts/seed_schedule_demo.py
"""

from __future__ import annotations

import os

from sqlalchemy import select

from app.core.security import create_access_token
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.classroom import Classroom
from app.models.faculty import Faculty
from app.models.schedule import ScheduleEntry, ScheduleStatus
from app.models.student import Student

DEMO_ACTOR = os.getenv("DEMO_ACTOR", "scheduler.demo@example.com")

FACULTY = [
    ("FacultyA", "facultya.demo@example.com"),
    ("FacultyB", "facultyb.demo@example.com"),
    ("FacultyC", "facultyc.demo@example.com"),
]
CLASSROOMS = [("Room1", 40), ("Room2", 40), ("Lab 1", 24)]
STUDENTS = [("Student One", "A"), ("Student Two", "A"), ("Student Three", "B")]

SCHEDULE = [
    {"id": "demo-math", "subject": "Math", "faculty": "FacultyA", "classroom": "Room1", "day": "Monday", "start_time": "09:00", "end_time": "10:00"},
    {"id": "demo-physics", "subject": "Physics", "faculty": "FacultyB", "classroom": "Room2", "day": "Monday", "start_time": "10:00", "end_time": "11:00"},
    {"id": "demo-chemistry", "subject": "Chemistry", "faculty": "FacultyC", "classroom": "Lab 1", "day": "Tuesday", "start_time": "13:00", "end_time": "14:30"},
    {"id": "demo-history", "subject": "History", "faculty": "FacultyA", "classroom": "Room2", "day": "Wednesday", "start_time": "11:00", "end_time": "12:00"},
]


def _seed_reference_data() -> None:
    with SessionLocal() as session:
        for name, email in FACULTY:
            existing = session.execute(select(Faculty).where(Faculty.email == email)).scalar_one_or_none()
            if existing is None:
                session.add(Faculty(name=name, email=email))
        for name, capacity in CLASSROOMS:
            existing = session.execute(select(Classroom).where(Classroom.name == name)).scalar_one_or_none()
            if existing is None:
                session.add(Classroom(name=name, capacity=capacity))
        if session.execute(select(Student.id).limit(1)).first() is None:
            session.add_all(Student(name=name, section_name=section) for name, section in STUDENTS)
        session.commit()


def _seed_schedule() -> int:
    created = 0
    with SessionLocal() as session:
        for item in SCHEDULE:
            entry = session.get(ScheduleEntry, item["id"])
            if entry is None:
                entry = ScheduleEntry(created_by=DEMO_ACTOR, **item)
                session.add(entry)
                created += 1
            else:
                for key, value in item.items():
                    setattr(entry, key, value)
            entry.status = ScheduleStatus.active
            entry.cancelled_at = None
            entry.cancelled_by = None
        session.commit()
    return created


def main() -> None:
    ensure_runtime_schema_compatibility()
    _seed_reference_data()
    created = _seed_schedule()

    print(f"\nSchedule ready: {len(SCHEDULE)} demo classes ({created} newly created)")
    print("\nBearer tokens:")
    print(f"  - scheduler: {create_access_token(DEMO_ACTOR, 'scheduler')}")
    print(f"  - student (read only): {create_access_token('student.demo@example.com', 'student')}")
    print("\nTry moving Math to Monday 10:00-11:00 in Room2 to see a detected room conflict.")


if __name__ == "__main__":
    main()
