"""Renders the schedule snapshot and an operator instruction into model input.

Both builders are pure functions of their arguments. The system prompt always
carries the output contract the response parser relies on, even when the
snapshot is empty.
"""

from __future__ import annotations

import json
from typing import Any

from app.models.schedule import ScheduleEntry
from app.services.snapshot import ScheduleSnapshot

DEFAULT_FILE_INSTRUCTION = "Please analyze the uploaded file and suggest schedule modifications."

_PREAMBLE = (
    "You are an AI assistant specialized in educational timetable management. "
    "You help administrators modify class schedules, exam timetables, and room assignments "
    "using natural language commands."
)

_OUTPUT_CONTRACT = """Respond with a single JSON object and nothing else. It must have exactly these keys:

{
  "response": "Human-readable explanation of what will be done",
  "modifications": [
    {
      "id": "unique-id",
      "type": "move|cancel|add|update",
      "description": "Clear description of the change",
      "originalData": {...},
      "newData": {...},
      "affected": ["list of affected entities"]
    }
  ],
  "conflicts": ["list of any conflicts found"],
  "warnings": ["list of warnings or considerations"]
}

Every modification must have exactly the keys id, type, description, originalData, newData and affected.
Schedule objects in originalData and newData use the keys id, subject, faculty, classroom, day, startTime, endTime and status.
Days are full English weekday names; times are HH:MM in 24-hour format."""

_KIND_RULES = """Modification types:
- "move": relocate an existing class in time and/or room. originalData must be the existing schedule including its id; newData holds the new values.
- "update": change other details of an existing class (subject, faculty, classroom). originalData must be the existing schedule including its id; newData holds the new values.
- "add": create a new class. originalData must be null; newData must contain subject, faculty, classroom, day, startTime and endTime.
- "cancel": cancel an existing class. originalData must be the existing schedule including its id; newData must be null."""

_SELF_CHECK = """Before responding:
1. Analyze the natural language command carefully and identify what changes need to be made.
2. Check every proposed change for faculty double-booking: the same faculty member teaching two classes whose times overlap on the same day.
3. Check every proposed change for room double-booking: two classes in the same classroom whose times overlap on the same day.
4. Never propose a change that would create a faculty or room double-booking. If the request cannot be fulfilled without one, explain why in "response" and list it under "conflicts".
A class ending exactly when another starts does not overlap it. Only reference existing schedules by the ids listed above."""


def _names(values: list[str]) -> str:
    return ", ".join(values) if values else "none"


def describe_entry(entry: ScheduleEntry) -> str:
    return (
        f"- {entry.subject} with {entry.faculty} in {entry.classroom} "
        f"on {entry.day} at {entry.start_time}-{entry.end_time} (id: {entry.id})"
    )


def _file_block(file_records: list[dict[str, Any]], max_records: int) -> str:
    shown = file_records[:max_records]
    block = "Uploaded File Data:\n" + json.dumps(shown, indent=2, ensure_ascii=False, default=str)
    if len(file_records) > len(shown):
        block += f"\n(showing {len(shown)} of {len(file_records)} records)"
    return (
        f"{block}\n\n"
        "Reconcile the uploaded records with the administrator's request: propose modifications that bring "
        "the current schedule in line with the file where the request asks for it, and report records that "
        "cannot be applied under \"warnings\"."
    )


def build_system_prompt(
    snapshot: ScheduleSnapshot,
    file_records: list[dict[str, Any]] | None = None,
    *,
    max_file_records: int = 200,
) -> str:
    active = snapshot.active_entries
    schedule_lines = [describe_entry(entry) for entry in active] or ["- (no active schedules)"]

    sections = [
        _PREAMBLE,
        "Current Schedule Data:\n"
        f"- Total Schedules: {len(snapshot.entries)} ({len(active)} active)\n"
        f"- Faculty Members: {len(snapshot.faculty_names)}\n"
        f"- Classrooms: {len(snapshot.classroom_names)}\n"
        f"- Students: {snapshot.student_count}",
        f"Available Faculty: {_names(snapshot.faculty_names)}\n"
        f"Available Classrooms: {_names(snapshot.classroom_names)}",
        "Current Active Schedules:\n" + "\n".join(schedule_lines),
        _KIND_RULES,
        _SELF_CHECK,
        _OUTPUT_CONTRACT,
        "Always prioritize data integrity and avoid scheduling conflicts.",
    ]
    if file_records is not None:
        sections.append(_file_block(file_records, max(1, max_file_records)))
    return "\n\n".join(sections)


def build_user_message(message: str | None, *, has_file: bool) -> str:
    if message:
        return message
    if has_file:
        return DEFAULT_FILE_INSTRUCTION
    return ""
