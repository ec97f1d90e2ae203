from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.schedule import ScheduleEntry, ScheduleStatus

DAY_VALUES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_DAY_LOOKUP = {day.lower(): day for day in DAY_VALUES} | {day[:3].lower(): day for day in DAY_VALUES}

TIME_PATTERN = re.compile(r"^(\d{1,2}):([0-5]\d)$")

# Fields a modification may read or write on a schedule entry; stamps are excluded.
SCHEDULE_FIELDS = ("subject", "faculty", "classroom", "day", "startTime", "endTime", "status")

_COLUMN_BY_FIELD = {
    "subject": "subject",
    "faculty": "faculty",
    "classroom": "classroom",
    "day": "day",
    "startTime": "start_time",
    "endTime": "end_time",
    "status": "status",
}


def parse_time_to_minutes(value: str) -> int:
    match = TIME_PATTERN.match(value)
    if not match or int(match.group(1)) > 23:
        raise ValueError("Time must be in HH:MM 24-hour format")
    return int(match.group(1)) * 60 + int(match.group(2))


def normalize_time(value: str) -> str:
    minutes = parse_time_to_minutes(value.strip())
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_day(value: str) -> str:
    day = _DAY_LOOKUP.get(value.strip().lower())
    if day is None:
        raise ValueError(f"Invalid day: {value}")
    return day


def _coerce_text(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class ScheduleData(BaseModel):
    """Schedule entry shape exchanged with the model and the operator.

    Every field is optional so ``newData`` of a move or update can carry only
    the fields that change. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, max_length=36)
    subject: str | None = Field(default=None, max_length=200)
    faculty: str | None = Field(default=None, max_length=200)
    classroom: str | None = Field(default=None, max_length=100)
    day: str | None = None
    startTime: str | None = None
    endTime: str | None = None
    status: Literal["active", "cancelled"] | None = None

    @field_validator("id", "subject", "faculty", "classroom", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        value = _coerce_text(value)
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        return None if value is None else normalize_day(value)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        return None if value is None else normalize_time(value)

    @model_validator(mode="after")
    def validate_interval(self) -> "ScheduleData":
        if self.startTime is not None and self.endTime is not None:
            if parse_time_to_minutes(self.startTime) >= parse_time_to_minutes(self.endTime):
                raise ValueError("startTime must be earlier than endTime")
        return self

    def provided_fields(self) -> dict[str, str]:
        return {
            name: getattr(self, name)
            for name in SCHEDULE_FIELDS
            if getattr(self, name) is not None
        }


class ExistingEntryData(ScheduleData):
    id: str = Field(min_length=1, max_length=36)


class NewEntryData(ScheduleData):
    subject: str = Field(min_length=1, max_length=200)
    faculty: str = Field(min_length=1, max_length=200)
    classroom: str = Field(min_length=1, max_length=100)
    day: str
    startTime: str
    endTime: str


def entry_to_data(entry: ScheduleEntry) -> dict[str, str]:
    status = entry.status.value if hasattr(entry.status, "value") else entry.status
    return {
        "id": entry.id,
        "subject": entry.subject,
        "faculty": entry.faculty,
        "classroom": entry.classroom,
        "day": entry.day,
        "startTime": entry.start_time,
        "endTime": entry.end_time,
        "status": status,
    }


def assign_fields(entry: ScheduleEntry, fields: dict[str, str]) -> None:
    for name, value in fields.items():
        if name == "status":
            value = ScheduleStatus(value)
        setattr(entry, _COLUMN_BY_FIELD[name], value)
