from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from app.schemas.conflict import ModificationConflicts
from app.schemas.schedule import ExistingEntryData, NewEntryData, ScheduleData

MODIFICATION_KINDS = ("move", "cancel", "add", "update")
REQUIRED_MODIFICATION_KEYS = ("id", "type", "description", "originalData", "newData", "affected")


class _ModificationBase(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=2000)
    affected: list[str] = Field(default_factory=list, max_length=200)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("affected", mode="before")
    @classmethod
    def coerce_affected(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value if item is not None]
        return value


class MoveModification(_ModificationBase):
    type: Literal["move"]
    originalData: ExistingEntryData
    newData: ScheduleData


class UpdateModification(_ModificationBase):
    type: Literal["update"]
    originalData: ExistingEntryData
    newData: ScheduleData


class AddModification(_ModificationBase):
    type: Literal["add"]
    originalData: None = None
    newData: NewEntryData


class CancelModification(_ModificationBase):
    type: Literal["cancel"]
    originalData: ExistingEntryData
    newData: None = None


Modification = Annotated[
    Union[MoveModification, UpdateModification, AddModification, CancelModification],
    Field(discriminator="type"),
]

modification_adapter: TypeAdapter[Modification] = TypeAdapter(Modification)


class ModificationSet(BaseModel):
    response: str = ""
    modifications: list[Modification] = Field(default_factory=list)
    conflicts: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ModificationSetOut(ModificationSet):
    detectedConflicts: list[ModificationConflicts] = Field(default_factory=list)
    degraded: bool = False


class ApplyModificationsRequest(BaseModel):
    modifications: list[Modification]


class UndoModificationRequest(BaseModel):
    modification: Modification


class CheckConflictsRequest(BaseModel):
    modifications: list[Modification]


class ModificationResult(BaseModel):
    success: bool
    message: str
    auditId: str | None = None
    modifications: list[Modification] = Field(default_factory=list)
