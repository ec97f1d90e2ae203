from typing import List, Literal

from pydantic import BaseModel


class Conflict(BaseModel):
    type: Literal["faculty_conflict", "room_conflict"]
    message: str
    entryId: str  # the already scheduled entry the candidate collides with


class ModificationConflicts(BaseModel):
    modificationId: str
    conflicts: List[Conflict]
