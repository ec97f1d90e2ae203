from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ChatSessionUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    messages: list[dict] | None = Field(default=None, max_length=500)

    @field_validator("title")
    @classmethod
    def normalize_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None


class ChatSessionOut(BaseModel):
    id: str
    title: str | None
    messages: list[dict]
    owner: str | None
    created_at: datetime | None
    last_modified: datetime | None

    model_config = {"from_attributes": True}
