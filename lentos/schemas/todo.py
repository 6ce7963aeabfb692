from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TodoBase(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    description: str = ""


class TodoCreate(TodoBase):
    pass


class TodoUpdate(BaseModel):
    """Fields left as None keep their stored value."""

    id: int
    title: Optional[str] = Field(default=None, min_length=1, max_length=256)
    description: Optional[str] = None
    is_done: Optional[bool] = None

    def changes(self) -> dict:
        return self.model_dump(exclude={"id"}, exclude_none=True)


class TodoOut(TodoBase):
    id: int
    is_done: bool
    owner: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
