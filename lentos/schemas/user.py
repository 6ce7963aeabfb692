from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    email: EmailStr


class UserCreate(UserBase):
    password: str = Field(min_length=1, max_length=1024)


class UserRecordCreate(UserBase):
    """What the repository stores: the password is already hashed."""

    password_hash: str


class UserLogin(BaseModel):
    email: str
    password: str = Field(max_length=1024)


class UserUpdate(BaseModel):
    """Partial update, unset fields keep their stored value.

    When it reaches the repository `password` already holds a hash.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=1, max_length=1024)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
