"""Repository interfaces.

The SQL adapters and the in-memory adapters both satisfy these protocols;
services and the auth binding only depend on them.
"""

from __future__ import annotations

from typing import Protocol

from lentos.models.todo import Todo
from lentos.models.user import User
from lentos.schemas.todo import TodoCreate, TodoUpdate
from lentos.schemas.user import UserRecordCreate, UserUpdate

SessionState = dict[str, str]


class UserRepository(Protocol):
    # Must not back a public endpoint: the NotFoundError would reveal which
    # emails are registered.
    async def get_by_email(self, email: str) -> User: ...

    async def get_by_id(self, user_id: int) -> User: ...

    async def create(self, user_in: UserRecordCreate) -> None: ...

    async def update(self, user_in: UserUpdate, user_id: int) -> None: ...

    async def delete(self, user_id: int) -> None: ...


class TodoRepository(Protocol):
    async def list(self, owner_id: int) -> list[Todo]: ...

    async def get(self, todo_id: int, requester_id: int) -> Todo: ...

    async def create(self, todo_in: TodoCreate, owner_id: int) -> Todo: ...

    async def update(self, todo_in: TodoUpdate, requester_id: int) -> Todo: ...

    async def delete(self, todo_id: int, requester_id: int) -> None: ...


class SessionStore(Protocol):
    def generate_key(self) -> str: ...

    async def load(self, key: str) -> SessionState | None: ...

    async def save(self, state: SessionState, user_id: int | None = None) -> str: ...

    async def update(self, key: str, state: SessionState) -> str: ...

    async def delete(self, key: str) -> None: ...

    async def delete_for_user(self, user_id: int) -> int: ...

    async def purge_expired(self) -> int: ...
