"""In-memory repositories with the same behaviour as the SQL adapters.

Used to exercise the services and the auth binding without a database.
Each method runs without awaiting in the middle, so on a single event loop
every call is atomic, like the single SQL statements it mirrors.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any

from lentos.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    Operation,
    SessionNotFoundError,
)
from lentos.models.todo import Todo
from lentos.models.user import User
from lentos.repositories.interfaces import SessionState
from lentos.repositories.session_repo import decode_state, encode_state, generate_session_key
from lentos.schemas.todo import TodoCreate, TodoUpdate
from lentos.schemas.user import UserRecordCreate, UserUpdate


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _copy_user(u: User) -> User:
    return User(
        id=u.id,
        name=u.name,
        email=u.email,
        password=u.password,
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


def _copy_todo(t: Todo) -> Todo:
    return Todo(
        id=t.id,
        title=t.title,
        description=t.description,
        is_done=t.is_done,
        owner=t.owner,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


class InMemoryUserRepository:
    def __init__(self) -> None:
        self._rows: dict[int, User] = {}
        self._ids = itertools.count(1)

    async def get_by_email(self, email: str) -> User:
        for u in self._rows.values():
            if u.email == email:
                return _copy_user(u)
        raise NotFoundError("User")

    async def get_by_id(self, user_id: int) -> User:
        u = self._rows.get(user_id)
        if u is None:
            raise NotFoundError("User")
        return _copy_user(u)

    async def create(self, user_in: UserRecordCreate) -> None:
        if not user_in.name or not user_in.email or not user_in.password_hash:
            raise BadRequestError()
        if any(u.email == user_in.email for u in self._rows.values()):
            raise ConflictError("A user with the provided email address already exists.")
        now = _now()
        uid = next(self._ids)
        self._rows[uid] = User(
            id=uid,
            name=user_in.name,
            email=user_in.email,
            password=user_in.password_hash,
            created_at=now,
            updated_at=now,
        )

    async def update(self, user_in: UserUpdate, user_id: int) -> None:
        u = self._rows.get(user_id)
        if u is None:
            raise ForbiddenError(Operation.UPDATE, "User")
        changes = user_in.changes()
        email = changes.get("email")
        if email is not None and any(
            o.email == email for oid, o in self._rows.items() if oid != user_id
        ):
            raise ConflictError("A user with the provided email address already exists.")
        for field, value in changes.items():
            setattr(u, field, value)
        u.updated_at = _now()

    async def delete(self, user_id: int) -> None:
        if self._rows.pop(user_id, None) is None:
            raise ForbiddenError(Operation.DELETE, "User")


class InMemoryTodoRepository:
    def __init__(self) -> None:
        self._rows: dict[int, Todo] = {}
        self._ids = itertools.count(1)

    async def list(self, owner_id: int) -> list[Todo]:
        return [_copy_todo(t) for _, t in sorted(self._rows.items()) if t.owner == owner_id]

    async def get(self, todo_id: int, requester_id: int) -> Todo:
        t = self._rows.get(todo_id)
        if t is None:
            raise NotFoundError("Todo")
        if t.owner != requester_id:
            raise ForbiddenError(Operation.RECEIVE, "Todo")
        return _copy_todo(t)

    async def create(self, todo_in: TodoCreate, owner_id: int) -> Todo:
        now = _now()
        tid = next(self._ids)
        t = Todo(
            id=tid,
            title=todo_in.title,
            description=todo_in.description,
            is_done=False,
            owner=owner_id,
            created_at=now,
            updated_at=now,
        )
        self._rows[tid] = t
        return _copy_todo(t)

    async def update(self, todo_in: TodoUpdate, requester_id: int) -> Todo:
        t = self._rows.get(todo_in.id)
        if t is None or t.owner != requester_id:
            raise ForbiddenError(Operation.UPDATE, "Todo")
        for field, value in todo_in.changes().items():
            setattr(t, field, value)
        t.updated_at = _now()
        return _copy_todo(t)

    async def delete(self, todo_id: int, requester_id: int) -> None:
        t = self._rows.get(todo_id)
        if t is None or t.owner != requester_id:
            raise ForbiddenError(Operation.DELETE, "Todo")
        del self._rows[todo_id]


class InMemorySessionStore:
    def __init__(self, ttl: timedelta = timedelta(hours=8)) -> None:
        self.ttl = ttl
        # key -> (encoded state, expires_at, user_id)
        self._rows: dict[str, tuple[Any, datetime, int | None]] = {}

    def generate_key(self) -> str:
        return generate_session_key()

    async def load(self, key: str) -> SessionState | None:
        row = self._rows.get(key)
        if row is None:
            return None
        state, expires_at, _ = row
        if expires_at <= _now():
            del self._rows[key]
            return None
        return dict(decode_state(state))

    async def save(self, state: SessionState, user_id: int | None = None) -> str:
        key = self.generate_key()
        if key in self._rows:
            raise InternalError(f"session key collision on {key[:8]}...")
        self._rows[key] = (encode_state(state), _now() + self.ttl, user_id)
        return key

    async def update(self, key: str, state: SessionState) -> str:
        row = self._rows.get(key)
        if row is None:
            raise SessionNotFoundError(key)
        self._rows[key] = (encode_state(state), _now() + self.ttl, row[2])
        return key

    async def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    async def delete_for_user(self, user_id: int) -> int:
        keys = [k for k, (_, _, uid) in self._rows.items() if uid == user_id]
        for k in keys:
            del self._rows[k]
        return len(keys)

    async def purge_expired(self) -> int:
        now = _now()
        expired = [k for k, (_, exp, _) in self._rows.items() if exp <= now]
        for k in expired:
            del self._rows[k]
        return len(expired)
