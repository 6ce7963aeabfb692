from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from lentos.errors import ForbiddenError, NotFoundError, Operation
from lentos.models.user import User
from lentos.repositories.base import SqlRepository
from lentos.schemas.user import UserRecordCreate, UserUpdate


class UserRepository(SqlRepository[User]):
    model = User
    relation = "User"
    conflict_message = "A user with the provided email address already exists."

    async def get_by_email(self, email: str) -> User:
        async with self._sessions() as db:
            user = await self._first(db, User.email == email)
        if user is None:
            raise NotFoundError(self.relation)
        return user

    async def get_by_id(self, user_id: int) -> User:
        async with self._sessions() as db:
            user = await self._get(db, user_id)
        if user is None:
            raise NotFoundError(self.relation)
        return user

    async def create(self, user_in: UserRecordCreate) -> None:
        user = User(name=user_in.name, email=user_in.email, password=user_in.password_hash)
        try:
            async with self._sessions.begin() as db:
                db.add(user)
        except IntegrityError as e:
            raise self._translate_integrity_error(e, "create") from e

    async def update(self, user_in: UserUpdate, user_id: int) -> None:
        values = user_in.changes()
        values["updated_at"] = func.now()
        try:
            async with self._sessions.begin() as db:
                affected = await self._update_where(db, values, User.id == user_id)
        except IntegrityError as e:
            raise self._translate_integrity_error(e, "update") from e
        if affected == 0:
            raise ForbiddenError(Operation.UPDATE, self.relation)

    async def delete(self, user_id: int) -> None:
        async with self._sessions.begin() as db:
            affected = await self._delete_where(db, User.id == user_id)
        if affected == 0:
            raise ForbiddenError(Operation.DELETE, self.relation)
