from __future__ import annotations

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from lentos.errors import ForbiddenError, NotFoundError, Operation, UnauthorizedError
from lentos.models.todo import Todo
from lentos.repositories.base import SqlRepository, violation_kind
from lentos.schemas.todo import TodoCreate, TodoUpdate


class TodoRepository(SqlRepository[Todo]):
    """Todo storage where every call is scoped to the requesting user.

    Mutations put the ownership check into the statement itself
    (`WHERE id = ? AND owner = ?`) so there is no window between checking
    ownership and changing the row. A miss is reported as Forbidden whether
    the row is absent or belongs to someone else.
    """

    model = Todo
    relation = "Todo"

    async def list(self, owner_id: int) -> list[Todo]:
        async with self._sessions() as db:
            return await self._list(db, Todo.owner == owner_id, order_by=(Todo.id,))

    async def get(self, todo_id: int, requester_id: int) -> Todo:
        async with self._sessions() as db:
            todo = await self._get(db, todo_id)
        if todo is None:
            raise NotFoundError(self.relation)
        if todo.owner != requester_id:
            raise ForbiddenError(Operation.RECEIVE, self.relation)
        return todo

    async def create(self, todo_in: TodoCreate, owner_id: int) -> Todo:
        todo = Todo(
            title=todo_in.title,
            description=todo_in.description,
            is_done=False,
            owner=owner_id,
        )
        try:
            async with self._sessions.begin() as db:
                db.add(todo)
                await db.flush()
                await db.refresh(todo)
        except IntegrityError as e:
            if violation_kind(e) == "foreign_key":
                # the owner account is gone, its session is stale
                raise UnauthorizedError() from e
            raise self._translate_integrity_error(e, "create") from e
        return todo

    async def update(self, todo_in: TodoUpdate, requester_id: int) -> Todo:
        values = todo_in.changes()
        values["updated_at"] = func.now()
        async with self._sessions.begin() as db:
            affected = await self._update_where(
                db, values, Todo.id == todo_in.id, Todo.owner == requester_id
            )
            if affected == 0:
                raise ForbiddenError(Operation.UPDATE, self.relation)
            todo = await self._first(db, Todo.id == todo_in.id)
        return todo

    async def delete(self, todo_id: int, requester_id: int) -> None:
        async with self._sessions.begin() as db:
            affected = await self._delete_where(db, Todo.id == todo_id, Todo.owner == requester_id)
        if affected == 0:
            raise ForbiddenError(Operation.DELETE, self.relation)
