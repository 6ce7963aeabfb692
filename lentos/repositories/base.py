from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import delete as sa_delete, select, update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import ColumnElement

from lentos.errors import AppError, BadRequestError, ConflictError, InternalError

T = TypeVar("T")  # SQLAlchemy model class (Declarative)

_PG_CODES = {"23505": "unique", "23502": "not_null", "23514": "check", "23503": "foreign_key"}
_MYSQL_CODES = {
    1062: "unique",
    1048: "not_null",
    1364: "not_null",
    3819: "check",
    1452: "foreign_key",
}


def violation_kind(exc: IntegrityError) -> str | None:
    """Classify an IntegrityError as unique / not_null / check / foreign_key, or None."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _PG_CODES:
        return _PG_CODES[code]
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int) and args[0] in _MYSQL_CODES:
        return _MYSQL_CODES[args[0]]
    # sqlite only reports through the message
    msg = str(orig).lower()
    if "unique" in msg or "duplicate" in msg:
        return "unique"
    if "not null" in msg:
        return "not_null"
    if "check constraint" in msg:
        return "check"
    if "foreign key" in msg:
        return "foreign_key"
    return None


class SqlRepository(Generic[T]):
    """
    Common base for the SQLAlchemy 2.x async repositories.

    - Each public call borrows one pooled session and releases it before
      returning; nothing is held across calls.
    - Writes run inside `sessions.begin()` so they commit (or roll back) on
      exit.
    - Subclasses set `model` and `relation` (the name used in error messages).
    """

    model: type[T]
    relation: str

    # messages for constraint violations raised from writes
    conflict_message = "A record with the provided data already exists."
    not_null_message = "Not all required fields provided."
    check_message = "The provided data was in a format the server could not process."

    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    # ------------------------ Read ------------------------

    async def _get(self, db: AsyncSession, pk: Any) -> T | None:
        return await db.get(self.model, pk)

    async def _first(self, db: AsyncSession, *criteria: ColumnElement[bool]) -> T | None:
        res = await db.execute(select(self.model).where(*criteria))
        return res.scalars().first()

    async def _list(
        self,
        db: AsyncSession,
        *criteria: ColumnElement[bool],
        order_by: Sequence[Any] = (),
    ) -> list[T]:
        stmt = select(self.model).where(*criteria)
        if order_by:
            stmt = stmt.order_by(*order_by)
        res = await db.execute(stmt)
        return list(res.scalars().all())

    # ------------------------ Write ------------------------

    async def _update_where(
        self,
        db: AsyncSession,
        values: dict[str, Any],
        *criteria: ColumnElement[bool],
    ) -> int:
        """Single UPDATE filtered by `criteria`; returns the affected row count."""
        stmt = (
            sa_update(self.model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        res = await db.execute(stmt)
        return res.rowcount or 0

    async def _delete_where(self, db: AsyncSession, *criteria: ColumnElement[bool]) -> int:
        stmt = sa_delete(self.model).where(*criteria).execution_options(synchronize_session=False)
        res = await db.execute(stmt)
        return res.rowcount or 0

    def _translate_integrity_error(self, exc: IntegrityError, action: str) -> AppError:
        kind = violation_kind(exc)
        if kind == "unique":
            return ConflictError(self.conflict_message)
        if kind == "not_null":
            return BadRequestError(self.not_null_message)
        if kind == "check":
            return BadRequestError(self.check_message)
        return InternalError(f"Failed to {action} {self.relation.lower()}. Details: {exc}")
