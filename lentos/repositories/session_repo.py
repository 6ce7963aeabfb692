from __future__ import annotations

import json
import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lentos.errors import InternalError, SessionDeserializationError, SessionNotFoundError
from lentos.models.session import Session
from lentos.repositories.base import SqlRepository
from lentos.repositories.interfaces import SessionState

logger = logging.getLogger(__name__)

KEY_LENGTH = 64
KEY_ALPHABET = string.ascii_letters + string.digits


def generate_session_key() -> str:
    return "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_LENGTH))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    if expires_at is None:
        return False
    # sqlite and mysql hand back naive datetimes; they are stored in UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= now


def encode_state(state: SessionState) -> dict[str, str]:
    try:
        # round-trip through json so non-serializable values fail here, not in the driver
        return json.loads(json.dumps({str(k): str(v) for k, v in state.items()}))
    except (TypeError, ValueError) as e:
        raise InternalError(f"Failed to serialize session state. Details: {e}") from e


def decode_state(raw: Any) -> SessionState:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise SessionDeserializationError(f"Session state is not valid JSON. Details: {e}") from e
    if not isinstance(raw, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
    ):
        raise SessionDeserializationError(
            f"Session state must be a string-to-string mapping, got {type(raw).__name__}"
        )
    return raw


class SessionRepository(SqlRepository[Session]):
    """Server-side session storage keyed by an opaque 64-char key.

    Expiry is enforced when a session is loaded; `purge_expired` removes the
    leftovers in bulk.
    """

    model = Session
    relation = "Session"

    def __init__(
        self,
        sessions: async_sessionmaker[AsyncSession],
        ttl: timedelta = timedelta(hours=8),
    ) -> None:
        super().__init__(sessions)
        self.ttl = ttl

    def generate_key(self) -> str:
        return generate_session_key()

    async def load(self, key: str) -> SessionState | None:
        async with self._sessions() as db:
            row = await self._get(db, key)
            if row is None:
                return None
            if is_expired(row.expires_at, utcnow()):
                logger.debug("Dropping expired session %s...", key[:8])
                await self._delete_where(db, Session.key == key)
                await db.commit()
                return None
            return decode_state(row.state)

    async def save(self, state: SessionState, user_id: int | None = None) -> str:
        key = self.generate_key()
        row = Session(
            key=key,
            state=encode_state(state),
            expires_at=utcnow() + self.ttl,
            user_id=user_id,
        )
        try:
            async with self._sessions.begin() as db:
                db.add(row)
        except IntegrityError as e:
            # a key collision must never overwrite another session
            raise InternalError(f"Failed to save session. Details: {e}") from e
        logger.debug("Saved session %s...", key[:8])
        return key

    async def update(self, key: str, state: SessionState) -> str:
        values = {"state": encode_state(state), "expires_at": utcnow() + self.ttl}
        async with self._sessions.begin() as db:
            affected = await self._update_where(db, values, Session.key == key)
        if affected == 0:
            raise SessionNotFoundError(key)
        return key

    async def delete(self, key: str) -> None:
        async with self._sessions.begin() as db:
            await self._delete_where(db, Session.key == key)

    async def delete_for_user(self, user_id: int) -> int:
        async with self._sessions.begin() as db:
            revoked = await self._delete_where(db, Session.user_id == user_id)
        logger.info("Revoked %d sessions of user %s", revoked, user_id)
        return revoked

    async def purge_expired(self) -> int:
        async with self._sessions.begin() as db:
            purged = await self._delete_where(db, Session.expires_at <= utcnow())
        if purged:
            logger.info("Purged %d expired sessions", purged)
        return purged
