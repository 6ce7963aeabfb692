"""Binding between the session cookie, the session store and a user id.

The cookie carries the session key signed with SESSION_SECRET_KEY; the
state behind the key lives server-side in the session store and holds the
authenticated user id.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request, Response
from itsdangerous import BadSignature, URLSafeTimedSerializer

from lentos.config import Settings
from lentos.errors import SessionNotFoundError, UnauthorizedError
from lentos.repositories.interfaces import SessionState, SessionStore
from lentos.repositories.session_repo import KEY_LENGTH

logger = logging.getLogger(__name__)

SESSION_USER_ID = "user_id"
SESSION_RENEW_AFTER = "renew_after"


class SessionBinding:
    def __init__(self, store: SessionStore, settings: Settings) -> None:
        self.store = store
        self.cookie_name = settings.SESSION_COOKIE_NAME
        self.ttl = settings.SESSION_TTL_SECONDS
        self.renew_after = timedelta(seconds=settings.SESSION_RENEW_AFTER_SECONDS)
        self.secure = settings.SESSION_COOKIE_SECURE
        self._signer = URLSafeTimedSerializer(settings.SESSION_SECRET_KEY, salt="lentos.session")

    def session_key(self, request: Request) -> str | None:
        token = request.cookies.get(self.cookie_name)
        if not token:
            return None
        try:
            key = self._signer.loads(token, max_age=self.ttl)
        except BadSignature:
            logger.debug("Rejected session cookie with bad or expired signature")
            return None
        if not isinstance(key, str) or len(key) != KEY_LENGTH:
            return None
        return key

    async def login(self, request: Request, response: Response, user_id: int) -> str:
        # never reuse a key the client brought along
        previous = self.session_key(request)
        if previous is not None:
            await self.store.delete(previous)
        key = await self.store.save(self._new_state(user_id), user_id=user_id)
        self._set_cookie(response, key)
        logger.debug("Session issued for user %s", user_id)
        return key

    async def resolve(self, request: Request, response: Response) -> int:
        key = self.session_key(request)
        if key is None:
            raise UnauthorizedError()
        state = await self.store.load(key)
        if state is None:
            raise UnauthorizedError("Session expired, please log in again.")
        try:
            user_id = int(state[SESSION_USER_ID])
        except (KeyError, ValueError):
            logger.warning("Session %s... has no usable user id", key[:8])
            raise UnauthorizedError() from None

        if self._due_for_renewal(state):
            try:
                await self.store.update(key, self._new_state(user_id))
            except SessionNotFoundError:
                # logged out concurrently
                raise UnauthorizedError("Session expired, please log in again.") from None
            self._set_cookie(response, key)
        return user_id

    async def logout(self, request: Request, response: Response) -> None:
        key = self.session_key(request)
        if key is not None:
            await self.store.delete(key)
        self._clear_cookie(response)

    async def logout_everywhere(self, response: Response, user_id: int) -> None:
        """Revoke every session of the account, on any device."""
        await self.store.delete_for_user(user_id)
        self._clear_cookie(response)

    def _new_state(self, user_id: int) -> SessionState:
        renew_at = datetime.now(timezone.utc) + self.renew_after
        return {SESSION_USER_ID: str(user_id), SESSION_RENEW_AFTER: renew_at.isoformat()}

    def _due_for_renewal(self, state: SessionState) -> bool:
        raw = state.get(SESSION_RENEW_AFTER)
        if not raw:
            return True
        try:
            renew_at = datetime.fromisoformat(raw)
        except ValueError:
            return True
        return datetime.now(timezone.utc) >= renew_at

    def _set_cookie(self, response: Response, key: str) -> None:
        response.set_cookie(
            self.cookie_name,
            self._signer.dumps(key),
            max_age=self.ttl,
            httponly=True,
            samesite="strict",
            secure=self.secure,
        )

    def _clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name, httponly=True, samesite="strict", secure=self.secure
        )


def get_session_binding(request: Request) -> SessionBinding:
    return request.app.state.session_binding


async def current_user_id(
    request: Request,
    response: Response,
    binding: SessionBinding = Depends(get_session_binding),
) -> int:
    """Dependency for protected routes: the id of the logged-in user, else 401."""
    return await binding.resolve(request, response)
