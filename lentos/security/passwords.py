from __future__ import annotations

import logging

import argon2
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

from lentos.errors import BadRequestError, InternalError

logger = logging.getLogger(__name__)


class PasswordHasher:
    """argon2id hashing with self-describing (PHC) encoded output.

    `verify` separates a wrong password (returns False) from a stored hash
    that cannot be parsed (raises InternalError). Login collapses both into
    the same response for the client.
    """

    def __init__(self, hasher: argon2.PasswordHasher | None = None) -> None:
        self._ph = hasher or argon2.PasswordHasher()

    def hash(self, plaintext: str) -> str:
        if not plaintext:
            raise BadRequestError("Password must not be empty.")
        try:
            return self._ph.hash(plaintext)
        except HashingError as e:
            raise InternalError(f"Failed to hash password. Details: {e}") from e

    def verify(self, plaintext: str, encoded_hash: str) -> bool:
        try:
            return self._ph.verify(encoded_hash, plaintext)
        except VerifyMismatchError:
            return False
        except InvalidHashError as e:
            raise InternalError(f"Failed to parse password hash from database. Details: {e}") from e
        except VerificationError as e:
            raise InternalError(f"Password verification failed. Details: {e}") from e

    def needs_rehash(self, encoded_hash: str) -> bool:
        try:
            return self._ph.check_needs_rehash(encoded_hash)
        except (InvalidHashError, ValueError):
            logger.warning("Stored password hash could not be inspected for rehash")
            return False
