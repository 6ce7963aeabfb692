"""Error types shared by the repositories, services and HTTP layer.

`ExternalError` subclasses carry a message that is safe to show to the
client. `InternalError` keeps its diagnostic detail for the server log and
is rendered to the client with a fixed generic message.
"""

from __future__ import annotations

from enum import Enum


class Operation(str, Enum):
    """CRUD operation names used in permission messages."""

    CREATE = "create"
    RECEIVE = "receive"
    UPDATE = "update"
    DELETE = "delete"


class AppError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ExternalError(AppError):
    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)


class BadRequestError(ExternalError):
    def __init__(self, message: str = "Not all required fields provided.") -> None:
        super().__init__(400, message)


class UnauthorizedError(ExternalError):
    def __init__(self, message: str = "Authentication required.") -> None:
        super().__init__(401, message)


class InvalidCredentialsError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("Invalid email or password provided. Try again.")


class ForbiddenError(ExternalError):
    def __init__(self, operation: Operation, relation: str) -> None:
        self.operation = operation
        self.relation = relation
        super().__init__(
            403, f"You have no permission to {operation.value} this {relation.lower()}"
        )


class NotFoundError(ExternalError):
    def __init__(self, relation: str) -> None:
        self.relation = relation
        super().__init__(404, f"{relation} was not found")


class ConflictError(ExternalError):
    def __init__(self, message: str) -> None:
        super().__init__(409, message)


class InternalError(AppError):
    """Unexpected failure. `detail` goes to the log, never to the client."""

    status_code = 500
    message = "Something went wrong on our end, we're working on it."

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__()

    def __str__(self) -> str:
        return self.detail


class SessionDeserializationError(InternalError):
    pass


class SessionNotFoundError(Exception):
    """Raised by a session store when updating a key it does not hold."""

    def __init__(self, key: str) -> None:
        # only a prefix, the full key is a credential
        super().__init__(f"session {key[:8]}... does not exist")
