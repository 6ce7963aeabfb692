import logging

from email_validator import EmailNotValidError, validate_email
from starlette.concurrency import run_in_threadpool

from lentos.errors import InternalError, InvalidCredentialsError, NotFoundError, UnauthorizedError
from lentos.models.user import User
from lentos.repositories.interfaces import UserRepository
from lentos.schemas.user import UserCreate, UserRecordCreate, UserUpdate
from lentos.security.passwords import PasswordHasher

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """Normalize like `EmailStr` does on registration; malformed input is returned as is."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return email


class UserService:
    """Account operations. Passwords are hashed here, the repository only stores.

    argon2 is CPU bound, so hashing and verifying run in the threadpool.
    """

    def __init__(self, repo: UserRepository, hasher: PasswordHasher):
        self.repo = repo
        self.hasher = hasher
        self._dummy_hash: str | None = None

    async def register(self, user_in: UserCreate) -> None:
        record = UserRecordCreate(
            name=user_in.name,
            email=user_in.email,
            password_hash=await run_in_threadpool(self.hasher.hash, user_in.password),
        )
        await self.repo.create(record)
        logger.info("Registered new user")

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user owning these credentials.

        Unknown email, wrong password and an unreadable stored hash all raise
        the same InvalidCredentialsError.
        """
        try:
            user = await self.repo.get_by_email(normalize_email(email))
        except NotFoundError:
            # keep the response time close to the wrong-password path
            await self._burn_verify(password)
            logger.info("Login rejected: unknown email")
            raise InvalidCredentialsError() from None

        try:
            matches = await run_in_threadpool(self.hasher.verify, password, user.password)
        except InternalError as e:
            logger.error("Login failed for user %s: %s", user.id, e.detail)
            raise InvalidCredentialsError() from e
        if not matches:
            logger.info("Login rejected: wrong password for user %s", user.id)
            raise InvalidCredentialsError()

        if self.hasher.needs_rehash(user.password):
            new_hash = await run_in_threadpool(self.hasher.hash, password)
            await self.repo.update(UserUpdate(password=new_hash), user.id)
            logger.info("Upgraded password hash for user %s", user.id)
        return user

    async def get_user(self, user_id: int) -> User:
        try:
            return await self.repo.get_by_id(user_id)
        except NotFoundError:
            # session outlived its account
            raise UnauthorizedError() from None

    async def update_user(self, user_in: UserUpdate, user_id: int) -> None:
        if user_in.password is not None:
            new_hash = await run_in_threadpool(self.hasher.hash, user_in.password)
            user_in = user_in.model_copy(update={"password": new_hash})
        await self.repo.update(user_in, user_id)

    async def delete_user(self, user_id: int) -> None:
        await self.repo.delete(user_id)
        logger.info("Deleted user %s", user_id)

    async def _burn_verify(self, password: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = await run_in_threadpool(self.hasher.hash, "lentos-dummy-password")
        await run_in_threadpool(self.hasher.verify, password, self._dummy_hash)
