"""Schema creation and seed data, run once before the app serves requests."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from lentos.config import Settings
from lentos.database import Base
from lentos.errors import ConflictError
from lentos.models import session as _session_model  # noqa: F401  (registers table)
from lentos.models import todo as _todo_model  # noqa: F401
from lentos.models import user as _user_model  # noqa: F401
from lentos.repositories.session_repo import SessionRepository
from lentos.repositories.user_repo import UserRepository
from lentos.schemas.user import UserRecordCreate
from lentos.security.passwords import PasswordHasher

logger = logging.getLogger(__name__)

GUEST_NAME = "Guest"
GUEST_EMAIL = "guest@guest.com"
GUEST_PASSWORD = "Guest"


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_guest_user(users: UserRepository, hasher: PasswordHasher) -> bool:
    """Insert the guest account if it is missing. Returns True when inserted."""
    try:
        await users.create(
            UserRecordCreate(
                name=GUEST_NAME,
                email=GUEST_EMAIL,
                password_hash=hasher.hash(GUEST_PASSWORD),
            )
        )
    except ConflictError:
        return False
    logger.info("Seeded guest user %s", GUEST_EMAIL)
    return True


async def run_migrations(
    engine: AsyncEngine,
    sessions: async_sessionmaker[AsyncSession],
    settings: Settings,
    hasher: PasswordHasher,
) -> None:
    await create_schema(engine)
    await SessionRepository(sessions).purge_expired()
    if settings.SEED_GUEST_USER:
        await seed_guest_user(UserRepository(sessions), hasher)
    logger.info("Database schema is up to date")
