import pytest
from httpx import ASGITransport, AsyncClient

from lentos.config import Settings
from lentos.database import create_engine, create_sessionmaker
from lentos.main import create_app
from lentos.migrations import create_schema
from lentos.repositories.memory import InMemoryTodoRepository, InMemoryUserRepository
from lentos.repositories.todo_repo import TodoRepository
from lentos.repositories.user_repo import UserRepository
from lentos.schemas.user import UserRecordCreate
from lentos.security.passwords import PasswordHasher


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        SESSION_SECRET_KEY="test-secret",
        SESSION_COOKIE_SECURE=False,
        SEED_GUEST_USER=False,
    )


@pytest.fixture
async def engine(settings):
    engine = create_engine(settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessions(engine):
    return create_sessionmaker(engine)


@pytest.fixture(scope="session")
def hasher():
    return PasswordHasher()


@pytest.fixture(params=["sql", "memory"])
def user_repo(request, sessions):
    if request.param == "sql":
        return UserRepository(sessions)
    return InMemoryUserRepository()


@pytest.fixture
async def owners(user_repo):
    """Two stored users; their ids are valid todo owners."""
    ids = []
    for name in ("alice", "bob"):
        await user_repo.create(
            UserRecordCreate(name=name, email=f"{name}@example.com", password_hash="not-a-real-hash")
        )
        ids.append((await user_repo.get_by_email(f"{name}@example.com")).id)
    return ids


@pytest.fixture
def todo_repo(user_repo, sessions):
    # follows the user_repo parametrization so SQL todos get SQL owners
    if isinstance(user_repo, UserRepository):
        return TodoRepository(sessions)
    return InMemoryTodoRepository()


@pytest.fixture
async def initialized_app(settings):
    app = create_app(settings)
    await create_schema(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest.fixture
async def client(initialized_app):
    async with AsyncClient(transport=ASGITransport(app=initialized_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def other_client(initialized_app):
    async with AsyncClient(transport=ASGITransport(app=initialized_app), base_url="http://test") as ac:
        yield ac


async def register_and_login(client, name, email, password="s3cret-pw"):
    res = await client.post("/users/register", json={"name": name, "email": email, "password": password})
    assert res.status_code == 200, res.text
    res = await client.post("/users/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()


@pytest.fixture
def signup():
    return register_and_login
