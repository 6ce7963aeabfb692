import argon2
import pytest

from lentos.errors import ConflictError, InvalidCredentialsError, UnauthorizedError
from lentos.repositories.memory import InMemoryUserRepository
from lentos.schemas.user import UserCreate, UserRecordCreate, UserUpdate
from lentos.security.passwords import PasswordHasher
from lentos.services.user_service import UserService


@pytest.fixture
def service(hasher):
    return UserService(InMemoryUserRepository(), hasher)


async def register(service, email="alice@example.com", password="pw-alice"):
    await service.register(UserCreate(name="Alice", email=email, password=password))
    return await service.repo.get_by_email(email)


async def test_register_stores_only_a_hash(service):
    user = await register(service)
    assert user.password != "pw-alice"
    assert user.password.startswith("$argon2id$")
    assert service.hasher.verify("pw-alice", user.password)


async def test_register_duplicate_email(service):
    await register(service)
    with pytest.raises(ConflictError):
        await register(service, password="another")


async def test_authenticate_success(service):
    user = await register(service)
    assert (await service.authenticate("alice@example.com", "pw-alice")).id == user.id


async def test_wrong_password_and_unknown_email_look_the_same(service):
    await register(service)

    with pytest.raises(InvalidCredentialsError) as wrong_pw:
        await service.authenticate("alice@example.com", "nope")
    with pytest.raises(InvalidCredentialsError) as unknown:
        await service.authenticate("ghost@example.com", "pw-alice")

    assert wrong_pw.value.status_code == unknown.value.status_code == 401
    assert wrong_pw.value.message == unknown.value.message


async def test_corrupt_stored_hash_is_reported_as_invalid_credentials(service, caplog):
    await service.repo.create(
        UserRecordCreate(name="Broken", email="broken@example.com", password_hash="corrupted")
    )
    with pytest.raises(InvalidCredentialsError):
        await service.authenticate("broken@example.com", "anything")
    assert "Failed to parse password hash" in caplog.text


async def test_outdated_hash_is_upgraded_on_login(hasher):
    weak = PasswordHasher(argon2.PasswordHasher(time_cost=1, memory_cost=8 * 1024))
    repo = InMemoryUserRepository()
    await repo.create(
        UserRecordCreate(name="Old", email="old@example.com", password_hash=weak.hash("pw"))
    )
    before = (await repo.get_by_email("old@example.com")).password

    await UserService(repo, hasher).authenticate("old@example.com", "pw")

    after = (await repo.get_by_email("old@example.com")).password
    assert after != before
    assert hasher.needs_rehash(after) is False


async def test_update_hashes_new_password(service):
    user = await register(service)
    await service.update_user(UserUpdate(password="new-pw"), user.id)

    stored = (await service.repo.get_by_id(user.id)).password
    assert stored != "new-pw"
    await service.authenticate("alice@example.com", "new-pw")


async def test_get_user_for_deleted_account_is_unauthorized(service):
    user = await register(service)
    await service.delete_user(user.id)
    with pytest.raises(UnauthorizedError):
        await service.get_user(user.id)


async def test_authenticate_normalizes_email_like_registration(service):
    await service.register(UserCreate(name="Bob", email="bob@Example.COM", password="pw-alice"))
    user = await service.repo.get_by_email("bob@example.com")

    assert (await service.authenticate("bob@Example.COM", "pw-alice")).id == user.id
