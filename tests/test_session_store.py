from datetime import timedelta

import pytest

from lentos.errors import SessionDeserializationError, SessionNotFoundError
from lentos.models.session import Session
from lentos.repositories.memory import InMemorySessionStore
from lentos.repositories.session_repo import KEY_ALPHABET, KEY_LENGTH, SessionRepository


@pytest.fixture(params=["sql", "memory"])
def make_store(request, sessions):
    def factory(ttl=timedelta(hours=1)):
        if request.param == "sql":
            return SessionRepository(sessions, ttl=ttl)
        return InMemorySessionStore(ttl=ttl)

    return factory


def test_generated_keys_are_64_alphanumerics(make_store):
    store = make_store()
    keys = {store.generate_key() for _ in range(50)}
    assert len(keys) == 50
    for key in keys:
        assert len(key) == KEY_LENGTH
        assert set(key) <= set(KEY_ALPHABET)


async def test_save_then_load_round_trip(make_store):
    store = make_store()
    state = {"user_id": "42", "theme": "dark"}
    key = await store.save(state)
    assert await store.load(key) == state


async def test_delete_then_load_is_not_found(make_store):
    store = make_store()
    key = await store.save({"user_id": "1"})
    await store.delete(key)
    assert await store.load(key) is None
    # deleting twice is fine
    await store.delete(key)


async def test_load_unknown_key(make_store):
    assert await make_store().load("x" * KEY_LENGTH) is None


async def test_update_overwrites_state(make_store):
    store = make_store()
    key = await store.save({"user_id": "1"})
    assert await store.update(key, {"user_id": "2"}) == key
    assert await store.load(key) == {"user_id": "2"}


async def test_update_unknown_key_raises(make_store):
    with pytest.raises(SessionNotFoundError):
        await make_store().update("y" * KEY_LENGTH, {"user_id": "1"})


async def test_expired_session_is_not_loaded(make_store):
    store = make_store(ttl=timedelta(seconds=-1))
    key = await store.save({"user_id": "1"})
    assert await store.load(key) is None


async def test_purge_expired_keeps_live_sessions(sessions):
    live = SessionRepository(sessions, ttl=timedelta(hours=1))
    dead = SessionRepository(sessions, ttl=timedelta(seconds=-1))
    keep = await live.save({"user_id": "1"})
    await dead.save({"user_id": "2"})
    await dead.save({"user_id": "3"})

    assert await live.purge_expired() == 2
    assert await live.load(keep) == {"user_id": "1"}


async def test_corrupt_state_is_a_distinct_error(sessions):
    store = SessionRepository(sessions)
    key = store.generate_key()
    async with sessions.begin() as db:
        db.add(Session(key=key, state=["not", "a", "mapping"]))

    with pytest.raises(SessionDeserializationError):
        await store.load(key)


async def test_delete_for_user_only_touches_that_user(make_store):
    store = make_store()
    first = await store.save({"user_id": "1"}, user_id=1)
    second = await store.save({"user_id": "1"}, user_id=1)
    other = await store.save({"user_id": "2"}, user_id=2)

    assert await store.delete_for_user(1) == 2
    assert await store.load(first) is None
    assert await store.load(second) is None
    assert await store.load(other) == {"user_id": "2"}
    assert await store.delete_for_user(1) == 0
