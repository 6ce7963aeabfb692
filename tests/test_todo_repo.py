import pytest

from lentos.errors import ForbiddenError, NotFoundError, Operation, UnauthorizedError
from lentos.repositories.todo_repo import TodoRepository
from lentos.schemas.todo import TodoCreate, TodoUpdate


async def test_create_then_list_round_trip(todo_repo, owners):
    alice, _ = owners
    created = await todo_repo.create(TodoCreate(title="Buy milk", description="2%"), alice)
    assert created.id is not None

    todos = await todo_repo.list(alice)
    assert len(todos) == 1
    todo = todos[0]
    assert (todo.title, todo.description, todo.is_done, todo.owner) == ("Buy milk", "2%", False, alice)
    assert todo.created_at is not None


async def test_list_is_owner_scoped_and_ordered(todo_repo, owners):
    alice, bob = owners
    first = await todo_repo.create(TodoCreate(title="one"), alice)
    await todo_repo.create(TodoCreate(title="bob's"), bob)
    second = await todo_repo.create(TodoCreate(title="two"), alice)

    todos = await todo_repo.list(alice)
    assert [t.id for t in todos] == [first.id, second.id]
    assert await todo_repo.list(9999) == []


async def test_get_checks_owner(todo_repo, owners):
    alice, bob = owners
    todo = await todo_repo.create(TodoCreate(title="secret"), alice)

    assert (await todo_repo.get(todo.id, alice)).title == "secret"
    with pytest.raises(ForbiddenError) as exc:
        await todo_repo.get(todo.id, bob)
    assert exc.value.operation is Operation.RECEIVE
    with pytest.raises(NotFoundError):
        await todo_repo.get(todo.id + 100, alice)


async def test_partial_update(todo_repo, owners):
    alice, _ = owners
    todo = await todo_repo.create(TodoCreate(title="draft", description="keep me"), alice)

    updated = await todo_repo.update(TodoUpdate(id=todo.id, is_done=True), alice)

    assert updated.is_done is True
    assert updated.title == "draft"
    assert updated.description == "keep me"
    assert updated.updated_at >= todo.updated_at


async def test_empty_update_changes_nothing_but_timestamp(todo_repo, owners):
    alice, _ = owners
    todo = await todo_repo.create(TodoCreate(title="same", description="same"), alice)

    updated = await todo_repo.update(TodoUpdate(id=todo.id), alice)

    for field in ("id", "title", "description", "is_done", "owner", "created_at"):
        assert getattr(updated, field) == getattr(todo, field), field
    assert updated.updated_at >= todo.updated_at


async def test_update_other_users_todo_is_forbidden(todo_repo, owners):
    alice, bob = owners
    todo = await todo_repo.create(TodoCreate(title="mine"), alice)

    with pytest.raises(ForbiddenError) as exc:
        await todo_repo.update(TodoUpdate(id=todo.id, title="hijacked"), bob)
    assert exc.value.operation is Operation.UPDATE
    assert (await todo_repo.get(todo.id, alice)).title == "mine"


async def test_update_missing_todo_is_also_forbidden(todo_repo, owners):
    alice, _ = owners
    with pytest.raises(ForbiddenError):
        await todo_repo.update(TodoUpdate(id=4242, title="x"), alice)


async def test_delete_other_users_todo_leaves_it_intact(todo_repo, owners):
    alice, bob = owners
    todo = await todo_repo.create(TodoCreate(title="bob's chore"), bob)

    with pytest.raises(ForbiddenError) as exc:
        await todo_repo.delete(todo.id, alice)
    assert exc.value.operation is Operation.DELETE
    assert (await todo_repo.get(todo.id, bob)).title == "bob's chore"

    await todo_repo.delete(todo.id, bob)
    assert await todo_repo.list(bob) == []


async def test_create_for_deleted_owner_is_unauthorized(sessions):
    with pytest.raises(UnauthorizedError):
        await TodoRepository(sessions).create(TodoCreate(title="orphan"), 4242)
