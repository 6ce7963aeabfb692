from lentos.repositories.interfaces import TodoRepository
from lentos.schemas.todo import TodoCreate, TodoUpdate


class TodoService:
    def __init__(self, repo: TodoRepository):
        self.repo = repo

    async def create_todo(self, todo_in: TodoCreate, owner_id: int):
        return await self.repo.create(todo_in, owner_id)

    async def list_todos(self, owner_id: int):
        return await self.repo.list(owner_id)

    async def get_todo(self, todo_id: int, requester_id: int):
        return await self.repo.get(todo_id, requester_id)

    async def update_todo(self, todo_in: TodoUpdate, requester_id: int):
        return await self.repo.update(todo_in, requester_id)

    async def delete_todo(self, todo_id: int, requester_id: int):
        await self.repo.delete(todo_id, requester_id)
