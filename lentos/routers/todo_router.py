from fastapi import APIRouter, Depends, Request

from lentos.auth import current_user_id
from lentos.schemas.todo import TodoCreate, TodoOut, TodoUpdate
from lentos.services.todo_service import TodoService

router = APIRouter()


def get_service(request: Request) -> TodoService:
    return request.app.state.todo_service


@router.post("", response_model=TodoOut)
async def create_todo(
    todo_in: TodoCreate,
    user_id: int = Depends(current_user_id),
    service: TodoService = Depends(get_service),
):
    return await service.create_todo(todo_in, user_id)


@router.get("", response_model=list[TodoOut])
async def list_todos(
    user_id: int = Depends(current_user_id),
    service: TodoService = Depends(get_service),
):
    return await service.list_todos(user_id)


@router.get("/{todo_id}", response_model=TodoOut)
async def get_todo(
    todo_id: int,
    user_id: int = Depends(current_user_id),
    service: TodoService = Depends(get_service),
):
    return await service.get_todo(todo_id, user_id)


@router.put("", response_model=TodoOut)
async def update_todo(
    todo_in: TodoUpdate,
    user_id: int = Depends(current_user_id),
    service: TodoService = Depends(get_service),
):
    return await service.update_todo(todo_in, user_id)


@router.delete("/{todo_id}")
async def delete_todo(
    todo_id: int,
    user_id: int = Depends(current_user_id),
    service: TodoService = Depends(get_service),
):
    await service.delete_todo(todo_id, user_id)
    return {"status": "ok"}
