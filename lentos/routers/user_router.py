from fastapi import APIRouter, Depends, Request, Response

from lentos.auth import SessionBinding, current_user_id, get_session_binding
from lentos.schemas.user import UserCreate, UserLogin, UserOut, UserUpdate
from lentos.services.user_service import UserService

router = APIRouter()


def get_service(request: Request) -> UserService:
    return request.app.state.user_service


@router.post("/register")
async def register(user_in: UserCreate, service: UserService = Depends(get_service)):
    await service.register(user_in)
    return {"status": "ok"}


@router.post("/login", response_model=UserOut)
async def login(
    credentials: UserLogin,
    request: Request,
    response: Response,
    service: UserService = Depends(get_service),
    binding: SessionBinding = Depends(get_session_binding),
):
    user = await service.authenticate(credentials.email, credentials.password)
    await binding.login(request, response, user.id)
    return user


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    binding: SessionBinding = Depends(get_session_binding),
):
    await binding.logout(request, response)
    return {"status": "ok"}


@router.get("", response_model=UserOut)
async def get_user(
    user_id: int = Depends(current_user_id),
    service: UserService = Depends(get_service),
):
    return await service.get_user(user_id)


@router.put("")
async def update_user(
    user_in: UserUpdate,
    user_id: int = Depends(current_user_id),
    service: UserService = Depends(get_service),
):
    await service.update_user(user_in, user_id)
    return {"status": "ok"}


@router.delete("")
async def delete_user(
    response: Response,
    user_id: int = Depends(current_user_id),
    service: UserService = Depends(get_service),
    binding: SessionBinding = Depends(get_session_binding),
):
    await service.delete_user(user_id)
    await binding.logout_everywhere(response, user_id)
    return {"status": "ok"}
