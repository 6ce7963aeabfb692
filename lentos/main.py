import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lentos.auth import SessionBinding
from lentos.config import Settings
from lentos.database import create_engine, create_sessionmaker
from lentos.errors import AppError, BadRequestError, InternalError
from lentos.logging import configure_logging
from lentos.migrations import run_migrations
from lentos.repositories.session_repo import SessionRepository
from lentos.repositories.todo_repo import TodoRepository
from lentos.repositories.user_repo import UserRepository
from lentos.routers import todo_router, user_router
from lentos.security.passwords import PasswordHasher
from lentos.services.todo_service import TodoService
from lentos.services.user_service import UserService

API_VERSION = "v0.1.0"

logger = logging.getLogger(__name__)


def _error_body(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_code, "message": message})


async def handle_app_error(request: Request, exc: AppError):
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail, exc_info=exc)
    return _error_body(exc.status_code, exc.message)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    logger.debug("Rejected request body for %s: %s", request.url.path, exc.errors())
    return _error_body(400, BadRequestError().message)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_body(500, InternalError.message)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    engine = create_engine(settings)
    sessions = create_sessionmaker(engine)
    hasher = PasswordHasher()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await run_migrations(engine, sessions, settings, hasher)
        yield
        await engine.dispose()

    app = FastAPI(title="Lentos", version=API_VERSION, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.sessions = sessions
    app.state.user_service = UserService(UserRepository(sessions), hasher)
    app.state.todo_service = TodoService(TodoRepository(sessions))
    session_store = SessionRepository(sessions, ttl=timedelta(seconds=settings.SESSION_TTL_SECONDS))
    app.state.session_binding = SessionBinding(session_store, settings)

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(user_router.router, prefix="/users", tags=["Users"])
    app.include_router(todo_router.router, prefix="/todos", tags=["Todos"])

    # Root health
    @app.get("/")
    async def read_root():
        return {"status": "ok", "version": API_VERSION}

    return app


def build_app() -> FastAPI:
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    return create_app(settings)


app = build_app()
