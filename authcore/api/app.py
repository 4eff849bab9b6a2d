import logging
from contextlib import asynccontextmanager
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel

from authcore.app.services.auth_context import AuthContext
from .error import ClientError, ServerError
from .utils.cookies import DEVICE_ID_COOKIE, clear_auth_cookies, set_device_cookie

logger = logging.getLogger(__name__)

MAX_DEVICE_ID_LENGTH = 64


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    response = JSONResponse(status_code=exc.status_code, content={"error": error_dict})
    if exc.clear_cookies:
        clear_auth_cookies(response, request.app.state.config)
    return response


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}: {exc.base_error.message}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_storage_error(request: Request, exc: SQLAlchemyError):
    logger.error("Storage error", exc_info=exc)
    error_dict = {"code": "STORAGE_ERROR", "message": "Internal server error"}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


def create_app(ApplicationConfig, auth_context: Optional[AuthContext] = None) -> FastAPI:
    """
    Build the API.

    Raises:
        ConfigurationError: TOTP key material is missing or malformed
    """
    if auth_context is None:
        auth_context = AuthContext.from_config(ApplicationConfig)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ApplicationConfig.AUTO_CREATE_TABLES:
            from authcore.depends import engine

            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        yield

    app = FastAPI(title="authcore", version="0.1.0", lifespan=lifespan)
    app.state.config = ApplicationConfig
    app.state.auth_context = auth_context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def ensure_device_id(request: Request, call_next):
        device_id = request.cookies.get(DEVICE_ID_COOKIE)
        is_new = not device_id or len(device_id) > MAX_DEVICE_ID_LENGTH
        if is_new:
            device_id = uuid4().hex
        request.state.device_id = device_id

        response = await call_next(request)
        if is_new:
            set_device_cookie(response, ApplicationConfig, device_id)
        return response

    from authcore.api.routes import auth, user

    app.include_router(auth.router, prefix=ApplicationConfig.API_PREFIX, tags=["Authentication"])
    app.include_router(user.router, prefix=ApplicationConfig.API_PREFIX, tags=["User"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(SQLAlchemyError, handle_storage_error)

    return app
