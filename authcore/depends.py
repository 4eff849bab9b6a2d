from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from authcore.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authcore.api.error import to_http_error
from authcore.api.utils.cookies import ACCESS_COOKIE
from authcore.app.services.auth_context import AuthContext
from authcore.app.services.session_rotation import DeviceInfo, SessionInfo
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth import AuthenticateAccessUseCase, AuthenticatedIdentity
from authcore.app.use_cases.users import SessionManagementUseCase
from authcore.domain.errors import Error, ErrorCode

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

MAX_DEVICE_NAME_LENGTH = 255


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_config(request: Request):
    return request.app.state.config


def get_auth_context(request: Request) -> AuthContext:
    return request.app.state.auth_context


def get_device_info(request: Request) -> DeviceInfo:
    """Device metadata of the calling client; the id is assigned by middleware"""
    user_agent: Optional[str] = request.headers.get("user-agent")
    return DeviceInfo(
        device_id=request.state.device_id,
        device_name=user_agent[:MAX_DEVICE_NAME_LENGTH] if user_agent else None,
        ip_address=request.client.host if request.client else None,
    )


async def get_current_identity(
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
) -> AuthenticatedIdentity:
    """
    Dependency validating the access cookie against the live session.

    Returns:
        Identity of the caller

    Raises:
        ClientError: 401 for a missing, invalid or stale access token, or a
            session that needs reauth
    """
    use_case = AuthenticateAccessUseCase(uow, context)
    result = await use_case.execute(request.cookies.get(ACCESS_COOKIE))

    if result.is_err():
        error = result.err_value
        if error.code == ErrorCode.SESSION_NOT_FOUND:
            error = Error(ErrorCode.INVALID_ACCESS_TOKEN, "Invalid access token")
        raise to_http_error(error)

    return result.ok_value


async def get_current_session(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
) -> SessionInfo:
    """The caller's live session"""
    result = await SessionManagementUseCase(uow, context).get_current_session(identity)
    if result.is_err():
        raise to_http_error(result.err_value)
    return result.ok_value


# Router-level marker gating every route behind a validated access token
RequireLogin = Depends(get_current_identity)
