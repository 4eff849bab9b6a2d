from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, EmailStr, Field

from authcore.api.error import to_http_error
from authcore.api.utils.cookies import SESSION_COOKIE, set_auth_cookies
from authcore.app.services.auth_context import AuthContext
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth import (
    DeviceInfo,
    LoginUseCase,
    ReauthUseCase,
    RefreshSessionUseCase,
    RegisterCommand,
    RegisterUseCase,
    SessionInfo,
    UserSessionInfo,
)
from authcore.depends import get_auth_context, get_config, get_device_info, get_unit_of_work

router = APIRouter(prefix="/auth", tags=["Authentication"])

NICKNAME_PATTERN = r"^[A-Za-z0-9_-]{3,16}$"


class RegisterRequest(BaseModel):
    """
    Register HTTP request payload

    Validates incoming HTTP request before converting to RegisterCommand.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password (8-128 chars)")
    nickname: str = Field(
        ..., pattern=NICKNAME_PATTERN, description="3-16 letters, digits, '_' or '-'"
    )


@router.post(
    "/register", status_code=status.HTTP_201_CREATED, response_model=UserSessionInfo
)
async def register(
    request: RegisterRequest,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
    device: DeviceInfo = Depends(get_device_info),
    config=Depends(get_config),
):
    """
    Create an account and log it in on the calling device.

    Raises:
        - 409 Conflict: Email or nickname already in use
        - 422 Unprocessable Entity: Invalid input (handled by FastAPI)
    """
    command = RegisterCommand(
        email=request.email, password=request.password, nickname=request.nickname
    )
    result = await RegisterUseCase(uow, context).execute(command, device)

    if result.is_err():
        raise to_http_error(result.err_value)

    login = result.ok_value
    set_auth_cookies(response, config, login.session_token, login.access_token)
    return login.user_session


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    mfa_code: Optional[str] = Field(None, description="TOTP or recovery code")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=UserSessionInfo)
async def login(
    request: LoginRequest,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
    device: DeviceInfo = Depends(get_device_info),
    config=Depends(get_config),
):
    """
    Log in with email and password (plus a second factor when enabled).

    Raises:
        - 401 Unauthorized: Invalid credentials, 2FA code required or invalid
    """
    use_case = LoginUseCase(uow, context)
    result = await use_case.execute(request.email, request.password, request.mfa_code, device)

    if result.is_err():
        raise to_http_error(result.err_value)

    login = result.ok_value
    set_auth_cookies(response, config, login.session_token, login.access_token)
    return login.user_session


class ReauthRequest(BaseModel):
    password: str = Field(..., description="User password")
    mfa_code: Optional[str] = Field(None, description="TOTP or recovery code")


@router.post(
    "/session-management/reauth",
    status_code=status.HTTP_200_OK,
    response_model=UserSessionInfo,
)
async def reauth(
    request: ReauthRequest,
    http_request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
    device: DeviceInfo = Depends(get_device_info),
    config=Depends(get_config),
):
    """
    Re-prove credentials for the session in the session cookie.

    Reachable even when the session needs reauth or was logged out.

    Raises:
        - 401 Unauthorized: Missing or invalid session, invalid credentials,
          session rotated concurrently
    """
    use_case = ReauthUseCase(uow, context)
    result = await use_case.execute(
        http_request.cookies.get(SESSION_COOKIE), request.password, request.mfa_code, device
    )

    if result.is_err():
        raise to_http_error(result.err_value)

    login = result.ok_value
    set_auth_cookies(response, config, login.session_token, login.access_token)
    return login.user_session


@router.post(
    "/session-management/refresh-jwt",
    status_code=status.HTTP_200_OK,
    response_model=SessionInfo,
)
async def refresh_jwt(
    http_request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
    device: DeviceInfo = Depends(get_device_info),
    config=Depends(get_config),
):
    """
    Rotate the session token and mint a new access token.

    Raises:
        - 401 Unauthorized: Missing or invalid session, reauth needed,
          stale session token
    """
    use_case = RefreshSessionUseCase(uow, context)
    result = await use_case.execute(http_request.cookies.get(SESSION_COOKIE), device)

    if result.is_err():
        raise to_http_error(result.err_value)

    refreshed = result.ok_value
    set_auth_cookies(response, config, refreshed.session_token, refreshed.access_token)
    return refreshed.session
