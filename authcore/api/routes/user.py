from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from authcore.api.error import to_http_error
from authcore.api.utils.cookies import clear_auth_cookies
from authcore.app.services.auth_context import AuthContext
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth import AuthenticatedIdentity, SessionInfo, UserSessionInfo
from authcore.app.use_cases.two_factor import (
    ConfirmTwoFactorResponse,
    ConfirmTwoFactorUseCase,
    DisableTwoFactorResponse,
    DisableTwoFactorUseCase,
    StartTwoFactorResponse,
    StartTwoFactorUseCase,
)
from authcore.app.use_cases.users import (
    ChangePasswordCommand,
    ChangePasswordResponse,
    ChangePasswordUseCase,
    SessionManagementUseCase,
)
from authcore.depends import (
    RequireLogin,
    get_auth_context,
    get_config,
    get_current_identity,
    get_current_session,
    get_unit_of_work,
)

router = APIRouter(prefix="/user", tags=["User"], dependencies=[RequireLogin])


class PasswordRequest(BaseModel):
    password: str = Field(..., description="Current password")
    mfa_code: Optional[str] = Field(None, description="TOTP or recovery code")


class SessionsRequest(PasswordRequest):
    session_ids: List[int] = Field(..., description="Sessions to act on")


class SessionCountResponse(BaseModel):
    count: int


# ============================================================================
# Current user and session
# ============================================================================


@router.get("/me", response_model=UserSessionInfo)
async def me(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """Current user together with the current session"""
    result = await SessionManagementUseCase(uow, context).get_me(identity)
    if result.is_err():
        raise to_http_error(result.err_value)
    return result.ok_value


@router.get("/session", response_model=SessionInfo)
async def current_session(session: SessionInfo = Depends(get_current_session)):
    return session


# ============================================================================
# Session management
# ============================================================================


@router.post("/sessions", response_model=List[SessionInfo])
async def list_sessions(
    request: PasswordRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """
    All sessions of the current user.

    Raises:
        - 401 Unauthorized: Invalid credentials or 2FA code
    """
    result = await SessionManagementUseCase(uow, context).list_sessions(
        identity, request.password, request.mfa_code
    )
    if result.is_err():
        raise to_http_error(result.err_value)
    return result.ok_value


@router.delete("/sessions", response_model=SessionCountResponse)
async def delete_sessions(
    request: SessionsRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """
    Delete sessions of the current user.

    Raises:
        - 401 Unauthorized: Invalid credentials or 2FA code; DID_LOGOUT (with
          auth cookies cleared) when the current session was deleted
    """
    result = await SessionManagementUseCase(uow, context).delete_sessions(
        identity, request.password, request.mfa_code, request.session_ids
    )
    if result.is_err():
        raise to_http_error(result.err_value)
    return SessionCountResponse(count=result.ok_value)


@router.post("/logout", response_model=SessionCountResponse)
async def logout(
    response: Response,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
    config=Depends(get_config),
):
    """Log out the current session and clear the auth cookies"""
    result = await SessionManagementUseCase(uow, context).logout(identity)
    if result.is_err():
        raise to_http_error(result.err_value)

    clear_auth_cookies(response, config)
    return SessionCountResponse(count=result.ok_value)


@router.post("/logout-sessions", response_model=SessionCountResponse)
async def logout_sessions(
    request: SessionsRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """
    Log out sessions of the current user; they can be revived by reauth.

    Raises:
        - 401 Unauthorized: Invalid credentials or 2FA code; DID_LOGOUT (with
          auth cookies cleared) when the current session was included
    """
    result = await SessionManagementUseCase(uow, context).logout_sessions(
        identity, request.password, request.mfa_code, request.session_ids
    )
    if result.is_err():
        raise to_http_error(result.err_value)
    return SessionCountResponse(count=result.ok_value)


@router.post("/logout-other-sessions", response_model=SessionCountResponse)
async def logout_other_sessions(
    request: PasswordRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    result = await SessionManagementUseCase(uow, context).logout_other_sessions(
        identity, request.password, request.mfa_code
    )
    if result.is_err():
        raise to_http_error(result.err_value)
    return SessionCountResponse(count=result.ok_value)


class ChangePasswordRequest(PasswordRequest):
    new_password: str = Field(..., min_length=8, max_length=128, description="New password")
    keep_other_sessions_logged_in: bool = Field(False, description="Skip logging out other sessions")


@router.post("/change-password", response_model=ChangePasswordResponse)
async def change_password(
    request: ChangePasswordRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """
    Change the password. Other sessions are logged out unless
    keep_other_sessions_logged_in is set.
    """
    command = ChangePasswordCommand(
        password=request.password,
        mfa_code=request.mfa_code,
        new_password=request.new_password,
        keep_other_sessions_logged_in=request.keep_other_sessions_logged_in,
    )
    result = await ChangePasswordUseCase(uow, context).execute(identity, command)
    if result.is_err():
        raise to_http_error(result.err_value)
    return result.ok_value


# ============================================================================
# Two-factor authentication
# ============================================================================


class StartTwoFactorRequest(BaseModel):
    password: str = Field(..., description="Current password")


class ConfirmTwoFactorRequest(BaseModel):
    password: str = Field(..., description="Current password")
    code: str = Field(..., description="TOTP code from the authenticator app")


class DisableTwoFactorRequest(BaseModel):
    password: str = Field(..., description="Current password")
    mfa_code: str = Field(..., description="TOTP or recovery code")


@router.post("/2fa/start", response_model=StartTwoFactorResponse)
async def start_two_factor(
    request: StartTwoFactorRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """
    Begin 2FA enrollment. The secret and QR code are returned only here.

    Raises:
        - 401 Unauthorized: Invalid credentials
        - 409 Conflict: 2FA already enabled
    """
    result = await StartTwoFactorUseCase(uow, context).execute(identity, request.password)
    if result.is_err():
        raise to_http_error(result.err_value)
    return result.ok_value


@router.post("/2fa/confirm", response_model=ConfirmTwoFactorResponse)
async def confirm_two_factor(
    request: ConfirmTwoFactorRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """
    Enable 2FA. Recovery codes are returned only here.

    Raises:
        - 400 Bad Request: Enrollment not started
        - 401 Unauthorized: Invalid credentials or code
        - 409 Conflict: Already enabled, or raced by a concurrent request
    """
    result = await ConfirmTwoFactorUseCase(uow, context).execute(
        identity, request.password, request.code
    )
    if result.is_err():
        raise to_http_error(result.err_value)
    return result.ok_value


@router.post("/2fa/disable", response_model=DisableTwoFactorResponse)
async def disable_two_factor(
    request: DisableTwoFactorRequest,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    uow: UnitOfWork = Depends(get_unit_of_work),
    context: AuthContext = Depends(get_auth_context),
):
    """
    Raises:
        - 400 Bad Request: 2FA not enabled
        - 401 Unauthorized: Invalid credentials or code
        - 409 Conflict: Raced by a concurrent request
    """
    result = await DisableTwoFactorUseCase(uow, context).execute(
        identity, request.password, request.mfa_code
    )
    if result.is_err():
        raise to_http_error(result.err_value)
    return result.ok_value
