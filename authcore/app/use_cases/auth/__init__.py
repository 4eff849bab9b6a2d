"""
Authentication Use Cases

Account registration, login and the session lifecycle.
"""

from .register_use_case import RegisterUseCase
from .login_use_case import LoginUseCase
from .refresh_session_use_case import RefreshSessionUseCase
from .reauth_use_case import ReauthUseCase
from .authenticate_access_use_case import AuthenticateAccessUseCase
from .session_loader import load_session_from_token
from .dtos import (
    AuthenticatedIdentity,
    DeviceInfo,
    LoginResponse,
    RefreshResponse,
    RegisterCommand,
    SessionInfo,
    UserInfo,
    UserSessionInfo,
)

__all__ = [
    # Use Cases
    "RegisterUseCase",
    "LoginUseCase",
    "RefreshSessionUseCase",
    "ReauthUseCase",
    "AuthenticateAccessUseCase",
    "load_session_from_token",
    # DTOs - Commands
    "RegisterCommand",
    "DeviceInfo",
    # DTOs - Responses
    "LoginResponse",
    "RefreshResponse",
    "UserSessionInfo",
    "SessionInfo",
    "UserInfo",
    "AuthenticatedIdentity",
]
