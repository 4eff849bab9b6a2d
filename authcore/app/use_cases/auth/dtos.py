"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for the auth domain. Responses are built
inside the unit of work, so they never carry ORM objects across it.
"""

from datetime import datetime

from pydantic import BaseModel

from authcore.app.services.session_rotation import DeviceInfo, SessionInfo
from authcore.domain.entities import User


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(BaseModel):
    """Validated registration intent"""

    email: str
    password: str
    nickname: str


# ============================================================================
# Response DTOs
# ============================================================================


class UserInfo(BaseModel):
    """Public account details"""

    id: int
    email: str
    nickname: str
    totp_enabled: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserInfo":
        return cls(
            id=user.id,
            email=user.email,
            nickname=user.nickname,
            totp_enabled=user.totp_enabled,
            created_at=user.created_at,
        )


class UserSessionInfo(BaseModel):
    user: UserInfo
    session: SessionInfo


class LoginResponse(BaseModel):
    """Result of register, login and reauth; tokens go into cookies"""

    user_session: UserSessionInfo
    session_token: str
    access_token: str


class RefreshResponse(BaseModel):
    """Result of a refresh-only rotation"""

    session: SessionInfo
    session_token: str
    access_token: str


class AuthenticatedIdentity(BaseModel):
    """Who is calling, as established by a validated access token"""

    user_id: int
    session_id: int
    device_id: str


__all__ = [
    "AuthenticatedIdentity",
    "DeviceInfo",
    "LoginResponse",
    "RefreshResponse",
    "RegisterCommand",
    "SessionInfo",
    "UserInfo",
    "UserSessionInfo",
]
