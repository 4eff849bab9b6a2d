"""
Use Cases

Organized into domain folders:
- auth/: Registration, login and the session lifecycle
- users/: Self-service session and password management
- two_factor/: TOTP enrollment and removal
"""

from .auth import (
    AuthenticateAccessUseCase,
    LoginUseCase,
    ReauthUseCase,
    RefreshSessionUseCase,
    RegisterUseCase,
)
from .users import ChangePasswordUseCase, SessionManagementUseCase
from .two_factor import (
    ConfirmTwoFactorUseCase,
    DisableTwoFactorUseCase,
    StartTwoFactorUseCase,
)

__all__ = [
    # Auth
    "RegisterUseCase",
    "LoginUseCase",
    "RefreshSessionUseCase",
    "ReauthUseCase",
    "AuthenticateAccessUseCase",
    # Users
    "SessionManagementUseCase",
    "ChangePasswordUseCase",
    # Two-factor
    "StartTwoFactorUseCase",
    "ConfirmTwoFactorUseCase",
    "DisableTwoFactorUseCase",
]
