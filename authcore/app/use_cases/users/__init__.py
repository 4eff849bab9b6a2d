"""
User Management Use Cases

Self-service account and session management.
"""

from .session_management_use_case import SessionManagementUseCase, did_logout
from .change_password_use_case import (
    ChangePasswordCommand,
    ChangePasswordResponse,
    ChangePasswordUseCase,
)

__all__ = [
    "SessionManagementUseCase",
    "ChangePasswordUseCase",
    "ChangePasswordCommand",
    "ChangePasswordResponse",
    "did_logout",
]
