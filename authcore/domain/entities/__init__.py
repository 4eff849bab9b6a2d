"""
Auth Core Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

from .user import User
from .session import Session
from .two_fa_recovery_code import TwoFaRecoveryCode

__all__ = [
    "User",
    "Session",
    "TwoFaRecoveryCode",
]
