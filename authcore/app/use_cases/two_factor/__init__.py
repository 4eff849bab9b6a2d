"""
Two-Factor Use Cases

TOTP enrollment, confirmation and removal.
"""

from .start_two_factor_use_case import StartTwoFactorUseCase
from .confirm_two_factor_use_case import ConfirmTwoFactorUseCase
from .disable_two_factor_use_case import DisableTwoFactorUseCase
from .dtos import ConfirmTwoFactorResponse, DisableTwoFactorResponse, StartTwoFactorResponse

__all__ = [
    "StartTwoFactorUseCase",
    "ConfirmTwoFactorUseCase",
    "DisableTwoFactorUseCase",
    "StartTwoFactorResponse",
    "ConfirmTwoFactorResponse",
    "DisableTwoFactorResponse",
]
