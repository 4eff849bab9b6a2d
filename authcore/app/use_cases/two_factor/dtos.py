"""
Two-Factor Use Case DTOs
"""

from typing import List

from pydantic import BaseModel


class StartTwoFactorResponse(BaseModel):
    """Enrollment material, shown to the user exactly once"""

    base32_secret: str
    url: str
    qr_base64: str


class ConfirmTwoFactorResponse(BaseModel):
    """Plaintext recovery codes, shown to the user exactly once"""

    recovery_codes: List[str]


class DisableTwoFactorResponse(BaseModel):
    totp_enabled: bool
