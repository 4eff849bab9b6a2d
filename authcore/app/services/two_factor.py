"""
Two-Factor Engine

TOTP (RFC 6238: SHA-1, 6 digits, 30 second step) with encrypted secrets at
rest, plus single-use recovery codes stored as SHA-256 hashes.
"""

import base64
import hashlib
import logging
import secrets
from io import BytesIO
from typing import List, Optional

import pyotp
import qrcode
from result import Err, Ok, Result

from authcore.app.services import session_token
from authcore.app.services.totp_cipher import TotpCipherError, TotpSecretCipher
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import utcnow
from authcore.domain.entities import User
from authcore.domain.errors import Error, ErrorCode, two_factor_internal

logger = logging.getLogger(__name__)

TOTP_SECRET_BYTES = 20
TOTP_DIGITS = 6
TOTP_INTERVAL = 30
TOTP_VALID_WINDOW = 1
RECOVERY_CODE_BYTES = 16


def generate_totp_secret() -> bytes:
    return secrets.token_bytes(TOTP_SECRET_BYTES)


def base32_secret(secret: bytes) -> str:
    return base64.b32encode(secret).decode("ascii")


def generate_recovery_codes(count: int) -> List[str]:
    return [session_token.encode(secrets.token_bytes(RECOVERY_CODE_BYTES)) for _ in range(count)]


def hash_recovery_code(code: str) -> bytes:
    return hashlib.sha256(code.encode("utf-8")).digest()


def looks_like_totp_code(code: str) -> bool:
    """6 to 8 ASCII digits"""
    return 6 <= len(code) <= 8 and code.isascii() and code.isdigit()


def qr_png_base64(text: str) -> str:
    img = qrcode.make(text)
    buf = BytesIO()
    img.save(buf, "PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


class TwoFactorEngine:
    """
    Per-request view of the two-factor machinery.

    Business Rules:
    - Without a configured cipher every operation touching a secret fails with
      TWO_FACTOR_INTERNAL
    - A recovery code is consumed with a conditional update, so it can be used
      at most once even under concurrent logins
    - Consumption is flushed but not committed; the calling use case commits
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cipher: Optional[TotpSecretCipher],
        issuer: str = "Transcendence",
        recovery_code_count: int = 10,
    ):
        self.uow = uow
        self.cipher = cipher
        self.issuer = issuer
        self.recovery_code_count = recovery_code_count

    def encrypt_secret(self, user_id: int, secret: bytes) -> Result[str, Error]:
        if self.cipher is None:
            logger.error("Two-factor operation attempted without a TOTP encryption key")
            return Err(two_factor_internal("encryption key not configured"))
        return Ok(self.cipher.encrypt(user_id, secret))

    def decrypt_secret(self, user_id: int, secret_enc: str) -> Result[bytes, Error]:
        if self.cipher is None:
            logger.error("Two-factor operation attempted without a TOTP encryption key")
            return Err(two_factor_internal("encryption key not configured"))
        try:
            return Ok(self.cipher.decrypt(user_id, secret_enc))
        except TotpCipherError as exc:
            logger.error(f"Failed to decrypt TOTP secret for user {user_id}: {exc}")
            return Err(two_factor_internal("secret decryption failed"))

    def build_totp(self, user: User, secret: bytes) -> pyotp.TOTP:
        return pyotp.TOTP(
            base32_secret(secret),
            digits=TOTP_DIGITS,
            interval=TOTP_INTERVAL,
            name=user.email,
            issuer=self.issuer,
        )

    def verify_code(self, user: User, secret: bytes, code: str) -> bool:
        return self.build_totp(user, secret).verify(code, valid_window=TOTP_VALID_WINDOW)

    def check_totp(self, user: User, code: str) -> Result[bool, Error]:
        """Verify a code against the user's stored (encrypted) secret"""
        if not user.totp_secret_enc:
            logger.error(f"User {user.id} has 2FA enabled but no stored secret")
            return Err(two_factor_internal("missing secret"))

        decrypted = self.decrypt_secret(user.id, user.totp_secret_enc)
        if decrypted.is_err():
            return decrypted
        return Ok(self.verify_code(user, decrypted.ok_value, code))

    async def consume_recovery_code(self, user_id: int, code: str) -> bool:
        return await self.uow.recovery_codes.consume(user_id, hash_recovery_code(code), utcnow())

    async def require_if_enabled(self, user: User, mfa_code: Optional[str]) -> Result[None, Error]:
        """
        Enforce a second factor when the user has 2FA enabled.

        Codes shaped like TOTP codes are tried as TOTP first and as recovery
        codes second; anything else in the opposite order.
        """
        if not user.totp_enabled:
            return Ok(None)

        code = (mfa_code or "").strip()
        if not code:
            return Err(Error(ErrorCode.TWO_FACTOR_REQUIRED, "Two-factor code required"))

        # Each shape falls back to the other kind of code
        if looks_like_totp_code(code):
            totp_ok = self.check_totp(user, code)
            if totp_ok.is_err():
                return totp_ok
            if totp_ok.ok_value or await self.consume_recovery_code(user.id, code):
                return Ok(None)
        else:
            if await self.consume_recovery_code(user.id, code):
                logger.info(f"Recovery code used by user {user.id}")
                return Ok(None)
            totp_ok = self.check_totp(user, code)
            if totp_ok.is_err():
                return totp_ok
            if totp_ok.ok_value:
                return Ok(None)

        return Err(Error(ErrorCode.TWO_FACTOR_INVALID, "Invalid two-factor code"))
