"""
Confirm Two-Factor Use Case

Completes TOTP enrollment and issues a fresh batch of recovery codes.
"""

import logging

from result import Err, Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import check_password
from authcore.app.services.two_factor import generate_recovery_codes, hash_recovery_code
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth.dtos import AuthenticatedIdentity
from authcore.domain.base import utcnow
from authcore.domain.errors import Error, ErrorCode
from .dtos import ConfirmTwoFactorResponse
from .start_two_factor_use_case import already_enabled

logger = logging.getLogger(__name__)


class ConfirmTwoFactorUseCase:
    """
    Business Rules:
    - Password and a TOTP code for the pending secret are required
    - Enabling is conditional on the exact pending ciphertext that was
      validated, so a concurrent restart or confirmation yields
      TWO_FACTOR_RACED
    - Enabling, dropping old recovery codes and storing the new batch happen
      in one transaction
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(
        self, identity: AuthenticatedIdentity, password: str, code: str
    ) -> Result[ConfirmTwoFactorResponse, Error]:
        async with self.uow:
            checked = await check_password(self.uow, self.context, identity.user_id, password)
            if checked.is_err():
                return checked
            user = checked.ok_value

            if user.totp_enabled:
                return Err(already_enabled())
            if not user.totp_secret_enc:
                return Err(Error(ErrorCode.TWO_FACTOR_NOT_STARTED, "Two-factor enrollment not started"))

            pending_secret_enc = user.totp_secret_enc
            engine = self.context.two_factor(self.uow)
            decrypted = engine.decrypt_secret(user.id, pending_secret_enc)
            if decrypted.is_err():
                return decrypted

            if not engine.verify_code(user, decrypted.ok_value, code.strip()):
                return Err(Error(ErrorCode.TWO_FACTOR_INVALID, "Invalid two-factor code"))

            now = utcnow()
            rows = await self.uow.users.enable_totp(user.id, pending_secret_enc, now)
            if rows != 1:
                logger.warning(f"2FA confirmation raced for user {user.id}")
                return Err(Error(ErrorCode.TWO_FACTOR_RACED, "Two-factor state changed concurrently"))

            codes = generate_recovery_codes(self.context.recovery_code_count)
            await self.uow.recovery_codes.replace_for_user(
                user.id, [hash_recovery_code(c) for c in codes], now
            )
            await self.uow.commit()
            logger.info(f"User {identity.user_id} enabled 2FA")

            return Ok(ConfirmTwoFactorResponse(recovery_codes=codes))
