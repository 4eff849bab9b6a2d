"""
Disable Two-Factor Use Case
"""

import logging
from typing import Optional

from result import Err, Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import check_password
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth.dtos import AuthenticatedIdentity
from authcore.domain.errors import Error, ErrorCode
from .dtos import DisableTwoFactorResponse

logger = logging.getLogger(__name__)


class DisableTwoFactorUseCase:
    """
    Business Rules:
    - Password and a second factor (TOTP or recovery code) are required
    - Clearing the TOTP fields is conditional on the secret that was loaded
    - All recovery codes are deleted in the same transaction
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(
        self, identity: AuthenticatedIdentity, password: str, mfa_code: Optional[str]
    ) -> Result[DisableTwoFactorResponse, Error]:
        async with self.uow:
            checked = await check_password(self.uow, self.context, identity.user_id, password)
            if checked.is_err():
                return checked
            user = checked.ok_value

            if not user.totp_enabled:
                return Err(Error(ErrorCode.TWO_FACTOR_NOT_ENABLED, "Two-factor authentication is not enabled"))

            loaded_secret_enc = user.totp_secret_enc
            mfa = await self.context.two_factor(self.uow).require_if_enabled(user, mfa_code)
            if mfa.is_err():
                return mfa

            rows = await self.uow.users.disable_totp(user.id, loaded_secret_enc)
            if rows != 1:
                logger.warning(f"2FA disable raced for user {user.id}")
                return Err(Error(ErrorCode.TWO_FACTOR_RACED, "Two-factor state changed concurrently"))

            await self.uow.recovery_codes.delete_for_user(user.id)
            await self.uow.commit()
            logger.info(f"User {identity.user_id} disabled 2FA")

            return Ok(DisableTwoFactorResponse(totp_enabled=False))
