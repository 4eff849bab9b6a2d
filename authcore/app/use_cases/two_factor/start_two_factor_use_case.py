"""
Start Two-Factor Use Case

Begins (or restarts) TOTP enrollment by storing a pending encrypted secret.
"""

import logging

from result import Err, Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import check_password
from authcore.app.services.two_factor import base32_secret, generate_totp_secret, qr_png_base64
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth.dtos import AuthenticatedIdentity
from authcore.domain.errors import Error, ErrorCode
from .dtos import StartTwoFactorResponse

logger = logging.getLogger(__name__)


def already_enabled() -> Error:
    return Error(ErrorCode.TWO_FACTOR_ALREADY_ENABLED, "Two-factor authentication is already enabled")


class StartTwoFactorUseCase:
    """
    Business Rules:
    - Password required
    - Rejected once 2FA is enabled; a pending enrollment may be restarted
    - The stored secret is only written while 2FA is still disabled
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(
        self, identity: AuthenticatedIdentity, password: str
    ) -> Result[StartTwoFactorResponse, Error]:
        async with self.uow:
            checked = await check_password(self.uow, self.context, identity.user_id, password)
            if checked.is_err():
                return checked
            user = checked.ok_value

            if user.totp_enabled:
                return Err(already_enabled())

            engine = self.context.two_factor(self.uow)
            secret = generate_totp_secret()
            encrypted = engine.encrypt_secret(user.id, secret)
            if encrypted.is_err():
                return encrypted

            url = engine.build_totp(user, secret).provisioning_uri()

            rows = await self.uow.users.start_totp(user.id, encrypted.ok_value)
            if rows != 1:
                return Err(already_enabled())

            await self.uow.commit()
            logger.info(f"User {identity.user_id} started 2FA enrollment")

            return Ok(
                StartTwoFactorResponse(
                    base32_secret=base32_secret(secret),
                    url=url,
                    qr_base64=qr_png_base64(url),
                )
            )
