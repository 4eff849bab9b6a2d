"""
Login Use Case

Verifies credentials (and the second factor when enabled) and hands out a
session for the calling device.
"""

from typing import Optional

from result import Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import get_user_by_credentials
from authcore.app.services.session_rotation import DeviceInfo, SessionRotationEngine
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.errors import Error
from .dtos import LoginResponse, UserInfo, UserSessionInfo


class LoginUseCase:
    """
    Use case for user login.

    Business Rules:
    - Constant-time password verification, unknown emails included
    - Second factor required when the user has 2FA enabled
    - A device keeps one session: an existing session for (user, device) is
      rotated as a reauth, otherwise a new session is created
    - Reauth deadlines are not checked, login proves credentials itself
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(
        self, email: str, password: str, mfa_code: Optional[str], device: DeviceInfo
    ) -> Result[LoginResponse, Error]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password
            mfa_code: TOTP or recovery code, if any
            device: Calling device

        Returns:
            Result with LoginResponse, or INVALID_CREDENTIALS,
            TWO_FACTOR_REQUIRED, TWO_FACTOR_INVALID, SESSION_MISMATCH
        """
        async with self.uow:
            checked = await get_user_by_credentials(self.uow, self.context, email, password)
            if checked.is_err():
                return checked
            user = checked.ok_value

            mfa = await self.context.two_factor(self.uow).require_if_enabled(user, mfa_code)
            if mfa.is_err():
                return mfa

            user_info = UserInfo.from_user(user)
            engine = SessionRotationEngine(self.uow, self.context)

            existing = await self.uow.sessions.get_by_user_and_device(user.id, device.device_id)
            if existing is None:
                issued = await engine.create(user.id, device)
            else:
                rotated = await engine.rotate(existing, device, reauthenticated=True)
                if rotated.is_err():
                    return rotated
                issued = rotated.ok_value

            return Ok(
                LoginResponse(
                    user_session=UserSessionInfo(user=user_info, session=issued.info),
                    session_token=issued.session_token,
                    access_token=issued.access_token,
                )
            )
