"""
Reauth Use Case

Re-proves credentials on an existing session, resetting its forced expiry.
"""

from typing import Optional

from result import Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import check_password_and_mfa_if_enabled
from authcore.app.services.session_rotation import DeviceInfo, SessionRotationEngine
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.errors import Error
from .dtos import LoginResponse, UserInfo, UserSessionInfo
from .session_loader import load_session_from_token


class ReauthUseCase:
    """
    Business Rules:
    - Works on sessions past their reauth deadlines, including logged out ones
    - Password and, when enabled, a second factor are required
    - Rotation advances last_authenticated_at
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(
        self,
        raw_token: Optional[str],
        password: str,
        mfa_code: Optional[str],
        device: DeviceInfo,
    ) -> Result[LoginResponse, Error]:
        async with self.uow:
            loaded = await load_session_from_token(
                self.uow, self.context.policy, raw_token, enforce_reauth=False
            )
            if loaded.is_err():
                return loaded
            session = loaded.ok_value

            checked = await check_password_and_mfa_if_enabled(
                self.uow, self.context, session.user_id, password, mfa_code
            )
            if checked.is_err():
                return checked
            user_info = UserInfo.from_user(checked.ok_value)

            rotated = await SessionRotationEngine(self.uow, self.context).rotate(
                session, device, reauthenticated=True
            )
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
