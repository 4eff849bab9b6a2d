"""
Refresh Session Use Case

Silent refresh: trades a valid session token for a new session token and a
new access token without asking for credentials.
"""

from typing import Optional

from result import Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.session_rotation import DeviceInfo, SessionRotationEngine
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.errors import Error
from .dtos import RefreshResponse
from .session_loader import load_session_from_token


class RefreshSessionUseCase:
    """
    Business Rules:
    - Session must not be past either reauth deadline
    - Rotation keeps last_authenticated_at unchanged
    - A stale or concurrently rotated token yields SESSION_MISMATCH
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(self, raw_token: Optional[str], device: DeviceInfo) -> Result[RefreshResponse, Error]:
        async with self.uow:
            loaded = await load_session_from_token(
                self.uow, self.context.policy, raw_token, enforce_reauth=True
            )
            if loaded.is_err():
                return loaded

            rotated = await SessionRotationEngine(self.uow, self.context).rotate(
                loaded.ok_value, device, reauthenticated=False
            )
            if rotated.is_err():
                return rotated

            issued = rotated.ok_value
            return Ok(
                RefreshResponse(
                    session=issued.info,
                    session_token=issued.session_token,
                    access_token=issued.access_token,
                )
            )
