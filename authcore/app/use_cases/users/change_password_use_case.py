"""
Change Password Use Case
"""

import logging
from typing import Optional

from pydantic import BaseModel
from result import Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import check_password_and_mfa_if_enabled, hash_password
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth.dtos import AuthenticatedIdentity
from authcore.domain.errors import Error

logger = logging.getLogger(__name__)


class ChangePasswordCommand(BaseModel):
    password: str
    mfa_code: Optional[str] = None
    new_password: str
    keep_other_sessions_logged_in: bool = False


class ChangePasswordResponse(BaseModel):
    logged_out_sessions: int


class ChangePasswordUseCase:
    """
    Business Rules:
    - Current password and, when enabled, a second factor are required
    - Other sessions are logged out unless explicitly kept
    - The current session stays logged in
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(
        self, identity: AuthenticatedIdentity, command: ChangePasswordCommand
    ) -> Result[ChangePasswordResponse, Error]:
        async with self.uow:
            checked = await check_password_and_mfa_if_enabled(
                self.uow, self.context, identity.user_id, command.password, command.mfa_code
            )
            if checked.is_err():
                return checked

            new_hash = await hash_password(self.context, command.new_password)
            await self.uow.users.update_password_hash(identity.user_id, new_hash)

            logged_out = 0
            if not command.keep_other_sessions_logged_in:
                logged_out = await self.uow.sessions.deauthenticate_all_except(
                    identity.user_id, identity.session_id
                )

            await self.uow.commit()
            logger.info(f"User {identity.user_id} changed password, {logged_out} sessions logged out")
            return Ok(ChangePasswordResponse(logged_out_sessions=logged_out))
