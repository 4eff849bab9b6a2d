"""
Session Management Use Case

Lets a logged in user inspect and end their own sessions.
"""

import logging
from typing import Iterable, List, Optional

from result import Err, Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import check_password_and_mfa_if_enabled
from authcore.app.services.session_rotation import SessionInfo
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth.dtos import AuthenticatedIdentity, UserInfo, UserSessionInfo
from authcore.domain.errors import Error, ErrorCode

logger = logging.getLogger(__name__)


def did_logout() -> Error:
    return Error(ErrorCode.DID_LOGOUT, "Current session was logged out")


def _session_not_found() -> Error:
    return Error(ErrorCode.SESSION_NOT_FOUND, "Session not found")


class SessionManagementUseCase:
    """
    Use case for self-service session management.

    Business Rules:
    - Only the caller's own sessions are ever touched
    - Listing and ending other sessions require the password and, when
      enabled, a second factor
    - Logging out sets last_authenticated_at to the epoch; the session row
      stays and can be revived by reauth
    - Deleting removes rows for good
    - An action that ends the current session reports DID_LOGOUT
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def get_me(self, identity: AuthenticatedIdentity) -> Result[UserSessionInfo, Error]:
        async with self.uow:
            user = await self.uow.users.get_by_id(identity.user_id)
            session = await self.uow.sessions.get_by_id(identity.session_id)
            if user is None or session is None:
                return Err(_session_not_found())

            return Ok(
                UserSessionInfo(
                    user=UserInfo.from_user(user),
                    session=SessionInfo.from_session(session, self.context.policy),
                )
            )

    async def get_current_session(self, identity: AuthenticatedIdentity) -> Result[SessionInfo, Error]:
        async with self.uow:
            session = await self.uow.sessions.get_by_id(identity.session_id)
            if session is None:
                return Err(_session_not_found())
            return Ok(SessionInfo.from_session(session, self.context.policy))

    async def list_sessions(
        self, identity: AuthenticatedIdentity, password: str, mfa_code: Optional[str]
    ) -> Result[List[SessionInfo], Error]:
        async with self.uow:
            checked = await check_password_and_mfa_if_enabled(
                self.uow, self.context, identity.user_id, password, mfa_code
            )
            if checked.is_err():
                return checked

            sessions = await self.uow.sessions.get_by_user_id(identity.user_id)
            infos = [SessionInfo.from_session(s, self.context.policy) for s in sessions]
            # Persists a consumed recovery code
            await self.uow.commit()
            return Ok(infos)

    async def logout(self, identity: AuthenticatedIdentity) -> Result[int, Error]:
        async with self.uow:
            count = await self.uow.sessions.deauthenticate(identity.user_id, [identity.session_id])
            await self.uow.commit()
            logger.info(f"User {identity.user_id} logged out session {identity.session_id}")
            return Ok(count)

    async def logout_sessions(
        self,
        identity: AuthenticatedIdentity,
        password: str,
        mfa_code: Optional[str],
        session_ids: Iterable[int],
    ) -> Result[int, Error]:
        """
        Returns:
            Result with the number of logged out sessions, or DID_LOGOUT when
            the current session was among them
        """
        ids = set(session_ids)
        async with self.uow:
            checked = await check_password_and_mfa_if_enabled(
                self.uow, self.context, identity.user_id, password, mfa_code
            )
            if checked.is_err():
                return checked

            count = await self.uow.sessions.deauthenticate(identity.user_id, ids)
            await self.uow.commit()

        if identity.session_id in ids:
            return Err(did_logout())
        return Ok(count)

    async def logout_other_sessions(
        self, identity: AuthenticatedIdentity, password: str, mfa_code: Optional[str]
    ) -> Result[int, Error]:
        async with self.uow:
            checked = await check_password_and_mfa_if_enabled(
                self.uow, self.context, identity.user_id, password, mfa_code
            )
            if checked.is_err():
                return checked

            count = await self.uow.sessions.deauthenticate_all_except(
                identity.user_id, identity.session_id
            )
            await self.uow.commit()
            return Ok(count)

    async def delete_sessions(
        self,
        identity: AuthenticatedIdentity,
        password: str,
        mfa_code: Optional[str],
        session_ids: Iterable[int],
    ) -> Result[int, Error]:
        """
        Returns:
            Result with the number of deleted sessions, or DID_LOGOUT when
            the current session was among them
        """
        ids = set(session_ids)
        async with self.uow:
            checked = await check_password_and_mfa_if_enabled(
                self.uow, self.context, identity.user_id, password, mfa_code
            )
            if checked.is_err():
                return checked

            count = await self.uow.sessions.delete_for_user(identity.user_id, ids)
            await self.uow.commit()

        if identity.session_id in ids:
            return Err(did_logout())
        return Ok(count)
