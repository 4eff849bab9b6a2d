"""
Authenticate Access Use Case

Validates an access token against the live session row. A signature check
alone is not enough: the token must belong to the session's current token
generation and the session must still be logged in.
"""

from typing import Optional

from result import Err, Ok, Result

from authcore.app.services import session_token
from authcore.app.services.auth_context import AuthContext
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import utcnow
from authcore.domain.errors import Error, ErrorCode, need_reauth, session_mismatch
from .dtos import AuthenticatedIdentity


def _invalid_access_token() -> Error:
    return Error(ErrorCode.INVALID_ACCESS_TOKEN, "Invalid access token")


class AuthenticateAccessUseCase:
    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(self, raw_token: Optional[str]) -> Result[AuthenticatedIdentity, Error]:
        """
        Args:
            raw_token: Access cookie value, None when absent

        Returns:
            Result with the caller identity, or MISSING_ACCESS_TOKEN,
            INVALID_ACCESS_TOKEN, SESSION_NOT_FOUND, SESSION_MISMATCH,
            NEED_REAUTH
        """
        if not raw_token:
            return Err(Error(ErrorCode.MISSING_ACCESS_TOKEN, "Missing access token"))

        claims = self.context.access_tokens.decode(raw_token)
        if claims is None:
            return Err(_invalid_access_token())

        try:
            truncated = session_token.decode_truncated(claims.jti)
        except session_token.TokenDecodeError:
            return Err(_invalid_access_token())

        async with self.uow:
            session = await self.uow.sessions.get_by_id(claims.sid)
            if session is None:
                return Err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))

            if session.user_id != claims.sub or not session_token.matches_truncated(
                session.token_hash, truncated
            ):
                return Err(session_mismatch())

            if self.context.policy.requires_reauth(session, utcnow()):
                return Err(need_reauth())

            return Ok(
                AuthenticatedIdentity(
                    user_id=session.user_id,
                    session_id=session.id,
                    device_id=session.device_id,
                )
            )
