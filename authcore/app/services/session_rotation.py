"""
Session Rotation Engine

Creates refresh sessions and rotates their tokens. Rotation is a
compare-and-swap on the token hash the caller loaded, so two requests racing
with the same refresh token can never both succeed.
"""

import logging
from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel
from result import Err, Ok, Result
from sqlalchemy.exc import SQLAlchemyError

from authcore.app.services import session_token
from authcore.app.services.auth_context import AuthContext
from authcore.app.services.session_policy import SessionPolicy
from authcore.app.services.session_pruning import prune_excess_sessions
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import utcnow
from authcore.domain.entities import Session
from authcore.domain.errors import Error, session_mismatch

logger = logging.getLogger(__name__)


class DeviceInfo(BaseModel):
    """Client device metadata recorded on each session write"""

    device_id: str
    device_name: Optional[str] = None
    ip_address: Optional[str] = None


class SessionInfo(BaseModel):
    """Session details exposed to clients"""

    session_id: int
    user_id: int
    device_name: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime
    last_used_at: datetime
    jwt_valid_until: datetime
    logged_in_until: datetime

    @classmethod
    def from_session(cls, session: Session, policy: SessionPolicy) -> "SessionInfo":
        return cls(
            session_id=session.id,
            user_id=session.user_id,
            device_name=session.device_name,
            ip_address=session.ip_address,
            created_at=session.created_at,
            last_used_at=session.last_used_at,
            jwt_valid_until=policy.jwt_valid_until(session),
            logged_in_until=policy.logged_in_until(session),
        )


class IssuedSession(NamedTuple):
    """A session write that produced new client credentials"""

    info: SessionInfo
    session_token: str
    access_token: str


class SessionRotationEngine:
    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    def _issue(self, session: Session, token_hash: bytes, token: bytes) -> IssuedSession:
        return IssuedSession(
            info=SessionInfo.from_session(session, self.context.policy),
            session_token=session_token.encode(token),
            access_token=self.context.access_tokens.issue(session, token_hash),
        )

    async def create(self, user_id: int, device: DeviceInfo) -> IssuedSession:
        """
        Insert a fresh session and commit it, then prune the user's excess
        sessions in a separate transaction. Pruning failures are logged only.
        """
        now = utcnow()
        token = session_token.generate_token()
        token_hash = session_token.hash_token(token)

        session = Session(
            user_id=user_id,
            token_hash=token_hash,
            device_id=device.device_id,
            device_name=device.device_name,
            ip_address=device.ip_address,
            created_at=now,
            refreshed_at=now,
            last_used_at=now,
            last_authenticated_at=now,
        )
        session = await self.uow.sessions.create(session)
        await self.uow.commit()

        issued = self._issue(session, token_hash, token)
        logger.info(f"Created session {session.id} for user {user_id}")

        try:
            pruned = await prune_excess_sessions(
                self.uow, user_id, session.id, self.context.policy.max_sessions
            )
            await self.uow.commit()
            if pruned:
                logger.info(f"Pruned {pruned} excess sessions for user {user_id}")
        except SQLAlchemyError:
            logger.exception(f"Failed to prune sessions for user {user_id}")
            await self.uow.rollback()

        return issued

    async def rotate(
        self, session: Session, device: DeviceInfo, reauthenticated: bool
    ) -> Result[IssuedSession, Error]:
        """
        Replace the session's token, guarded by the hash it was loaded with.

        Args:
            session: Session as loaded by the caller in this unit of work
            device: Device metadata of the current request
            reauthenticated: Whether credentials were proven, which resets the
                forced reauth timer

        Returns:
            Result with the new credentials, or SESSION_MISMATCH if another
            request rotated or removed the session first
        """
        expected_hash = session.token_hash
        session_id = session.id
        now = utcnow()
        token = session_token.generate_token()
        token_hash = session_token.hash_token(token)

        rotated = await self.uow.sessions.rotate(
            session_id,
            expected_hash,
            token_hash,
            device.device_id,
            device.device_name,
            device.ip_address,
            now,
            reauthenticated,
        )
        if rotated is None:
            logger.warning(f"Session {session_id} was rotated concurrently")
            return Err(session_mismatch())

        await self.uow.commit()
        return Ok(self._issue(rotated, token_hash, token))
