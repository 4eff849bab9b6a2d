from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import delete, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from authcore.app.repositories.session_repository import ISessionRepository
from authcore.domain.base import EPOCH
from authcore.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: int) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_token_hash(self, token_hash: bytes) -> Optional[Session]:
        """Get session by the hash of its current token"""
        stmt = select(Session).where(Session.token_hash == token_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_user_and_device(self, user_id: int, device_id: str) -> Optional[Session]:
        """Get the session a user holds on a given device"""
        stmt = (
            select(Session)
            .where(Session.user_id == user_id, Session.device_id == device_id)
            .order_by(col(Session.last_used_at).desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def get_by_user_id(self, user_id: int) -> List[Session]:
        """Get all sessions for a user"""
        stmt = (
            select(Session)
            .where(Session.user_id == user_id)
            .order_by(col(Session.last_used_at).desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def rotate(
        self,
        session_id: int,
        expected_token_hash: bytes,
        token_hash: bytes,
        device_id: str,
        device_name: Optional[str],
        ip_address: Optional[str],
        now: datetime,
        reauthenticated: bool,
    ) -> Optional[Session]:
        """
        Compare-and-swap rotation guarded by the previous token hash.

        A zero row count means the row was rotated (or deleted) by a concurrent
        request; the caller must not hand out the new token in that case.
        """
        values = {
            "token_hash": token_hash,
            "device_id": device_id,
            "device_name": device_name,
            "ip_address": ip_address,
            "refreshed_at": now,
            "last_used_at": now,
        }
        if reauthenticated:
            values["last_authenticated_at"] = now

        stmt = (
            update(Session)
            .where(Session.id == session_id, Session.token_hash == expected_token_hash)
            .values(**values)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None

        await self.session.flush()
        reload_stmt = (
            select(Session)
            .where(Session.id == session_id)
            .execution_options(populate_existing=True)
        )
        reloaded = await self.session.exec(reload_stmt)
        return reloaded.one()

    async def deauthenticate(self, user_id: int, session_ids: Iterable[int]) -> int:
        """Force reauth on the given sessions of a user"""
        ids = list(session_ids)
        if not ids:
            return 0
        stmt = (
            update(Session)
            .where(Session.user_id == user_id, col(Session.id).in_(ids))
            .values(last_authenticated_at=EPOCH)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def deauthenticate_all_except(self, user_id: int, session_id: int) -> int:
        """Force reauth on all sessions of a user except the specified one"""
        stmt = (
            update(Session)
            .where(Session.user_id == user_id, Session.id != session_id)
            .values(last_authenticated_at=EPOCH)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_for_user(self, user_id: int, session_ids: Iterable[int]) -> int:
        """Delete the given sessions, scoped to their owner"""
        ids = list(session_ids)
        if not ids:
            return 0
        stmt = delete(Session).where(Session.user_id == user_id, col(Session.id).in_(ids))
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def get_ids_by_recent_use(self, user_id: int) -> List[int]:
        """Session ids ordered by last_used_at, created_at (newest first)"""
        stmt = (
            select(Session.id)
            .where(Session.user_id == user_id)
            .order_by(col(Session.last_used_at).desc(), col(Session.created_at).desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def delete_by_ids(self, session_ids: List[int]) -> int:
        """Delete sessions by ID"""
        if not session_ids:
            return 0
        stmt = delete(Session).where(col(Session.id).in_(session_ids))
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
