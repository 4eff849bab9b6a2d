from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authcore.app.repositories.user_repository import IUserRepository
from authcore.domain.entities import User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address"""
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_nickname(self, nickname: str) -> Optional[User]:
        """Get user by nickname"""
        stmt = select(User).where(func.lower(User.nickname) == nickname.lower())
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update_password_hash(self, user_id: int, password_hash: str) -> int:
        """Replace the stored password hash"""
        stmt = update(User).where(User.id == user_id).values(password_hash=password_hash)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def start_totp(self, user_id: int, totp_secret_enc: str) -> int:
        """
        Store a pending TOTP secret.

        Not filtered on an existing pending secret, so an unfinished
        enrollment can be restarted. Filtered on totp_enabled so a confirmed
        enrollment is never overwritten.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.totp_enabled == False)  # noqa: E712
            .values(totp_secret_enc=totp_secret_enc, totp_confirmed_at=None)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def enable_totp(
        self, user_id: int, expected_secret_enc: str, confirmed_at: datetime
    ) -> int:
        """Enable 2FA only if the validated pending secret is still stored"""
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.totp_enabled == False,  # noqa: E712
                User.totp_secret_enc == expected_secret_enc,
            )
            .values(totp_enabled=True, totp_confirmed_at=confirmed_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def disable_totp(self, user_id: int, expected_secret_enc: str) -> int:
        """Clear all 2FA state only if the enabled secret is unchanged"""
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.totp_enabled == True,  # noqa: E712
                User.totp_secret_enc == expected_secret_enc,
            )
            .values(totp_enabled=False, totp_secret_enc=None, totp_confirmed_at=None)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
