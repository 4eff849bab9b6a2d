from datetime import datetime
from typing import List

from sqlalchemy import delete, update
from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from authcore.app.repositories.recovery_code_repository import IRecoveryCodeRepository
from authcore.domain.entities import TwoFaRecoveryCode


class RecoveryCodeRepository(IRecoveryCodeRepository):
    """Recovery code repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def replace_for_user(
        self, user_id: int, code_hashes: List[bytes], created_at: datetime
    ) -> List[TwoFaRecoveryCode]:
        """Delete the user's previous batch and insert the new one"""
        await self.delete_for_user(user_id)
        if not code_hashes:
            return []

        codes = [
            TwoFaRecoveryCode(user_id=user_id, code_hash=code_hash, created_at=created_at)
            for code_hash in code_hashes
        ]
        self.session.add_all(codes)
        await self.session.flush()
        return codes

    async def consume(self, user_id: int, code_hash: bytes, used_at: datetime) -> bool:
        """Atomically mark a code as used; a code can only be consumed once"""
        stmt = (
            update(TwoFaRecoveryCode)
            .where(
                TwoFaRecoveryCode.user_id == user_id,
                TwoFaRecoveryCode.code_hash == code_hash,
                col(TwoFaRecoveryCode.used_at).is_(None),
            )
            .values(used_at=used_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def delete_for_user(self, user_id: int) -> int:
        """Delete all codes of a user"""
        stmt = delete(TwoFaRecoveryCode).where(TwoFaRecoveryCode.user_id == user_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
