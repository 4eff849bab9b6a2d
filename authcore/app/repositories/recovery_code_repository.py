from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from authcore.domain.entities import TwoFaRecoveryCode


class IRecoveryCodeRepository(ABC):
    """Two-factor recovery code repository interface - application layer"""

    @abstractmethod
    async def replace_for_user(
        self, user_id: int, code_hashes: List[bytes], created_at: datetime
    ) -> List[TwoFaRecoveryCode]:
        """Delete the user's codes and insert a new batch"""
        pass

    @abstractmethod
    async def consume(self, user_id: int, code_hash: bytes, used_at: datetime) -> bool:
        """Mark an unused code as used. True only if exactly one row changed."""
        pass

    @abstractmethod
    async def delete_for_user(self, user_id: int) -> int:
        """Delete all codes of a user. Returns count."""
        pass
