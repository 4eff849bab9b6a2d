from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from authcore.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address (case-insensitive)"""
        pass

    @abstractmethod
    async def get_by_nickname(self, nickname: str) -> Optional[User]:
        """Get user by nickname (case-insensitive)"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update_password_hash(self, user_id: int, password_hash: str) -> int:
        """Replace the password hash. Returns count."""
        pass

    @abstractmethod
    async def start_totp(self, user_id: int, totp_secret_enc: str) -> int:
        """Store a pending TOTP secret while 2FA is still disabled. Returns count."""
        pass

    @abstractmethod
    async def enable_totp(
        self, user_id: int, expected_secret_enc: str, confirmed_at: datetime
    ) -> int:
        """Enable 2FA if the pending secret is unchanged. Returns count."""
        pass

    @abstractmethod
    async def disable_totp(self, user_id: int, expected_secret_enc: str) -> int:
        """Clear 2FA state if the enabled secret is unchanged. Returns count."""
        pass
