from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from authcore.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: int) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: bytes) -> Optional[Session]:
        """Get session by the hash of its current token"""
        pass

    @abstractmethod
    async def get_by_user_and_device(self, user_id: int, device_id: str) -> Optional[Session]:
        """Get the session a user holds on a given device"""
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: int) -> List[Session]:
        """Get all sessions for a user"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
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
        Compare-and-swap the session token.

        Applies only if the row still holds expected_token_hash. Returns the
        rotated session, or None when another request rotated it first.
        """
        pass

    @abstractmethod
    async def deauthenticate(self, user_id: int, session_ids: Iterable[int]) -> int:
        """Force reauth on the given sessions of a user. Returns count."""
        pass

    @abstractmethod
    async def deauthenticate_all_except(self, user_id: int, session_id: int) -> int:
        """Force reauth on all sessions of a user except one. Returns count."""
        pass

    @abstractmethod
    async def delete_for_user(self, user_id: int, session_ids: Iterable[int]) -> int:
        """Delete the given sessions of a user. Returns count."""
        pass

    @abstractmethod
    async def get_ids_by_recent_use(self, user_id: int) -> List[int]:
        """Session ids of a user, most recently used first"""
        pass

    @abstractmethod
    async def delete_by_ids(self, session_ids: List[int]) -> int:
        """Delete sessions by ID. Returns count."""
        pass
