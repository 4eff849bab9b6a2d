from abc import ABC, abstractmethod

from authcore.app.repositories.recovery_code_repository import IRecoveryCodeRepository
from authcore.app.repositories.session_repository import ISessionRepository
from authcore.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """Abstract UnitOfWork - defines repository access and transaction management"""

    # Repository properties (initialized in __aenter__)
    users: IUserRepository
    sessions: ISessionRepository
    recovery_codes: IRecoveryCodeRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
