"""
Register Use Case

Creates an account and its first session.
"""

import logging

from result import Err, Ok, Result
from sqlalchemy.exc import IntegrityError

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.credentials import hash_password
from authcore.app.services.session_rotation import DeviceInfo, SessionRotationEngine
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import utcnow
from authcore.domain.entities import User
from authcore.domain.errors import Error, ErrorCode
from .dtos import LoginResponse, RegisterCommand, UserInfo, UserSessionInfo

logger = logging.getLogger(__name__)


def _email_taken() -> Error:
    return Error(ErrorCode.EMAIL_ALREADY_EXISTS, "Email already registered")


def _nickname_taken() -> Error:
    return Error(ErrorCode.NICKNAME_ALREADY_EXISTS, "Nickname already taken")


class RegisterUseCase:
    """
    Register Use Case

    Business Logic:
    1. Reject emails and nicknames already in use (case-insensitive)
    2. Hash password with argon2id
    3. Create User and its first Session in one transaction
    4. Return user, session and the new tokens
    """

    def __init__(self, uow: UnitOfWork, context: AuthContext):
        self.uow = uow
        self.context = context

    async def execute(self, command: RegisterCommand, device: DeviceInfo) -> Result[LoginResponse, Error]:
        async with self.uow:
            if await self.uow.users.get_by_email(command.email):
                return Err(_email_taken())
            if await self.uow.users.get_by_nickname(command.nickname):
                return Err(_nickname_taken())

            password_hash = await hash_password(self.context, command.password)
            user = User(
                email=command.email,
                nickname=command.nickname,
                password_hash=password_hash,
                created_at=utcnow(),
            )

            try:
                user = await self.uow.users.create(user)
            except IntegrityError:
                # Lost a race against a concurrent registration
                await self.uow.rollback()
                if await self.uow.users.get_by_email(command.email):
                    return Err(_email_taken())
                return Err(_nickname_taken())

            user_info = UserInfo.from_user(user)
            issued = await SessionRotationEngine(self.uow, self.context).create(user.id, device)
            logger.info(f"Registered user {user_info.id}")

            return Ok(
                LoginResponse(
                    user_session=UserSessionInfo(user=user_info, session=issued.info),
                    session_token=issued.session_token,
                    access_token=issued.access_token,
                )
            )
