"""
Credential checks shared by login, reauth and every password-confirmed action.

All failures collapse into INVALID_CREDENTIALS so callers cannot tell an
unknown account from a wrong password.
"""

import asyncio
from typing import Optional

from result import Err, Ok, Result

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.entities import User
from authcore.domain.errors import Error, invalid_credentials


async def verify_password(context: AuthContext, password: str, password_hash: Optional[str]) -> bool:
    """Run the argon2 check off the event loop"""
    return await asyncio.to_thread(context.passwords.verify, password, password_hash)


async def hash_password(context: AuthContext, password: str) -> str:
    return await asyncio.to_thread(context.passwords.hash, password)


async def get_user_by_credentials(
    uow: UnitOfWork, context: AuthContext, email: str, password: str
) -> Result[User, Error]:
    user = await uow.users.get_by_email(email)
    password_hash = user.password_hash if user is not None else None

    if not await verify_password(context, password, password_hash):
        return Err(invalid_credentials())
    return Ok(user)


async def check_password(
    uow: UnitOfWork, context: AuthContext, user_id: int, password: str
) -> Result[User, Error]:
    user = await uow.users.get_by_id(user_id)
    password_hash = user.password_hash if user is not None else None

    if not await verify_password(context, password, password_hash):
        return Err(invalid_credentials())
    return Ok(user)


async def check_password_and_mfa_if_enabled(
    uow: UnitOfWork,
    context: AuthContext,
    user_id: int,
    password: str,
    mfa_code: Optional[str],
) -> Result[User, Error]:
    checked = await check_password(uow, context, user_id, password)
    if checked.is_err():
        return checked

    user = checked.ok_value
    mfa = await context.two_factor(uow).require_if_enabled(user, mfa_code)
    if mfa.is_err():
        return mfa
    return Ok(user)
