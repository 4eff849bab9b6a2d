from typing import Optional

from result import Err, Ok, Result

from authcore.app.services import session_token
from authcore.app.services.session_policy import SessionPolicy
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import utcnow
from authcore.domain.entities import Session
from authcore.domain.errors import Error, ErrorCode, need_reauth


async def load_session_from_token(
    uow: UnitOfWork,
    policy: SessionPolicy,
    raw_token: Optional[str],
    enforce_reauth: bool,
) -> Result[Session, Error]:
    """
    Resolve the session named by a session cookie value.

    Args:
        uow: Active unit of work
        policy: Reauth policy
        raw_token: Cookie value, None when the cookie is absent
        enforce_reauth: Reject sessions past either reauth deadline

    Returns:
        Result with the session, or MISSING_SESSION_COOKIE,
        INVALID_SESSION_TOKEN, SESSION_NOT_FOUND, NEED_REAUTH
    """
    if not raw_token:
        return Err(Error(ErrorCode.MISSING_SESSION_COOKIE, "Missing session cookie"))

    try:
        token = session_token.decode_token(raw_token)
    except session_token.TokenDecodeError as exc:
        return Err(Error(ErrorCode.INVALID_SESSION_TOKEN, str(exc)))

    session = await uow.sessions.get_by_token_hash(session_token.hash_token(token))
    if session is None:
        return Err(Error(ErrorCode.SESSION_NOT_FOUND, "Session not found"))

    if enforce_reauth and policy.requires_reauth(session, utcnow()):
        return Err(need_reauth())

    return Ok(session)
