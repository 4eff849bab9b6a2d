"""
Access Token Service

Short-lived HS256 JWTs bound to one session generation through the ``jti``
claim (the truncated session token hash).
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from authcore.domain.entities import Session
from authcore.app.services import session_token

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SIGNING_KEY_BYTES = 32


class AccessClaims(BaseModel):
    """Decoded access token payload"""

    sub: int
    sid: int
    jti: str
    iat: int
    exp: int


class AccessTokenService:
    def __init__(self, signing_key: bytes, lifetime: timedelta = timedelta(minutes=15)):
        self._signing_key = signing_key
        self.lifetime = lifetime

    @classmethod
    def with_random_key(cls, lifetime: timedelta = timedelta(minutes=15)) -> "AccessTokenService":
        """Service signing with a fresh key that only lives in this process"""
        return cls(secrets.token_bytes(SIGNING_KEY_BYTES), lifetime)

    def issue(self, session: Session, token_hash: bytes, now: Optional[datetime] = None) -> str:
        """
        Mint an access token for a session.

        Args:
            session: Session row the token is bound to
            token_hash: Hash of the session's current token
            now: Issue time, defaults to the current time

        Returns:
            Encoded JWT
        """
        issued_at = int((now or datetime.now(UTC)).replace(tzinfo=UTC).timestamp())
        claims = {
            "sub": session.user_id,
            "sid": session.id,
            "jti": session_token.encode(session_token.truncate_hash(token_hash)),
            "iat": issued_at,
            "exp": issued_at + int(self.lifetime.total_seconds()),
        }
        return jwt.encode(claims, self._signing_key, algorithm=ALGORITHM)

    def decode(self, token: str) -> Optional[AccessClaims]:
        """Verify signature and expiry, None if the token is not acceptable"""
        try:
            payload = jwt.decode(
                token,
                self._signing_key,
                algorithms=[ALGORITHM],
                options={"verify_sub": False},
            )
        except JWTError as exc:
            logger.debug(f"Access token rejected: {exc}")
            return None

        try:
            return AccessClaims(**payload)
        except ValidationError:
            logger.warning("Access token carries malformed claims")
            return None
