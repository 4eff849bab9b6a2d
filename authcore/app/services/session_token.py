"""
Session Token Codec

A session token is 32 random bytes held only by the client. The server stores
its SHA-256 hash; the first 16 bytes of that hash travel in access tokens as
the ``jti`` so an access token is bound to one token generation.

Wire encoding is URL-safe base64 without padding.
"""

import base64
import binascii
import hashlib
import hmac
import re
import secrets
from typing import Optional

TOKEN_BYTES = 32
HASH_BYTES = 32
TRUNCATED_BYTES = 16

_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")


class TokenDecodeError(ValueError):
    """Raised when an encoded token is not valid base64url or has the wrong length"""

    def __init__(self, message: str, expected: Optional[int] = None, actual: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


def generate_token() -> bytes:
    return secrets.token_bytes(TOKEN_BYTES)


def hash_token(token: bytes) -> bytes:
    return hashlib.sha256(token).digest()


def truncate_hash(token_hash: bytes) -> bytes:
    return token_hash[:TRUNCATED_BYTES]


def matches_truncated(token_hash: bytes, truncated: bytes) -> bool:
    """Constant-time comparison of a full hash's prefix with a truncated hash"""
    return hmac.compare_digest(truncate_hash(token_hash), truncated)


def encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _decode(value: str, expected: int) -> bytes:
    if not _BASE64URL_RE.match(value) or len(value) % 4 == 1:
        raise TokenDecodeError("Invalid base64url encoding")
    try:
        decoded = base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
    except (binascii.Error, ValueError) as exc:
        raise TokenDecodeError("Invalid base64url encoding") from exc

    # Nonzero trailing bits would give one token several encodings
    if encode(decoded) != value:
        raise TokenDecodeError("Non-canonical base64url encoding")

    if len(decoded) != expected:
        raise TokenDecodeError(
            f"Invalid decoded length: expected {expected} bytes, got {len(decoded)}",
            expected=expected,
            actual=len(decoded),
        )
    return decoded


def decode_token(value: str) -> bytes:
    """Decode a session token from its cookie value"""
    return _decode(value, TOKEN_BYTES)


def decode_truncated(value: str) -> bytes:
    """Decode a truncated token hash from a ``jti`` claim"""
    return _decode(value, TRUNCATED_BYTES)
