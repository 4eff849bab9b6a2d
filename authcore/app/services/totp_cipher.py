"""
TOTP Secret Cipher

TOTP secrets are stored encrypted with ChaCha20-Poly1305. The stored value is
standard base64 of ``nonce || ciphertext``; the owning user id is bound as
associated data so a ciphertext copied to another row does not decrypt.
"""

import base64
import binascii
import os
import re
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from authcore.domain.errors import ConfigurationError

KEY_BYTES = 32
NONCE_BYTES = 12

_HEX_RE = re.compile(r"^[0-9a-fA-F]{64}$")
_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class TotpCipherError(Exception):
    """Stored secret could not be decrypted"""


def parse_32_byte_key(value: str) -> Optional[bytes]:
    """
    Parse key material given as 64 hex chars, base64url without padding or
    standard base64. Returns None unless the result is exactly 32 bytes.
    """
    value = value.strip()
    if _HEX_RE.match(value):
        return bytes.fromhex(value)

    candidates = []
    if _BASE64URL_RE.match(value):
        try:
            candidates.append(base64.urlsafe_b64decode(value + "=" * (-len(value) % 4)))
        except (binascii.Error, ValueError):
            pass
    try:
        candidates.append(base64.b64decode(value, validate=True))
    except (binascii.Error, ValueError):
        pass

    for decoded in candidates:
        if len(decoded) == KEY_BYTES:
            return decoded
    return None


def _associated_data(user_id: int) -> bytes:
    return user_id.to_bytes(4, "little", signed=True)


class TotpSecretCipher:
    def __init__(self, key: bytes):
        if len(key) != KEY_BYTES:
            raise ConfigurationError(f"TOTP encryption key must be {KEY_BYTES} bytes")
        self._aead = ChaCha20Poly1305(key)

    @classmethod
    def from_config_value(cls, value: str) -> "TotpSecretCipher":
        key = parse_32_byte_key(value)
        if key is None:
            raise ConfigurationError(
                "TOTP_ENC_KEY must be 32 bytes encoded as hex, base64url or base64"
            )
        return cls(key)

    def encrypt(self, user_id: int, secret: bytes) -> str:
        nonce = os.urandom(NONCE_BYTES)
        ciphertext = self._aead.encrypt(nonce, secret, _associated_data(user_id))
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, user_id: int, secret_enc: str) -> bytes:
        try:
            blob = base64.b64decode(secret_enc, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise TotpCipherError("Stored TOTP secret is not valid base64") from exc

        if len(blob) <= NONCE_BYTES:
            raise TotpCipherError("Stored TOTP secret is truncated")

        nonce, ciphertext = blob[:NONCE_BYTES], blob[NONCE_BYTES:]
        try:
            return self._aead.decrypt(nonce, ciphertext, _associated_data(user_id))
        except InvalidTag as exc:
            raise TotpCipherError("Stored TOTP secret failed authentication") from exc
