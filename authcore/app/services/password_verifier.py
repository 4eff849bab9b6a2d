"""
Password Verifier

Argon2id hashing with constant-time handling of unknown accounts.
"""

import logging
from typing import Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

logger = logging.getLogger(__name__)

DUMMY_PASSWORD = "dummy password"


class PasswordVerifier:
    """
    Hashes and verifies passwords.

    Business Rules:
    - Argon2id with a random salt, parameters fixed per verifier
    - Unknown accounts are verified against a dummy hash computed once, so the
      response time does not reveal whether an email is registered
    - Unknown accounts always fail, with the same outcome as a wrong password
    """

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4):
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )
        self._dummy_hash = self._hasher.hash(DUMMY_PASSWORD)

    def hash(self, password: str) -> str:
        return self._hasher.hash(password)

    def verify(self, password: str, password_hash: Optional[str]) -> bool:
        """
        Check a password against a stored hash.

        Args:
            password: Plain text password
            password_hash: Stored PHC string, or None when no account matched

        Returns:
            True only if a stored hash exists and the password matches it
        """
        target = password_hash if password_hash is not None else self._dummy_hash
        try:
            self._hasher.verify(target, password)
            matched = True
        except VerifyMismatchError:
            matched = False
        except (InvalidHashError, VerificationError):
            logger.error("Stored password hash could not be verified")
            matched = False

        return matched and password_hash is not None
