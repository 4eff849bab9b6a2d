from unittest.mock import AsyncMock, MagicMock

import pytest

from authcore.app.services.access_token import AccessTokenService
from authcore.app.services.auth_context import AuthContext
from authcore.app.services.password_verifier import PasswordVerifier
from authcore.app.services.session_policy import SessionPolicy
from authcore.app.services.totp_cipher import TotpSecretCipher

TEST_TOTP_KEY = bytes(range(32))


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    # Repositories: every method is awaitable
    uow.users = AsyncMock()
    uow.sessions = AsyncMock()
    uow.recovery_codes = AsyncMock()
    return uow


@pytest.fixture
def passwords():
    """Argon2 verifier with the cheapest allowed parameters"""
    return PasswordVerifier(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def auth_context(passwords):
    return AuthContext(
        passwords=passwords,
        access_tokens=AccessTokenService.with_random_key(),
        policy=SessionPolicy(),
        totp_cipher=TotpSecretCipher(TEST_TOTP_KEY),
    )
