import pyotp
import pytest

from authcore.app.services.two_factor import base32_secret, generate_totp_secret, hash_recovery_code
from authcore.app.use_cases.auth import AuthenticatedIdentity
from authcore.app.use_cases.two_factor import (
    ConfirmTwoFactorUseCase,
    DisableTwoFactorUseCase,
    StartTwoFactorUseCase,
)
from authcore.domain.errors import ErrorCode
from tests.unit.factories import make_user

IDENTITY = AuthenticatedIdentity(user_id=1, session_id=10, device_id="device-1")
PASSWORD = "SecurePass123!"


@pytest.fixture
def secret():
    return generate_totp_secret()


@pytest.fixture
def pending_user(passwords, auth_context, secret):
    return make_user(passwords, totp_secret_enc=auth_context.totp_cipher.encrypt(1, secret))


@pytest.mark.asyncio
async def test_start_stores_encrypted_secret(mock_uow, auth_context, passwords):
    mock_uow.users.get_by_id.return_value = make_user(passwords)
    mock_uow.users.start_totp.return_value = 1

    result = await StartTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD)

    assert result.is_ok()
    response = result.ok_value
    stored = mock_uow.users.start_totp.await_args.args[1]
    assert base32_secret(auth_context.totp_cipher.decrypt(1, stored)) == response.base32_secret
    assert response.url.startswith("otpauth://totp/")
    assert response.qr_base64
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_rejected_when_enabled(mock_uow, auth_context, passwords):
    mock_uow.users.get_by_id.return_value = make_user(passwords, totp_enabled=True)

    result = await StartTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD)

    assert result.err_value.code == ErrorCode.TWO_FACTOR_ALREADY_ENABLED
    mock_uow.users.start_totp.assert_not_awaited()


@pytest.mark.asyncio
async def test_confirm_issues_recovery_codes(mock_uow, auth_context, pending_user, secret):
    mock_uow.users.get_by_id.return_value = pending_user
    mock_uow.users.enable_totp.return_value = 1
    code = pyotp.TOTP(base32_secret(secret)).now()

    result = await ConfirmTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD, code)

    assert result.is_ok()
    codes = result.ok_value.recovery_codes
    assert len(codes) == 10
    assert mock_uow.users.enable_totp.await_args.args[1] == pending_user.totp_secret_enc
    stored_hashes = mock_uow.recovery_codes.replace_for_user.await_args.args[1]
    assert stored_hashes == [hash_recovery_code(c) for c in codes]
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_confirm_race_loser_gets_raced(mock_uow, auth_context, pending_user, secret):
    mock_uow.users.get_by_id.return_value = pending_user
    mock_uow.users.enable_totp.return_value = 0
    code = pyotp.TOTP(base32_secret(secret)).now()

    result = await ConfirmTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD, code)

    assert result.err_value.code == ErrorCode.TWO_FACTOR_RACED
    mock_uow.recovery_codes.replace_for_user.assert_not_awaited()
    mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_confirm_without_start(mock_uow, auth_context, passwords):
    mock_uow.users.get_by_id.return_value = make_user(passwords)

    result = await ConfirmTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD, "123456")

    assert result.err_value.code == ErrorCode.TWO_FACTOR_NOT_STARTED


@pytest.mark.asyncio
async def test_confirm_wrong_password(mock_uow, auth_context, pending_user):
    mock_uow.users.get_by_id.return_value = pending_user

    result = await ConfirmTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, "nope-nope", "123456")

    assert result.err_value.code == ErrorCode.INVALID_CREDENTIALS


@pytest.mark.asyncio
async def test_disable_not_enabled(mock_uow, auth_context, passwords):
    mock_uow.users.get_by_id.return_value = make_user(passwords)

    result = await DisableTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD, "123456")

    assert result.err_value.code == ErrorCode.TWO_FACTOR_NOT_ENABLED


@pytest.mark.asyncio
async def test_disable_clears_state_and_codes(mock_uow, auth_context, passwords, secret):
    user = make_user(
        passwords, totp_enabled=True, totp_secret_enc=auth_context.totp_cipher.encrypt(1, secret)
    )
    mock_uow.users.get_by_id.return_value = user
    mock_uow.users.disable_totp.return_value = 1
    code = pyotp.TOTP(base32_secret(secret)).now()

    result = await DisableTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD, code)

    assert result.is_ok()
    assert result.ok_value.totp_enabled is False
    mock_uow.users.disable_totp.assert_awaited_once_with(1, user.totp_secret_enc)
    mock_uow.recovery_codes.delete_for_user.assert_awaited_once_with(1)


@pytest.mark.asyncio
async def test_disable_race_loser_gets_raced(mock_uow, auth_context, passwords, secret):
    user = make_user(
        passwords, totp_enabled=True, totp_secret_enc=auth_context.totp_cipher.encrypt(1, secret)
    )
    mock_uow.users.get_by_id.return_value = user
    # A concurrent disable already cleared the secret
    mock_uow.users.disable_totp.return_value = 0
    code = pyotp.TOTP(base32_secret(secret)).now()

    result = await DisableTwoFactorUseCase(mock_uow, auth_context).execute(IDENTITY, PASSWORD, code)

    assert result.err_value.code == ErrorCode.TWO_FACTOR_RACED
    mock_uow.recovery_codes.delete_for_user.assert_not_awaited()
    mock_uow.commit.assert_not_awaited()
