import base64

import pytest

from authcore.app.services.auth_context import AuthContext
from authcore.app.services.totp_cipher import TotpCipherError, TotpSecretCipher, parse_32_byte_key
from authcore.domain.errors import ConfigurationError
from config import ApplicationConfig

KEY = bytes(range(32))


@pytest.mark.parametrize(
    "encoded",
    [
        KEY.hex(),
        KEY.hex().upper(),
        base64.urlsafe_b64encode(KEY).rstrip(b"=").decode(),
        base64.b64encode(KEY).decode(),
    ],
)
def test_parse_accepted_encodings(encoded):
    assert parse_32_byte_key(encoded) == KEY


@pytest.mark.parametrize("encoded", ["", "abc", bytes(16).hex(), base64.b64encode(bytes(31)).decode()])
def test_parse_rejects_wrong_size(encoded):
    assert parse_32_byte_key(encoded) is None


@pytest.mark.parametrize(
    "encoded",
    [
        "AAECAwQFBgcICQoLDA0O!!!!DxAREhMUFRYXGBkaGxwdHh8",
        "AAECAwQFBgcICQoLDA0O $$ DxAREhMUFRYXGBkaGxwdHh8",
        base64.urlsafe_b64encode(KEY).rstrip(b"=").decode() + "*",
    ],
)
def test_parse_rejects_characters_outside_alphabet(encoded):
    assert parse_32_byte_key(encoded) is None


def test_from_config_value_rejects_malformed_key():
    with pytest.raises(ConfigurationError):
        TotpSecretCipher.from_config_value("too-short")


def test_secret_roundtrip_is_bound_to_user():
    cipher = TotpSecretCipher(KEY)
    secret = b"12345678901234567890"

    encrypted = cipher.encrypt(42, secret)

    assert cipher.decrypt(42, encrypted) == secret
    with pytest.raises(TotpCipherError):
        cipher.decrypt(43, encrypted)


def test_each_encryption_uses_fresh_nonce():
    cipher = TotpSecretCipher(KEY)
    assert cipher.encrypt(1, b"secret") != cipher.encrypt(1, b"secret")


def test_tampered_ciphertext_is_rejected():
    cipher = TotpSecretCipher(KEY)
    blob = bytearray(base64.b64decode(cipher.encrypt(1, b"secret")))
    blob[-1] ^= 0x01

    with pytest.raises(TotpCipherError):
        cipher.decrypt(1, base64.b64encode(bytes(blob)).decode())


def test_wrong_key_is_rejected():
    encrypted = TotpSecretCipher(KEY).encrypt(1, b"secret")
    with pytest.raises(TotpCipherError):
        TotpSecretCipher(bytes(32)).decrypt(1, encrypted)


def test_garbage_ciphertext_is_rejected():
    with pytest.raises(TotpCipherError):
        TotpSecretCipher(KEY).decrypt(1, "***")


class CheapConfig(ApplicationConfig):
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 8
    ARGON2_PARALLELISM = 1


def test_context_requires_key_when_two_factor_enabled():
    class Config(CheapConfig):
        TWO_FACTOR_ENABLED = True
        TOTP_ENC_KEY = None

    with pytest.raises(ConfigurationError):
        AuthContext.from_config(Config)


def test_context_rejects_malformed_key():
    class Config(CheapConfig):
        TWO_FACTOR_ENABLED = True
        TOTP_ENC_KEY = "zz" * 32

    with pytest.raises(ConfigurationError):
        AuthContext.from_config(Config)


def test_context_without_two_factor_has_no_cipher():
    class Config(CheapConfig):
        TWO_FACTOR_ENABLED = False
        TOTP_ENC_KEY = None

    assert AuthContext.from_config(Config).totp_cipher is None


def test_context_from_valid_config():
    class Config(CheapConfig):
        TWO_FACTOR_ENABLED = True
        TOTP_ENC_KEY = KEY.hex()
        MAX_SESSIONS_PER_USER = 5

    context = AuthContext.from_config(Config)
    assert context.totp_cipher is not None
    assert context.policy.max_sessions == 5
