import logging
from datetime import timedelta
from typing import Optional

from authcore.app.services.access_token import AccessTokenService
from authcore.app.services.password_verifier import PasswordVerifier
from authcore.app.services.session_policy import SessionPolicy
from authcore.app.services.totp_cipher import TotpSecretCipher
from authcore.app.services.two_factor import TwoFactorEngine
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AuthContext:
    """
    Process-wide security material, built once at startup.

    Holds the access token signing key, the TOTP cipher, the password verifier
    (with its precomputed dummy hash) and the session policy.
    """

    def __init__(
        self,
        passwords: PasswordVerifier,
        access_tokens: AccessTokenService,
        policy: SessionPolicy,
        totp_cipher: Optional[TotpSecretCipher] = None,
        totp_issuer: str = "Transcendence",
        recovery_code_count: int = 10,
    ):
        self.passwords = passwords
        self.access_tokens = access_tokens
        self.policy = policy
        self.totp_cipher = totp_cipher
        self.totp_issuer = totp_issuer
        self.recovery_code_count = recovery_code_count

    @classmethod
    def from_config(cls, config) -> "AuthContext":
        """
        Build the context from an ApplicationConfig.

        Raises:
            ConfigurationError: TOTP key missing while 2FA is enabled, or malformed
        """
        totp_cipher = None
        if config.TWO_FACTOR_ENABLED:
            if not config.TOTP_ENC_KEY:
                raise ConfigurationError("TOTP_ENC_KEY is required when TWO_FACTOR_ENABLED is set")
            totp_cipher = TotpSecretCipher.from_config_value(config.TOTP_ENC_KEY)
        else:
            logger.warning("Two-factor authentication is disabled: no TOTP cipher configured")

        access_lifetime = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
        return cls(
            passwords=PasswordVerifier(
                time_cost=config.ARGON2_TIME_COST,
                memory_cost=config.ARGON2_MEMORY_COST,
                parallelism=config.ARGON2_PARALLELISM,
            ),
            access_tokens=AccessTokenService.with_random_key(access_lifetime),
            policy=SessionPolicy(
                rolling_window=timedelta(days=config.SESSION_EXPIRY_DAYS),
                forced_window=timedelta(days=config.SESSION_FORCED_EXPIRY_DAYS),
                access_lifetime=access_lifetime,
                max_sessions=config.MAX_SESSIONS_PER_USER,
            ),
            totp_cipher=totp_cipher,
            totp_issuer=config.TOTP_ISSUER,
            recovery_code_count=config.RECOVERY_CODE_COUNT,
        )

    def two_factor(self, uow: UnitOfWork) -> TwoFactorEngine:
        return TwoFactorEngine(
            uow,
            self.totp_cipher,
            issuer=self.totp_issuer,
            recovery_code_count=self.recovery_code_count,
        )
