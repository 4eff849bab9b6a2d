import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.environ.get("AUTHCORE_CONFIG", os.path.join(ROOT_PATH, "env.yaml"))

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./authcore.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTO_CREATE_TABLES = bool(data.get("AUTO_CREATE_TABLES", False))

    # Sessions and access tokens
    ACCESS_TOKEN_EXPIRE_MINUTES = data.get("ACCESS_TOKEN_EXPIRE_MINUTES", 15)
    SESSION_EXPIRY_DAYS = data.get("SESSION_EXPIRY_DAYS", 7)
    SESSION_FORCED_EXPIRY_DAYS = data.get("SESSION_FORCED_EXPIRY_DAYS", 30)
    MAX_SESSIONS_PER_USER = data.get("MAX_SESSIONS_PER_USER", 10)
    SESSION_COOKIE_MAX_AGE_DAYS = data.get("SESSION_COOKIE_MAX_AGE_DAYS", 400)
    COOKIE_SECURE = bool(data.get("COOKIE_SECURE", True))

    # Password hashing (argon2id)
    ARGON2_TIME_COST = data.get("ARGON2_TIME_COST", 3)
    ARGON2_MEMORY_COST = data.get("ARGON2_MEMORY_COST", 65536)
    ARGON2_PARALLELISM = data.get("ARGON2_PARALLELISM", 4)

    # Two-factor authentication
    TWO_FACTOR_ENABLED = bool(data.get("TWO_FACTOR_ENABLED", True))
    TOTP_ENC_KEY = os.environ.get("TOTP_ENC_KEY", data.get("TOTP_ENC_KEY"))
    TOTP_ISSUER = data.get("TOTP_ISSUER", "Transcendence")
    RECOVERY_CODE_COUNT = data.get("RECOVERY_CODE_COUNT", 10)
