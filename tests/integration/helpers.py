from httpx import AsyncClient

from config import ApplicationConfig

EMAIL = "user@acme.com"
PASSWORD = "SecurePass123!"
NICKNAME = "acme_user"
TEST_TOTP_KEY = bytes(range(32)).hex()


class IntegrationConfig(ApplicationConfig):
    API_PREFIX = "/api"
    COOKIE_SECURE = True
    AUTO_CREATE_TABLES = False
    TWO_FACTOR_ENABLED = True
    TOTP_ENC_KEY = TEST_TOTP_KEY
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 8
    ARGON2_PARALLELISM = 1


async def register(client: AsyncClient, email: str = EMAIL, password: str = PASSWORD, nickname: str = NICKNAME):
    response = await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "nickname": nickname},
    )
    assert response.status_code == 201, response.text
    return response.json()


async def login(client: AsyncClient, email: str = EMAIL, password: str = PASSWORD, mfa_code: str = None):
    payload = {"email": email, "password": password}
    if mfa_code is not None:
        payload["mfa_code"] = mfa_code
    return await client.post("/api/auth/login", json=payload)


async def refresh(client: AsyncClient, session_token: str = None):
    headers = {"Cookie": f"session_token={session_token}"} if session_token else None
    return await client.post("/api/auth/session-management/refresh-jwt", headers=headers)


def error_code(response) -> str:
    return response.json()["error"]["code"]
