import pytest
from httpx import AsyncClient
from sqlmodel import select

from authcore.domain.entities import Session
from tests.integration.helpers import EMAIL, NICKNAME, PASSWORD, error_code, login, refresh, register


async def load_session(db_session, session_id: int) -> Session:
    stmt = select(Session).where(Session.id == session_id).execution_options(populate_existing=True)
    return (await db_session.exec(stmt)).one()


@pytest.mark.asyncio
async def test_register_sets_cookies(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"email": EMAIL, "password": PASSWORD, "nickname": NICKNAME},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == EMAIL
    assert data["user"]["nickname"] == NICKNAME
    assert data["user"]["totp_enabled"] is False
    assert data["session"]["user_id"] == data["user"]["id"]

    set_cookies = response.headers.get_list("set-cookie")
    session_cookie = next(c for c in set_cookies if c.startswith("session_token="))
    access_cookie = next(c for c in set_cookies if c.startswith("access_token="))
    device_cookie = next(c for c in set_cookies if c.startswith("device_id="))

    assert "Path=/api/auth/session-management/" in session_cookie
    assert "Path=/api/" in access_cookie
    assert "Path=/" in device_cookie
    for cookie in (session_cookie, access_cookie, device_cookie):
        assert "HttpOnly" in cookie
        assert "Secure" in cookie
        assert "SameSite=lax" in cookie


@pytest.mark.asyncio
async def test_register_duplicates_conflict(client: AsyncClient):
    await register(client)

    response = await client.post(
        "/api/auth/register",
        json={"email": EMAIL.upper(), "password": PASSWORD, "nickname": "someone_else"},
    )
    assert response.status_code == 409
    assert error_code(response) == "EMAIL_ALREADY_EXISTS"

    response = await client.post(
        "/api/auth/register",
        json={"email": "other@acme.com", "password": PASSWORD, "nickname": NICKNAME.upper()},
    )
    assert response.status_code == 409
    assert error_code(response) == "NICKNAME_ALREADY_EXISTS"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "password": PASSWORD, "nickname": NICKNAME},
        {"email": EMAIL, "password": "short", "nickname": NICKNAME},
        {"email": EMAIL, "password": "x" * 129, "nickname": NICKNAME},
        {"email": EMAIL, "password": PASSWORD, "nickname": "ab"},
        {"email": EMAIL, "password": PASSWORD, "nickname": "a" * 17},
        {"email": EMAIL, "password": PASSWORD, "nickname": " padded "},
        {"email": EMAIL, "password": PASSWORD, "nickname": "bad name!"},
    ],
)
async def test_register_validation(client: AsyncClient, payload):
    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(client: AsyncClient):
    await register(client)

    wrong_password = await login(client, password="WrongPass123!")
    unknown_email = await login(client, email="ghost@acme.com")

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert error_code(wrong_password) == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_only_credential_checks_advance_last_authenticated(client: AsyncClient, db_session):
    """register -> login -> refresh x5 -> reauth"""
    data = await register(client)
    session_id = data["session"]["session_id"]
    registered_at = (await load_session(db_session, session_id)).last_authenticated_at

    response = await login(client)
    assert response.status_code == 200
    # Same device, so the existing session is rotated
    assert response.json()["session"]["session_id"] == session_id
    logged_in_at = (await load_session(db_session, session_id)).last_authenticated_at
    assert logged_in_at > registered_at

    for _ in range(5):
        response = await refresh(client)
        assert response.status_code == 200, response.text
        assert response.json()["session_id"] == session_id
        assert (await load_session(db_session, session_id)).last_authenticated_at == logged_in_at

    response = await client.post(
        "/api/auth/session-management/reauth", json={"password": PASSWORD}
    )
    assert response.status_code == 200, response.text
    assert (await load_session(db_session, session_id)).last_authenticated_at > logged_in_at


@pytest.mark.asyncio
async def test_login_from_new_device_creates_session(client: AsyncClient, other_client: AsyncClient):
    data = await register(client)

    response = await login(other_client)

    assert response.status_code == 200
    assert response.json()["session"]["session_id"] != data["session"]["session_id"]


@pytest.mark.asyncio
async def test_stale_session_token_is_rejected(client: AsyncClient):
    await register(client)
    stale = client.cookies.get("session_token")

    assert (await refresh(client)).status_code == 200

    response = await refresh(client, session_token=stale)
    assert response.status_code == 401
    assert error_code(response) == "INVALID_SESSION"
    assert not any(
        c.startswith(("session_token=", "access_token=")) for c in response.headers.get_list("set-cookie")
    )


@pytest.mark.asyncio
async def test_access_token_from_previous_rotation_is_rejected(client: AsyncClient):
    await register(client)
    old_access = client.cookies.get("access_token")

    assert (await refresh(client)).status_code == 200
    assert (await client.get("/api/user/me")).status_code == 200

    response = await client.get("/api/user/me", headers={"Cookie": f"access_token={old_access}"})
    assert response.status_code == 401
    assert error_code(response) == "SESSION_MISMATCH"


@pytest.mark.asyncio
async def test_logout_then_refresh_needs_reauth(client: AsyncClient):
    await register(client)
    session_token = client.cookies.get("session_token")

    response = await client.post("/api/user/logout")
    assert response.status_code == 200
    assert client.cookies.get("access_token") is None
    assert client.cookies.get("session_token") is None

    response = await refresh(client, session_token=session_token)
    assert response.status_code == 401
    assert error_code(response) == "NEED_REAUTH"

    # Reauth stays reachable and revives the session
    response = await client.post(
        "/api/auth/session-management/reauth",
        json={"password": PASSWORD},
        headers={"Cookie": f"session_token={session_token}"},
    )
    assert response.status_code == 200, response.text
    assert (await client.get("/api/user/me")).status_code == 200


@pytest.mark.asyncio
async def test_reauth_wrong_password(client: AsyncClient):
    await register(client)

    response = await client.post(
        "/api/auth/session-management/reauth", json={"password": "WrongPass123!"}
    )

    assert response.status_code == 401
    assert error_code(response) == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_missing_cookies(client: AsyncClient):
    response = await refresh(client)
    assert response.status_code == 401
    assert error_code(response) == "MISSING_SESSION_COOKIE"

    response = await client.get("/api/user/me")
    assert response.status_code == 401
    assert error_code(response) == "MISSING_ACCESS_TOKEN"

    response = await client.get("/api/user/me", headers={"Cookie": "access_token=garbage"})
    assert response.status_code == 401
    assert error_code(response) == "INVALID_ACCESS_TOKEN"

    response = await refresh(client, session_token="garbage")
    assert response.status_code == 401
    assert error_code(response) == "INVALID_SESSION"
