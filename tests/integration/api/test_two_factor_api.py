import pyotp
import pytest
from httpx import ASGITransport, AsyncClient

from authcore.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authcore.depends import get_unit_of_work
from tests.integration.helpers import PASSWORD, IntegrationConfig, error_code, login, register


async def enable_two_factor(client: AsyncClient):
    start = await client.post("/api/user/2fa/start", json={"password": PASSWORD})
    assert start.status_code == 200, start.text
    totp = pyotp.TOTP(start.json()["base32_secret"])

    confirm = await client.post(
        "/api/user/2fa/confirm", json={"password": PASSWORD, "code": totp.now()}
    )
    assert confirm.status_code == 200, confirm.text
    return totp, confirm.json()["recovery_codes"]


@pytest.mark.asyncio
async def test_start_returns_enrollment_material(client: AsyncClient):
    await register(client)

    response = await client.post("/api/user/2fa/start", json={"password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert len(body["base32_secret"]) == 32
    assert body["url"].startswith("otpauth://totp/")
    assert "issuer=Transcendence" in body["url"]
    assert body["qr_base64"]

    # Restarting a pending enrollment is allowed
    assert (await client.post("/api/user/2fa/start", json={"password": PASSWORD})).status_code == 200


@pytest.mark.asyncio
async def test_confirm_requires_started_enrollment(client: AsyncClient):
    await register(client)

    response = await client.post("/api/user/2fa/confirm", json={"password": PASSWORD, "code": "123456"})

    assert response.status_code == 400
    assert error_code(response) == "TWO_FACTOR_NOT_STARTED"


@pytest.mark.asyncio
async def test_two_factor_lifecycle(client: AsyncClient, other_client: AsyncClient):
    await register(client)
    totp, recovery_codes = await enable_two_factor(client)

    assert len(recovery_codes) == 10
    assert (await client.get("/api/user/me")).json()["user"]["totp_enabled"] is True

    response = await client.post("/api/user/2fa/start", json={"password": PASSWORD})
    assert response.status_code == 409
    assert error_code(response) == "TWO_FACTOR_ALREADY_ENABLED"

    response = await login(other_client)
    assert response.status_code == 401
    assert error_code(response) == "TWO_FACTOR_REQUIRED"

    response = await login(other_client, mfa_code="not-a-valid-code")
    assert error_code(response) == "TWO_FACTOR_INVALID"

    assert (await login(other_client, mfa_code=totp.now())).status_code == 200

    # A recovery code works exactly once
    assert (await login(other_client, mfa_code=recovery_codes[0])).status_code == 200
    response = await login(other_client, mfa_code=recovery_codes[0])
    assert error_code(response) == "TWO_FACTOR_INVALID"

    # Password-confirmed actions need the second factor too
    response = await client.post("/api/user/sessions", json={"password": PASSWORD})
    assert error_code(response) == "TWO_FACTOR_REQUIRED"
    response = await client.post(
        "/api/user/sessions", json={"password": PASSWORD, "mfa_code": recovery_codes[1]}
    )
    assert response.status_code == 200

    response = await client.post(
        "/api/user/2fa/disable", json={"password": PASSWORD, "mfa_code": totp.now()}
    )
    assert response.status_code == 200
    assert response.json()["totp_enabled"] is False

    assert (await login(other_client)).status_code == 200


@pytest.mark.asyncio
async def test_disable_when_not_enabled(client: AsyncClient):
    await register(client)

    response = await client.post("/api/user/2fa/disable", json={"password": PASSWORD, "mfa_code": "123456"})

    assert response.status_code == 400
    assert error_code(response) == "TWO_FACTOR_NOT_ENABLED"


@pytest.mark.asyncio
async def test_reauth_requires_second_factor(client: AsyncClient):
    await register(client)
    totp, _ = await enable_two_factor(client)

    response = await client.post("/api/auth/session-management/reauth", json={"password": PASSWORD})
    assert error_code(response) == "TWO_FACTOR_REQUIRED"

    response = await client.post(
        "/api/auth/session-management/reauth",
        json={"password": PASSWORD, "mfa_code": totp.now()},
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_two_factor_without_key_is_internal_error(db_session):
    from authcore.api.app import create_app

    class NoTwoFactorConfig(IntegrationConfig):
        TWO_FACTOR_ENABLED = False
        TOTP_ENC_KEY = None

    app = create_app(NoTwoFactorConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work

    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as client:
        await register(client)
        response = await client.post("/api/user/2fa/start", json={"password": PASSWORD})

    assert response.status_code == 500
    assert response.json()["error"] == {
        "code": "TWO_FACTOR_INTERNAL",
        "message": "Internal server error",
    }
