"""
Auth cookies

The session token is only sent to the session-management routes; the access
token to every API route; the device id everywhere.
"""

from datetime import timedelta

from fastapi import Response

SESSION_COOKIE = "session_token"
ACCESS_COOKIE = "access_token"
DEVICE_ID_COOKIE = "device_id"

DEVICE_ID_MAX_AGE = int(timedelta(days=400).total_seconds())


def session_cookie_path(config) -> str:
    return f"{config.API_PREFIX}/auth/session-management/"


def access_cookie_path(config) -> str:
    return f"{config.API_PREFIX}/"


def set_auth_cookies(response: Response, config, session_token: str, access_token: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        session_token,
        max_age=int(timedelta(days=config.SESSION_COOKIE_MAX_AGE_DAYS).total_seconds()),
        path=session_cookie_path(config),
        secure=config.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=int(timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES).total_seconds()),
        path=access_cookie_path(config),
        secure=config.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )


def clear_auth_cookies(response: Response, config) -> None:
    response.delete_cookie(
        SESSION_COOKIE,
        path=session_cookie_path(config),
        secure=config.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
    response.delete_cookie(
        ACCESS_COOKIE,
        path=access_cookie_path(config),
        secure=config.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )


def set_device_cookie(response: Response, config, device_id: str) -> None:
    response.set_cookie(
        DEVICE_ID_COOKIE,
        device_id,
        max_age=DEVICE_ID_MAX_AGE,
        path="/",
        secure=config.COOKIE_SECURE,
        httponly=True,
        samesite="lax",
    )
