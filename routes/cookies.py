"""
Session cookie helpers.

Both cookies are httpOnly and SameSite=Lax; ``secure`` follows
JWTSettings.cookie_secure so local HTTP development still works. max_age
matches the TTL of the token inside so cookie and token expire together.
Clearing writes an empty value with max_age=1.
"""

from __future__ import annotations

from fastapi import Response

from config import JWTSettings

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def _set(response: Response, name: str, value: str, max_age: int, secure: bool) -> None:
    response.set_cookie(
        name,
        value=value,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
        max_age=max_age,
    )


def set_session_cookies(
    response: Response, settings: JWTSettings, access_token: str, refresh_token: str
) -> None:
    _set(response, ACCESS_COOKIE, access_token, settings.access_token_ttl_seconds, settings.cookie_secure)
    _set(response, REFRESH_COOKIE, refresh_token, settings.refresh_token_ttl_seconds, settings.cookie_secure)


def clear_session_cookies(response: Response, settings: JWTSettings) -> None:
    _set(response, ACCESS_COOKIE, "", 1, settings.cookie_secure)
    _set(response, REFRESH_COOKIE, "", 1, settings.cookie_secure)
