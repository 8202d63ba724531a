"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Collaborators are built once by the app factory
and stored on app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from config import AppSettings
from routes.cookies import ACCESS_COOKIE
from schemas.models.user import UserDoc
from services.auth_service import AuthService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_bearer_token(request: Request) -> Optional[str]:
    """The token from an ``Authorization: Bearer`` header; cookies are ignored."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    return None


def get_access_token(request: Request) -> Optional[str]:
    """Bearer header first, then the access_token cookie."""
    return get_bearer_token(request) or request.cookies.get(ACCESS_COOKIE)


async def get_current_user(
    token: Optional[str] = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service),
) -> UserDoc:
    """Resolve the logged-in user or raise TokenInvalidError/StalePasswordError."""
    return await service.authenticate(token)
