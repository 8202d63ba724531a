"""
Response DTOs for authentication endpoints.

UserProfileResponse  redacted account shape; never carries password fields
ActivateResponse     POST /verify  (201)
SessionResponse      POST /signup/{verify_token} (201), POST /login (200)
RefreshResponse      GET /refresh  (200)
AccountResponse      GET /me, PATCH /update-password  (200)
StatusResponse       POST /forgot-password, PATCH /reset-password  (200)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc


class UserProfileResponse(BaseModel):
    """Public view of a user document."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    email: str
    password_changed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserProfileResponse":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            password_changed_at=user.password_changed_at,
            created_at=user.created_at,
        )


class ActivateResponse(BaseModel):
    """Response body for POST /verify (201).

    ``token`` is the signed verification token; the client sends it back as
    a Bearer credential together with the nonce from the emailed link.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    token: str


class SessionResponse(BaseModel):
    """Response body for signup completion (201) and login (200)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    access_token: str
    user: UserProfileResponse


class RefreshResponse(BaseModel):
    """Response body for GET /refresh (200).

    Both tokens are also set as cookies; the body copy is for clients that
    cannot read the cookie channel.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: str
    access_token: str
    refresh_token: str


class AccountResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    user: UserProfileResponse


class StatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    message: str
