"""
JWT claim models.

TOKEN_TYPE_* values go into the ``type`` claim so a token signed for one
purpose is rejected for another even when deployments reuse a secret.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.models.registration import PendingRegistration

TOKEN_TYPE_VERIFY = "verify"
TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class SessionClaims(BaseModel):
    """Claims carried by access and refresh tokens."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    iat: int
    iat_ms: int
    exp: int
    type: str


class VerificationClaims(BaseModel):
    """Claims carried by the account activation token."""

    model_config = ConfigDict(extra="ignore")

    user: PendingRegistration
    verify_token: str
    iat: int
    exp: int
    type: str
