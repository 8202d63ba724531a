"""
Token codec: signs and verifies the three JWT kinds the service issues.

  verify   activation token; carries the pending registration and a nonce
  access   short-lived session token
  refresh  longer-lived token used only to mint a new access/refresh pair

All kinds are HS256 with their own secret from JWTSettings, and carry a
``type`` claim checked on decode. Verification failures are logged with the
precise reason (expired, bad signature, wrong type, malformed payload) but
always raise the same TokenInvalidError so callers cannot be used as an
oracle.

Besides the whole-second ``iat``, every token carries ``iat_ms``, its issue
time in milliseconds. Password-change revocation compares against it so a
token minted in the same second as the change, but before it, is still
revoked.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Tuple

import jwt
from pydantic import ValidationError as PydanticValidationError

from config import JWTSettings
from errors import TokenInvalidError
from schemas.models.registration import PendingRegistration
from schemas.models.token import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    TOKEN_TYPE_VERIFY,
    SessionClaims,
    VerificationClaims,
)
from shared.crypto import generate_opaque_token, hash_token
from shared.datetime_utils import to_millis, utcnow
from shared.logging import get_logger

log = get_logger(__name__)

_ALGORITHM = "HS256"


class TokenKind(str, Enum):
    VERIFY = TOKEN_TYPE_VERIFY
    ACCESS = TOKEN_TYPE_ACCESS
    REFRESH = TOKEN_TYPE_REFRESH


class TokenCodec:
    def __init__(
        self,
        settings: JWTSettings,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._secrets = {
            TokenKind.VERIFY: settings.verify_email_secret,
            TokenKind.ACCESS: settings.access_token_secret,
            TokenKind.REFRESH: settings.refresh_token_secret,
        }
        self._ttls = {
            TokenKind.VERIFY: settings.verify_email_ttl_seconds,
            TokenKind.ACCESS: settings.access_token_ttl_seconds,
            TokenKind.REFRESH: settings.refresh_token_ttl_seconds,
        }

    def _sign(self, kind: TokenKind, claims: dict, ttl: Optional[int]) -> str:
        now = self._clock()
        lifetime = ttl if ttl is not None and ttl > 0 else self._ttls[kind]
        payload = {
            **claims,
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "iat": int(now.timestamp()),
            "iat_ms": to_millis(now),
            "exp": int((now + timedelta(seconds=lifetime)).timestamp()),
            "type": kind.value,
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=_ALGORITHM)

    def issue_verification(self, registration: PendingRegistration) -> Tuple[str, str]:
        """Sign *registration* together with a fresh nonce.

        Returns:
            ``(signed_token, nonce)``. The nonce is delivered out of band
            (inside the activation link) and must be presented alongside the
            token when the signup is completed.
        """
        nonce = generate_opaque_token()
        token = self._sign(
            TokenKind.VERIFY,
            {"user": registration.to_claim(), "verify_token": nonce},
            None,
        )
        return token, nonce

    def issue_access(self, subject_id: str, ttl: Optional[int] = None) -> str:
        return self._sign(TokenKind.ACCESS, {"sub": str(subject_id)}, ttl)

    def issue_refresh(self, subject_id: str, ttl: Optional[int] = None) -> str:
        return self._sign(TokenKind.REFRESH, {"sub": str(subject_id)}, ttl)

    def verify(self, token: Optional[str], kind: TokenKind) -> dict:
        """Decode *token* with the secret for *kind* and return its claims.

        Raises:
            TokenInvalidError: missing, forged, expired, malformed or of the
                wrong kind.
        """
        if not token:
            log.warning("token_verification_failed", kind=kind.value, reason="missing")
            raise TokenInvalidError("Invalid token. Please try again")
        try:
            claims = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[_ALGORITHM],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                options={"require": ["exp", "iat", "type"]},
            )
        except jwt.ExpiredSignatureError:
            log.info("token_verification_failed", kind=kind.value, reason="expired")
            raise TokenInvalidError("Invalid token. Please try again")
        except jwt.InvalidTokenError as e:
            log.warning(
                "token_verification_failed",
                kind=kind.value,
                reason="invalid",
                error_type=type(e).__name__,
            )
            raise TokenInvalidError("Invalid token. Please try again")

        if claims.get("type") != kind.value:
            log.warning("token_verification_failed", kind=kind.value, reason="wrong_type")
            raise TokenInvalidError("Invalid token. Please try again")
        return claims

    def verify_session(self, token: Optional[str], kind: TokenKind) -> SessionClaims:
        claims = self.verify(token, kind)
        try:
            return SessionClaims.model_validate(claims)
        except PydanticValidationError:
            log.warning("token_verification_failed", kind=kind.value, reason="malformed")
            raise TokenInvalidError("Invalid token. Please try again")

    def verify_registration(self, token: Optional[str]) -> VerificationClaims:
        claims = self.verify(token, TokenKind.VERIFY)
        try:
            return VerificationClaims.model_validate(claims)
        except PydanticValidationError:
            log.warning("token_verification_failed", kind="verify", reason="malformed")
            raise TokenInvalidError("Invalid token. Please try again")

    @staticmethod
    def hash_opaque(value: str) -> str:
        """One-way SHA-256 hex digest used to store and look up reset tokens."""
        return hash_token(value)
