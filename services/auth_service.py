"""
Auth flow engine.

Every flow is a two-step pending → committed sequence driven by the kind of
token it consumes:

  activate          registration fields  → signed verification token + emailed nonce
  complete_signup   verification token + nonce → account + session
  login             email + password → session
  refresh           refresh token → rotated session
  authenticate      access token → current account
  update_password   authenticated account + old/new password → account
  forgot_password   email → emailed reset token (hash stored)
  reset_password    reset token + new password → account

Failures are raised as AppError subclasses and left for the HTTP layer to
render. The only flow that repairs its own partial state is forgot_password,
which clears the stored reset hash when the email cannot be delivered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from errors import (
    BadRequestError,
    DeliveryFailedError,
    DuplicateEmailError,
    InvalidAccountError,
    InvalidCredentialsError,
    StalePasswordError,
    TokenInvalidError,
    UserNotFoundError,
)
from infrastructure.email.protocol import EmailProvider
from repositories.protocol import CredentialStore
from repositories.user_repository import check_new_password
from schemas.models.registration import PendingRegistration
from schemas.models.user import UserDoc
from services.token_codec import TokenCodec, TokenKind
from shared.crypto import burn_password_check, tokens_match
from shared.logging import get_logger

log = get_logger(__name__)

SIGNUP_PATH = "/api/v1/users/signup"
RESET_PASSWORD_PATH = "/api/v1/users/reset-password"


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    user: UserDoc


@dataclass(frozen=True)
class ActivationTicket:
    token: str
    nonce: str
    email: str


class AuthService:
    def __init__(
        self,
        store: CredentialStore,
        codec: TokenCodec,
        email_provider: EmailProvider,
    ) -> None:
        self._store = store
        self._codec = codec
        self._email = email_provider

    def _start_session(self, user: UserDoc) -> SessionTokens:
        subject = str(user.id)
        return SessionTokens(
            access_token=self._codec.issue_access(subject),
            refresh_token=self._codec.issue_refresh(subject),
            user=user,
        )

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    async def activate(
        self, registration: PendingRegistration, base_url: str
    ) -> ActivationTicket:
        """Sign the registration and email the activation link.

        Nothing is persisted; the signed token returned to the caller is the
        only record of the pending registration.
        """
        if await self._store.find_by_email(registration.email):
            log.warning("activation_failed", reason="email_exists")
            raise DuplicateEmailError("Email already exists", field="email")

        token, nonce = self._codec.issue_verification(registration)
        link = f"{base_url.rstrip('/')}{SIGNUP_PATH}/{nonce}"

        await self._deliver(
            self._email.send_activation_email(registration.email, registration.name, nonce, link),
            kind="activation",
        )
        log.info("activation_sent")
        return ActivationTicket(token=token, nonce=nonce, email=registration.email)

    async def complete_signup(self, token: Optional[str], nonce: str) -> SessionTokens:
        """Create the account carried by *token* if *nonce* is the one it was issued with."""
        claims = self._codec.verify_registration(token)

        if not nonce or not tokens_match(claims.verify_token, nonce):
            log.warning("signup_failed", reason="nonce_mismatch")
            raise TokenInvalidError("Invalid token. Please try again")

        user = await self._store.create(claims.user)
        log.info("signup_completed", user_id=str(user.id))
        return self._start_session(user)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def login(self, email: Optional[str], password: Optional[str]) -> SessionTokens:
        if not email or not password:
            raise BadRequestError("Please provide email and password!")

        user = await self._store.find_by_email(email, include_password=True)
        if user is None or not user.has_password:
            # Same work and same error whether or not the account exists
            burn_password_check(password)
            log.warning("login_failed", reason="invalid_credentials", email_exists=user is not None)
            raise InvalidCredentialsError("Incorrect email or password")

        if not self._store.compare_password(password, user.password_hash):
            log.warning("login_failed", reason="invalid_password", user_id=str(user.id))
            raise InvalidCredentialsError("Incorrect email or password")

        log.info("login_success", user_id=str(user.id))
        return self._start_session(user)

    async def refresh(self, refresh_token: Optional[str]) -> SessionTokens:
        """Rotate the session: a fresh access/refresh pair for a valid refresh token."""
        claims = self._codec.verify_session(refresh_token, TokenKind.REFRESH)

        user = await self._store.find_by_id(claims.sub)
        if user is None:
            log.warning("token_refresh_failed", reason="user_not_found")
            raise UserNotFoundError(
                "Please login to access these resources!", status_code=400
            )

        if self._store.has_password_changed_since(user, claims.iat_ms):
            log.warning("token_refresh_failed", reason="stale_password", user_id=str(user.id))
            raise StalePasswordError("User recently changed password! Please log in again.")

        log.info("token_refreshed", user_id=str(user.id))
        return self._start_session(user)

    async def authenticate(self, access_token: Optional[str]) -> UserDoc:
        """Resolve the account behind *access_token* for protected endpoints."""
        claims = self._codec.verify_session(access_token, TokenKind.ACCESS)

        user = await self._store.find_by_id(claims.sub)
        if user is None:
            raise UserNotFoundError(
                "The user belonging to this token no longer exists.", status_code=401
            )
        if self._store.has_password_changed_since(user, claims.iat_ms):
            raise StalePasswordError("User recently changed password! Please log in again.")
        return user

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    async def update_password(
        self,
        user_id: str,
        old_password: Optional[str],
        new_password: Optional[str],
        password_confirm: Optional[str],
    ) -> UserDoc:
        if not old_password or not new_password:
            raise BadRequestError("Please provide your old and new passwords")
        if not password_confirm:
            raise BadRequestError("Please confirm your password")

        user = await self._store.find_by_id(user_id, include_password=True)
        if user is None:
            raise UserNotFoundError(
                "The user belonging to this token no longer exists.", status_code=401
            )
        if not user.has_password:
            log.error("password_update_failed", reason="missing_password_hash", user_id=user_id)
            raise InvalidAccountError("Invalid user")

        if not self._store.compare_password(old_password, user.password_hash):
            log.warning("password_update_failed", reason="wrong_password", user_id=user_id)
            raise InvalidCredentialsError("Your current password is wrong.")

        self._store.set_password(user, new_password, password_confirm)
        await self._store.save(user)
        log.info("password_updated", user_id=user_id)
        return user

    async def forgot_password(self, email: Optional[str], base_url: str) -> None:
        if not email:
            raise BadRequestError("Please provide your email")

        user = await self._store.find_by_email(email)
        if user is None:
            raise UserNotFoundError("There is no user with that email address.")

        raw_token = self._store.generate_reset_token(user)
        await self._store.persist_reset_fields(user)

        link = f"{base_url.rstrip('/')}{RESET_PASSWORD_PATH}/{raw_token}"
        try:
            await self._deliver(
                self._email.send_password_reset_email(user.email, user.name, raw_token, link),
                kind="password_reset",
            )
        except DeliveryFailedError:
            user.clear_reset_fields()
            await self._store.persist_reset_fields(user)
            log.warning("password_reset_rolled_back", user_id=str(user.id))
            raise

        log.info("password_reset_requested", user_id=str(user.id))

    async def reset_password(
        self,
        raw_token: str,
        password: Optional[str],
        password_confirm: Optional[str],
    ) -> UserDoc:
        """Set a new password for the owner of an unexpired reset token.

        The token is single use: it is cleared in the same write that finds it.
        The caller is not logged in and must authenticate afterwards.
        """
        if not password or not password_confirm:
            raise BadRequestError("Please provide and confirm your new password")
        # Reject a bad password before touching the token so it stays usable
        check_new_password(password, password_confirm)

        user = await self._store.consume_reset_token(self._codec.hash_opaque(raw_token or ""))
        if user is None:
            log.warning("password_reset_failed", reason="invalid_or_expired")
            raise TokenInvalidError("Token is invalid or has expired", status_code=400)

        self._store.set_password(user, password, password_confirm)
        await self._store.save(user)
        log.info("password_reset_completed", user_id=str(user.id))
        return user

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _deliver(self, send, *, kind: str) -> None:
        try:
            delivered = await send
        except Exception as e:
            log.error("email_delivery_failed", kind=kind, error_type=type(e).__name__)
            raise DeliveryFailedError(
                "There was an error sending the email. Try again later!"
            ) from e
        if not delivered:
            log.error("email_delivery_failed", kind=kind, reason="provider_rejected")
            raise DeliveryFailedError("There was an error sending the email. Try again later!")
