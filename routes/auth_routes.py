"""
Account authentication endpoints.

POST  /api/v1/users/verify                    start signup, email activation link
POST  /api/v1/users/signup/{verify_token}     complete signup (Bearer verification token)
POST  /api/v1/users/login                     password login
GET   /api/v1/users/logout                    clear session cookies
GET   /api/v1/users/refresh                   rotate tokens from the refresh cookie
GET   /api/v1/users/me                        current account
PATCH /api/v1/users/update-password           change password (authenticated)
POST  /api/v1/users/forgot-password           email a reset link
PATCH /api/v1/users/reset-password/{token}    set a new password with a reset token

Handlers only translate between HTTP and AuthService: request DTOs in,
cookies and response DTOs out. Errors propagate to the AppError handler.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from config import AppSettings
from dependencies import get_auth_service, get_bearer_token, get_current_user, get_settings
from routes.cookies import REFRESH_COOKIE, clear_session_cookies, set_session_cookies
from schemas.dto.requests.auth import (
    ActivateRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
)
from schemas.dto.responses.auth import (
    AccountResponse,
    ActivateResponse,
    RefreshResponse,
    SessionResponse,
    StatusResponse,
    UserProfileResponse,
)
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.models.user import UserDoc
from services.auth_service import AuthService, SessionTokens

router = APIRouter(
    prefix="/api/v1/users",
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def _session_response(
    response: Response, settings: AppSettings, session: SessionTokens
) -> SessionResponse:
    set_session_cookies(response, settings.jwt, session.access_token, session.refresh_token)
    return SessionResponse(
        success=True,
        access_token=session.access_token,
        user=UserProfileResponse.from_user(session.user),
    )


@router.post("/verify", status_code=201, response_model=ActivateResponse)
async def activate(
    body: ActivateRequest,
    service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> ActivateResponse:
    ticket = await service.activate(body.to_pending(), settings.app_url)
    return ActivateResponse(
        success=True,
        message=f"Please check your email: {ticket.email} to activate your account!",
        token=ticket.token,
    )


@router.post("/signup/{verify_token}", status_code=201, response_model=SessionResponse)
async def complete_signup(
    verify_token: str,
    response: Response,
    token: Optional[str] = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> SessionResponse:
    # The verification token travels as the Bearer credential; the nonce in the path
    session = await service.complete_signup(token, verify_token)
    return _session_response(response, settings, session)


@router.post("/login", response_model=SessionResponse)
async def login(
    body: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> SessionResponse:
    session = await service.login(body.email, body.password)
    return _session_response(response, settings, session)


@router.get("/logout", response_model=MessageResponse)
async def logout(
    response: Response, settings: AppSettings = Depends(get_settings)
) -> MessageResponse:
    clear_session_cookies(response, settings.jwt)
    return MessageResponse(success=True, message="Logged out successfully")


@router.get("/refresh", response_model=RefreshResponse)
async def refresh(
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> RefreshResponse:
    session = await service.refresh(request.cookies.get(REFRESH_COOKIE))
    set_session_cookies(response, settings.jwt, session.access_token, session.refresh_token)
    return RefreshResponse(
        status="success",
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.get("/me", response_model=AccountResponse)
async def me(user: UserDoc = Depends(get_current_user)) -> AccountResponse:
    return AccountResponse(success=True, user=UserProfileResponse.from_user(user))


@router.patch("/update-password", response_model=AccountResponse)
async def update_password(
    body: UpdatePasswordRequest,
    user: UserDoc = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> AccountResponse:
    updated = await service.update_password(
        str(user.id), body.old_password, body.new_password, body.password_confirm
    )
    return AccountResponse(success=True, user=UserProfileResponse.from_user(updated))


@router.post("/forgot-password", response_model=StatusResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    settings: AppSettings = Depends(get_settings),
) -> StatusResponse:
    await service.forgot_password(body.email, settings.app_url)
    return StatusResponse(status="success", message="Token sent to email!")


@router.patch("/reset-password/{token}", response_model=StatusResponse)
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> StatusResponse:
    await service.reset_password(token, body.password, body.password_confirm)
    return StatusResponse(
        status="success",
        message="Password reset successful. Please, log in with your new password.",
    )
