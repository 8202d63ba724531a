"""
Request DTOs for authentication endpoints.

ActivateRequest          POST /api/v1/users/verify
LoginRequest             POST /api/v1/users/login
UpdatePasswordRequest    PATCH /api/v1/users/update-password
ForgotPasswordRequest    POST /api/v1/users/forgot-password
ResetPasswordRequest     PATCH /api/v1/users/reset-password/{token}

Fields whose absence has a flow-specific error message are Optional here and
checked by AuthService, which raises BadRequestError with that message.
Wrong types still fail schema validation before any flow logic runs.
Clients may send camelCase (passwordConfirm) or snake_case keys.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from schemas.models.registration import PendingRegistration
from shared.validators import normalize_email


class ActivateRequest(BaseModel):
    """Request body for POST /api/v1/users/verify."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, max_length=120)
    email: EmailStr
    password: str = Field(max_length=255)
    password_confirm: str = Field(alias="passwordConfirm", max_length=255)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_email(value)

    def to_pending(self) -> PendingRegistration:
        return PendingRegistration(
            name=self.name.strip() if self.name else None,
            email=self.email,
            password=self.password,
            password_confirm=self.password_confirm,
        )


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/users/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    password: Optional[str] = Field(default=None, max_length=255)


class UpdatePasswordRequest(BaseModel):
    """Request body for PATCH /api/v1/users/update-password."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: Optional[str] = Field(default=None, alias="oldPassword", max_length=255)
    new_password: Optional[str] = Field(default=None, alias="newPassword", max_length=255)
    password_confirm: Optional[str] = Field(
        default=None, alias="passwordConfirm", max_length=255
    )


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /api/v1/users/forgot-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    """Request body for PATCH /api/v1/users/reset-password/{token}.

    The reset token itself travels in the URL path, not the body.
    """

    model_config = ConfigDict(populate_by_name=True)

    password: Optional[str] = Field(default=None, max_length=255)
    password_confirm: Optional[str] = Field(
        default=None, alias="passwordConfirm", max_length=255
    )
