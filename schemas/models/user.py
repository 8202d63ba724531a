"""
User document model.

Maps to the `users` MongoDB collection.

password_hash is excluded from every projection unless a caller asks for it
(login, update-password), mirroring a select("+password") opt-in. The reset
token is stored only as its SHA-256 hash next to an absolute expiry; both are
None whenever no reset is pending.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc


class UserDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    name: Optional[str] = None
    email: str
    password_hash: Optional[str] = None
    password_changed_at: Optional[datetime] = None
    password_reset_token_hash: Optional[str] = None
    password_reset_expires: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(
        "password_changed_at",
        "password_reset_expires",
        "created_at",
        "updated_at",
    )
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # pymongo hands back naive datetimes unless tz_aware=True
        return ensure_utc(value) if value is not None else None

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def clear_reset_fields(self) -> None:
        self.password_reset_token_hash = None
        self.password_reset_expires = None
