"""
Pending registration payload.

Never persisted. The whole record travels inside the signed verification
token as a plain dict and becomes a user document only when the activation
link is followed. Field names on the wire match the request body so the
token payload can be read back with model_validate().
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PendingRegistration(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: Optional[str] = None
    email: str
    password: str
    password_confirm: str = Field(alias="passwordConfirm")

    def to_claim(self) -> dict:
        return self.model_dump(by_alias=True)
