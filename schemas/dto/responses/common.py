"""
Response DTOs shared by every router.

ErrorResponse is the body the AppError handler renders; routers list it in
their ``responses=`` so the error shape shows up in the OpenAPI schema.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """GET /health body; ``checks`` maps dependency name to "ok" or "error"."""

    status: str
    checks: dict[str, str]


class MessageResponse(BaseModel):
    success: bool
    message: Optional[str] = None
