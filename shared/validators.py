"""
Input validators. Framework-agnostic, pure functions.

The credential store runs these before hashing a new password; the reset
flow runs them before it consumes a reset token so a rejected password
does not burn the token.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

import validators as _validators

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

_LETTER = re.compile(r"[A-Za-z]")
_DIGIT = re.compile(r"[0-9]")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")


def validate_password(password: Optional[str]) -> Tuple[bool, List[str]]:
    """Check *password* against the password policy.

    Returns:
        ``(is_valid, missing_requirements)``; the list is empty when valid.
    """
    if not password:
        return False, ["Password is required"]

    missing = []
    if len(password) < MIN_PASSWORD_LENGTH:
        missing.append(f"At least {MIN_PASSWORD_LENGTH} characters")
    if len(password) > MAX_PASSWORD_LENGTH:
        missing.append(f"Maximum {MAX_PASSWORD_LENGTH} characters")
    if not _LETTER.search(password):
        missing.append("At least one letter")
    if not _DIGIT.search(password):
        missing.append("At least one number")
    if _CONTROL.search(password):
        missing.append("Contains invalid characters")

    return len(missing) == 0, missing


def passwords_match(password: Optional[str], password_confirm: Optional[str]) -> bool:
    return bool(password) and password == password_confirm


def validate_email(email: Optional[str]) -> bool:
    """Return True if *email* is a syntactically valid address."""
    if not email:
        return False
    return bool(_validators.email(email))


def normalize_email(email: str) -> str:
    return email.strip().lower()
