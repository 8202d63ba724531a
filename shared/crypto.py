"""
Cryptographic helpers: password hashing, token hashing and random values.

Uses argon2 for passwords (via argon2-cffi) and SHA-256 for opaque tokens.
Opaque tokens (verification nonces, password reset tokens) are 32 random
bytes, hex encoded.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_password_hasher = PasswordHasher()

# Verified against when the account does not exist so the response time of a
# failed login does not reveal whether the email is registered.
_DUMMY_HASH: str = _password_hasher.hash("auth-core-timing-dummy")


def hash_password(plain_password: str) -> str:
    """Hash *plain_password* with argon2id.

    Returns:
        Argon2 hash string (includes algorithm parameters and salt).
    """
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify *plain_password* against an argon2 *password_hash*.

    Returns:
        ``True`` if the password matches, ``False`` for a wrong password or
        an unparseable hash.
    """
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def burn_password_check(plain_password: str) -> None:
    """Spend the same work as a real verification against a dummy hash."""
    verify_password(plain_password, _DUMMY_HASH)


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Used to hash password reset tokens before storing them in the database
    so the plaintext is never persisted.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_opaque_token(num_bytes: int = 32) -> str:
    """Return *num_bytes* of cryptographically secure randomness as hex."""
    return secrets.token_hex(num_bytes)


def tokens_match(expected: str, provided: str) -> bool:
    """Constant-time equality check for two token strings."""
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
