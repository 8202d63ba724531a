"""
MongoDB implementation of the credential store.

Maps UserDoc to the `users` collection using async pymongo. Route and
service code never touches the collection directly.

Persistence rules:
  password_hash is projected out unless the caller opts in. save() $sets
  only the fields assigned since the document was loaded (plus updated_at),
  so a stale in-memory copy never overwrites fields another request changed
  in the meantime, such as a reset token persisted by forgot_password.

  Email uniqueness is a unique index, not only the service-level check:
  two concurrent activations for one address race past find_by_email, and
  the losing insert surfaces as DuplicateEmailError.

  Reset tokens are consumed with a single find_one_and_update that matches
  the hash and an unexpired deadline and clears both fields, so a token
  cannot be redeemed twice even by concurrent requests.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from errors import DuplicateEmailError, ValidationError
from schemas.models.base import to_object_id
from schemas.models.registration import PendingRegistration
from schemas.models.user import UserDoc
from shared.crypto import generate_opaque_token, hash_password, hash_token, verify_password
from shared.datetime_utils import to_millis, utcnow
from shared.logging import get_logger
from shared.validators import normalize_email, passwords_match, validate_email, validate_password

log = get_logger(__name__)

USERS_COLLECTION = "users"

_WITHOUT_PASSWORD = {"password_hash": 0}


def check_new_password(password: Optional[str], password_confirm: Optional[str]) -> None:
    """Raise ValidationError unless *password* meets policy and matches its confirmation."""
    is_valid, missing = validate_password(password)
    if not is_valid:
        raise ValidationError(
            "Password does not meet requirements",
            field="password",
            details={"missing_requirements": missing},
        )
    if not passwords_match(password, password_confirm):
        raise ValidationError("Passwords are not the same", field="password_confirm")


class UserRepository:
    """Credential store backed by the `users` collection.

    Usage:
        repo = UserRepository(db, reset_ttl_seconds=600)
        await repo.ensure_indexes()
        user = await repo.find_by_email("a@x.com", include_password=True)
    """

    def __init__(
        self,
        db: AsyncDatabase,
        *,
        reset_ttl_seconds: int = 600,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._col = db[USERS_COLLECTION]
        self._reset_ttl = timedelta(seconds=reset_ttl_seconds)
        self._clock = clock

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        await self._col.create_index(
            [("password_reset_token_hash", ASCENDING)], sparse=True
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def find_by_email(
        self, email: str, *, include_password: bool = False
    ) -> Optional[UserDoc]:
        projection = None if include_password else _WITHOUT_PASSWORD
        doc = await self._col.find_one({"email": normalize_email(email)}, projection)
        return UserDoc.from_mongo(doc)

    async def find_by_id(
        self, user_id: str, *, include_password: bool = False
    ) -> Optional[UserDoc]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        projection = None if include_password else _WITHOUT_PASSWORD
        doc = await self._col.find_one({"_id": oid}, projection)
        return UserDoc.from_mongo(doc)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, registration: PendingRegistration) -> UserDoc:
        """Validate, hash and insert a new account.

        Raises:
            ValidationError: invalid email, weak password or confirmation mismatch.
            DuplicateEmailError: the unique email index rejected the insert.
        """
        email = normalize_email(registration.email)
        if not validate_email(email):
            raise ValidationError("Please provide a valid email", field="email")
        check_new_password(registration.password, registration.password_confirm)

        now = self._clock()
        user = UserDoc(
            name=registration.name,
            email=email,
            password_hash=hash_password(registration.password),
            created_at=now,
            updated_at=now,
        )
        try:
            result = await self._col.insert_one(user.to_mongo())
        except DuplicateKeyError:
            log.warning("user_create_failed", reason="duplicate_email")
            raise DuplicateEmailError("Email already exists", field="email")

        user.id = result.inserted_id
        user.mark_clean()
        log.info("user_created", user_id=str(user.id))
        return user

    async def save(self, user: UserDoc) -> UserDoc:
        """Validate *user* and persist the fields assigned since it was loaded."""
        self._validate(user)
        user.updated_at = self._clock()
        fields = user.model_dump(by_alias=True, include=user.changed_fields)
        fields.pop("_id", None)
        await self._col.update_one({"_id": user.id}, {"$set": fields})
        user.mark_clean()
        return user

    async def persist_reset_fields(self, user: UserDoc) -> None:
        """Write only the reset token hash and expiry, skipping validation."""
        await self._col.update_one(
            {"_id": user.id},
            {
                "$set": {
                    "password_reset_token_hash": user.password_reset_token_hash,
                    "password_reset_expires": user.password_reset_expires,
                }
            },
        )
        user.mark_clean("password_reset_token_hash", "password_reset_expires")

    async def consume_reset_token(self, token_hash: str) -> Optional[UserDoc]:
        """Atomically clear a live reset token and return its owner, or None."""
        doc = await self._col.find_one_and_update(
            {
                "password_reset_token_hash": token_hash,
                "password_reset_expires": {"$gt": self._clock()},
            },
            {"$set": {"password_reset_token_hash": None, "password_reset_expires": None}},
            projection=_WITHOUT_PASSWORD,
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    # ------------------------------------------------------------------
    # In-memory account operations
    # ------------------------------------------------------------------

    def compare_password(self, plain_password: str, password_hash: Optional[str]) -> bool:
        if not password_hash:
            return False
        return verify_password(plain_password, password_hash)

    def set_password(
        self, user: UserDoc, new_password: Optional[str], password_confirm: Optional[str]
    ) -> None:
        """Validate, hash and stamp a new password on *user*; the caller saves."""
        check_new_password(new_password, password_confirm)
        user.password_hash = hash_password(new_password)
        user.password_changed_at = self._clock()

    def generate_reset_token(self, user: UserDoc) -> str:
        """Set a fresh reset token hash and expiry on *user* and return the raw token."""
        raw_token = generate_opaque_token()
        user.password_reset_token_hash = hash_token(raw_token)
        user.password_reset_expires = self._clock() + self._reset_ttl
        return raw_token

    def has_password_changed_since(self, user: UserDoc, issued_at_ms: int) -> bool:
        """True when the password changed at or after *issued_at_ms*.

        A token minted in the same millisecond as the change counts as stale.
        """
        if user.password_changed_at is None:
            return False
        return to_millis(user.password_changed_at) >= issued_at_ms

    def _validate(self, user: UserDoc) -> None:
        if user.id is None:
            raise ValidationError("Cannot save a user that was never created")
        if not validate_email(user.email):
            raise ValidationError("Please provide a valid email", field="email")
        if (user.password_reset_token_hash is None) != (user.password_reset_expires is None):
            raise ValidationError("Reset token hash and expiry must be set together")
        if "password_hash" in user.changed_fields and not user.password_hash:
            raise ValidationError("Password is required", field="password")
