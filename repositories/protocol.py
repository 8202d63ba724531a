"""CredentialStore protocol. AuthService depends on this, not the concrete implementation."""

from typing import Optional, Protocol

from schemas.models.registration import PendingRegistration
from schemas.models.user import UserDoc


class CredentialStore(Protocol):
    async def ensure_indexes(self) -> None: ...

    async def find_by_email(
        self, email: str, *, include_password: bool = False
    ) -> Optional[UserDoc]: ...

    async def find_by_id(
        self, user_id: str, *, include_password: bool = False
    ) -> Optional[UserDoc]: ...

    async def create(self, registration: PendingRegistration) -> UserDoc: ...

    async def save(self, user: UserDoc) -> UserDoc: ...

    async def persist_reset_fields(self, user: UserDoc) -> None: ...

    async def consume_reset_token(self, token_hash: str) -> Optional[UserDoc]: ...

    def compare_password(self, plain_password: str, password_hash: Optional[str]) -> bool: ...

    def set_password(
        self, user: UserDoc, new_password: Optional[str], password_confirm: Optional[str]
    ) -> None: ...

    def generate_reset_token(self, user: UserDoc) -> str: ...

    def has_password_changed_since(self, user: UserDoc, issued_at_ms: int) -> bool: ...
