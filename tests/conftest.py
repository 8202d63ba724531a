"""
Shared fixtures.

FakeUsersCollection implements the slice of the async pymongo collection API
that UserRepository calls (find_one, insert_one, update_one,
find_one_and_update, create_index), including the unique email index and
``$gt`` filters, so flows run against the real repository without a server.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from config import JWTSettings
from repositories.user_repository import UserRepository
from schemas.models.registration import PendingRegistration
from services.auth_service import AuthService
from services.token_codec import TokenCodec
from shared.datetime_utils import utcnow


def _matches(doc: dict, query: dict) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict) and "$gt" in cond:
            if value is None or not value > cond["$gt"]:
                return False
        elif value != cond:
            return False
    return True


def _project(doc: dict, projection) -> dict:
    out = copy.deepcopy(doc)
    for key, flag in (projection or {}).items():
        if not flag:
            out.pop(key, None)
    return out


class FakeUsersCollection:
    def __init__(self) -> None:
        self.docs: list[dict] = []
        self.indexes: list = []

    async def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        return "_".join(k for k, _ in keys)

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    async def insert_one(self, doc):
        if any(d["email"] == doc["email"] for d in self.docs):
            raise DuplicateKeyError("E11000 duplicate key error collection: users index: email_1")
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    async def update_one(self, query, update):
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(copy.deepcopy(update["$set"]))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def find_one_and_update(
        self, query, update, projection=None, return_document=ReturnDocument.BEFORE
    ):
        for doc in self.docs:
            if _matches(doc, query):
                before = _project(doc, projection)
                doc.update(copy.deepcopy(update["$set"]))
                if return_document == ReturnDocument.AFTER:
                    return _project(doc, projection)
                return before
        return None

    def get(self, **query) -> dict:
        return next(d for d in self.docs if _matches(d, query))


class FakeDatabase:
    def __init__(self) -> None:
        self.users = FakeUsersCollection()

    def __getitem__(self, name: str):
        assert name == "users"
        return self.users


class MutableClock:
    """Callable clock whose time tests can move."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


_SETTINGS_ENV = (
    "ENV",
    "APP_URL",
    "DB_NAME",
    "VERIFY_EMAIL_SECRET",
    "ACCESS_TOKEN_SECRET",
    "REFRESH_TOKEN_SECRET",
    "ZEPTO_API_TOKEN",
    "SENTRY_DSN",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Settings come only from monkeypatch.setenv(), never from .env or the shell."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in _SETTINGS_ENV:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def jwt_settings():
    return JWTSettings(
        verify_email_secret="v" * 32,
        access_token_secret="a" * 32,
        refresh_token_secret="r" * 32,
        cookie_secure=False,
    )


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def repository(fake_db, clock):
    return UserRepository(fake_db, reset_ttl_seconds=600, clock=clock)


@pytest.fixture
def codec(jwt_settings):
    return TokenCodec(jwt_settings)


@pytest.fixture
def email_provider():
    provider = AsyncMock()
    provider.send_activation_email.return_value = True
    provider.send_password_reset_email.return_value = True
    return provider


@pytest.fixture
def auth_service(repository, codec, email_provider):
    return AuthService(repository, codec, email_provider)


@pytest.fixture
def registration():
    return PendingRegistration(
        name="Ada",
        email="a@x.com",
        password="secret123",
        password_confirm="secret123",
    )
