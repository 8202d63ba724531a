"""Unit tests for document and claim models."""

from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from schemas.models.base import MongoBaseModel, PyObjectId, to_object_id
from schemas.models.registration import PendingRegistration
from schemas.models.token import SessionClaims, VerificationClaims
from schemas.models.user import UserDoc


# ── Helpers ───────────────────────────────────────────────────────────────────

def now():
    return datetime.now(timezone.utc)


def oid():
    return ObjectId()


# ── PyObjectId ────────────────────────────────────────────────────────────────

class TestPyObjectId:
    def test_accepts_objectid_instance(self):
        o = oid()
        assert PyObjectId._validate(o) == o

    def test_accepts_valid_string(self):
        s = str(oid())
        result = PyObjectId._validate(s)
        assert isinstance(result, ObjectId)
        assert str(result) == s

    def test_rejects_invalid_string(self):
        with pytest.raises(ValueError):
            PyObjectId._validate("not-an-objectid")

    @pytest.mark.parametrize("value", ["nope", "", None, 42])
    def test_to_object_id_invalid_is_none(self, value):
        assert to_object_id(value) is None

    def test_to_object_id_valid(self):
        o = oid()
        assert to_object_id(str(o)) == o


# ── MongoBaseModel ─────────────────────────────────────────────────────────────

class TestMongoBaseModel:
    def test_from_mongo_returns_none_for_none(self):
        assert MongoBaseModel.from_mongo(None) is None

    def test_id_alias(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        assert m.id == o

    def test_to_mongo_drops_none_id(self):
        m = MongoBaseModel()
        d = m.to_mongo()
        assert "_id" not in d

    def test_to_mongo_keeps_set_id_as_objectid(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        d = m.to_mongo()
        assert d["_id"] == o
        assert isinstance(d["_id"], ObjectId)


# ── UserDoc ───────────────────────────────────────────────────────────────────

class TestUserDoc:
    def _make(self, **overrides):
        base = {
            "_id": oid(),
            "email": "user@example.com",
        }
        base.update(overrides)
        return UserDoc.model_validate(base)

    def test_minimal_instantiation(self):
        doc = self._make()
        assert doc.email == "user@example.com"
        assert doc.password_hash is None
        assert doc.password_changed_at is None
        assert doc.password_reset_token_hash is None
        assert doc.password_reset_expires is None
        assert doc.has_password is False

    def test_has_password(self):
        assert self._make(password_hash="$argon2id$...").has_password is True
        assert self._make(password_hash="").has_password is False

    def test_naive_datetimes_become_utc(self):
        doc = self._make(created_at=datetime(2024, 1, 1, 12))
        assert doc.created_at.tzinfo == timezone.utc

    def test_assignment_is_validated(self):
        doc = self._make()
        doc.password_changed_at = datetime(2024, 1, 1)
        assert doc.password_changed_at.tzinfo == timezone.utc

    def test_clear_reset_fields(self):
        doc = self._make(
            password_reset_token_hash="a" * 64,
            password_reset_expires=now() + timedelta(minutes=10),
        )
        doc.clear_reset_fields()
        assert doc.password_reset_token_hash is None
        assert doc.password_reset_expires is None

    def test_loaded_doc_has_no_changes(self):
        doc = UserDoc.from_mongo({"_id": oid(), "email": "a@x.com", "name": "Ada"})
        assert doc.changed_fields == frozenset()

    def test_assignments_are_tracked(self):
        doc = self._make(name="Ada")
        doc.password_hash = "$argon2id$..."
        doc.clear_reset_fields()
        assert doc.changed_fields == {
            "password_hash",
            "password_reset_token_hash",
            "password_reset_expires",
        }

    def test_mark_clean_named_fields(self):
        doc = self._make()
        doc.name = "Ada"
        doc.password_hash = "$argon2id$..."
        doc.mark_clean("name")
        assert doc.changed_fields == {"password_hash"}
        doc.mark_clean()
        assert doc.changed_fields == frozenset()

    def test_from_mongo_round_trip(self):
        o = oid()
        t = now()
        doc = self._make(**{"_id": o, "created_at": t, "updated_at": t})
        restored = UserDoc.from_mongo(doc.to_mongo())
        assert restored.email == doc.email
        assert restored.created_at == t
        assert str(restored.id) == str(o)


# ── PendingRegistration ───────────────────────────────────────────────────────

class TestPendingRegistration:
    def test_accepts_wire_alias(self):
        reg = PendingRegistration.model_validate(
            {"name": "Ada", "email": "a@x.com", "password": "p", "passwordConfirm": "p"}
        )
        assert reg.password_confirm == "p"

    def test_claim_uses_wire_alias(self):
        reg = PendingRegistration(
            name="Ada", email="a@x.com", password="p", password_confirm="p"
        )
        assert reg.to_claim() == {
            "name": "Ada",
            "email": "a@x.com",
            "password": "p",
            "passwordConfirm": "p",
        }

    def test_frozen(self):
        reg = PendingRegistration(email="a@x.com", password="p", password_confirm="p")
        with pytest.raises(PydanticValidationError):
            reg.email = "b@x.com"


# ── Claims ────────────────────────────────────────────────────────────────────

class TestClaims:
    def test_session_claims_ignore_registered_extras(self):
        claims = SessionClaims.model_validate(
            {
                "sub": "abc",
                "iat": 1,
                "iat_ms": 1500,
                "exp": 2,
                "type": "access",
                "iss": "x",
                "aud": "y",
            }
        )
        assert claims.sub == "abc"
        assert claims.iat_ms == 1500

    def test_session_claims_require_subject(self):
        with pytest.raises(PydanticValidationError):
            SessionClaims.model_validate(
                {"iat": 1, "iat_ms": 1000, "exp": 2, "type": "access"}
            )

    def test_verification_claims_parse_registration(self):
        claims = VerificationClaims.model_validate(
            {
                "user": {
                    "name": "Ada",
                    "email": "a@x.com",
                    "password": "secret123",
                    "passwordConfirm": "secret123",
                },
                "verify_token": "f" * 64,
                "iat": 1,
                "exp": 2,
                "type": "verify",
            }
        )
        assert claims.user.email == "a@x.com"
        assert claims.user.password_confirm == "secret123"
