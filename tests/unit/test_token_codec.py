"""Unit tests for TokenCodec."""

from datetime import timedelta

import jwt
import pytest

from config import JWTSettings
from errors import TokenInvalidError
from services.token_codec import TokenCodec, TokenKind
from shared.crypto import hash_token
from shared.datetime_utils import to_millis, utcnow


class TestIssueVerification:
    def test_embeds_registration_and_nonce(self, codec, registration):
        token, nonce = codec.issue_verification(registration)
        claims = codec.verify_registration(token)
        assert claims.verify_token == nonce
        assert claims.user == registration
        assert claims.type == "verify"

    def test_nonce_is_32_random_bytes_hex(self, codec, registration):
        _, first = codec.issue_verification(registration)
        _, second = codec.issue_verification(registration)
        assert len(first) == 64
        int(first, 16)
        assert first != second

    def test_payload_uses_wire_field_names(self, codec, registration, jwt_settings):
        token, _ = codec.issue_verification(registration)
        raw = jwt.decode(
            token,
            jwt_settings.verify_email_secret,
            algorithms=["HS256"],
            audience=jwt_settings.jwt_audience,
        )
        assert raw["user"]["passwordConfirm"] == "secret123"

    def test_ttl_from_settings(self, jwt_settings, registration):
        codec = TokenCodec(jwt_settings)
        token, _ = codec.issue_verification(registration)
        claims = codec.verify(token, TokenKind.VERIFY)
        assert claims["exp"] - claims["iat"] == jwt_settings.verify_email_ttl_seconds


class TestSessionTokens:
    def test_access_claims(self, codec, jwt_settings):
        claims = codec.verify_session(codec.issue_access("abc"), TokenKind.ACCESS)
        assert claims.sub == "abc"
        assert claims.exp - claims.iat == jwt_settings.access_token_ttl_seconds

    def test_refresh_claims(self, codec, jwt_settings):
        claims = codec.verify_session(codec.issue_refresh("abc"), TokenKind.REFRESH)
        assert claims.sub == "abc"
        assert claims.exp - claims.iat == jwt_settings.refresh_token_ttl_seconds

    def test_explicit_ttl_overrides_default(self, codec):
        claims = codec.verify(codec.issue_access("abc", ttl=42), TokenKind.ACCESS)
        assert claims["exp"] - claims["iat"] == 42

    def test_deterministic_for_fixed_clock(self, jwt_settings):
        now = utcnow()
        codec = TokenCodec(jwt_settings, clock=lambda: now)
        assert codec.issue_access("abc") == codec.issue_access("abc")

    def test_iat_follows_clock(self, jwt_settings):
        then = utcnow() - timedelta(minutes=2)
        codec = TokenCodec(jwt_settings, clock=lambda: then)
        claims = codec.verify_session(codec.issue_refresh("abc"), TokenKind.REFRESH)
        assert claims.iat == int(then.timestamp())
        assert claims.iat_ms == to_millis(then)


class TestVerify:
    @pytest.mark.parametrize(
        "issue, kind",
        [
            ("issue_access", TokenKind.REFRESH),
            ("issue_refresh", TokenKind.ACCESS),
            ("issue_access", TokenKind.VERIFY),
        ],
        ids=["access_as_refresh", "refresh_as_access", "access_as_verify"],
    )
    def test_kinds_do_not_cross(self, codec, issue, kind):
        token = getattr(codec, issue)("abc")
        with pytest.raises(TokenInvalidError):
            codec.verify(token, kind)

    def test_type_claim_checked_even_with_shared_secret(self):
        shared = JWTSettings(
            verify_email_secret="s" * 32,
            access_token_secret="s" * 32,
            refresh_token_secret="s" * 32,
        )
        codec = TokenCodec(shared)
        with pytest.raises(TokenInvalidError):
            codec.verify(codec.issue_access("abc"), TokenKind.REFRESH)

    def test_expired(self, jwt_settings):
        past = utcnow() - timedelta(hours=1)
        codec = TokenCodec(jwt_settings, clock=lambda: past)
        token = codec.issue_access("abc")
        with pytest.raises(TokenInvalidError):
            codec.verify(token, TokenKind.ACCESS)

    def test_expired_and_forged_surface_identically(self, jwt_settings, codec):
        past = TokenCodec(jwt_settings, clock=lambda: utcnow() - timedelta(hours=1))
        with pytest.raises(TokenInvalidError) as expired:
            codec.verify(past.issue_access("abc"), TokenKind.ACCESS)
        forger = TokenCodec(jwt_settings.model_copy(update={"access_token_secret": "z" * 32}))
        with pytest.raises(TokenInvalidError) as forged:
            codec.verify(forger.issue_access("abc"), TokenKind.ACCESS)
        assert expired.value.to_dict() == forged.value.to_dict()
        assert expired.value.status_code == forged.value.status_code == 401

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
    def test_garbage(self, codec, token):
        with pytest.raises(TokenInvalidError):
            codec.verify(token, TokenKind.ACCESS)

    def test_wrong_audience(self, jwt_settings):
        other = TokenCodec(jwt_settings.model_copy(update={"jwt_audience": "other"}))
        with pytest.raises(TokenInvalidError):
            TokenCodec(jwt_settings).verify(other.issue_access("abc"), TokenKind.ACCESS)

    def test_malformed_session_payload(self, codec, jwt_settings):
        now = int(utcnow().timestamp())
        token = jwt.encode(
            {
                "iat": now,
                "exp": now + 60,
                "type": "access",
                "iss": jwt_settings.jwt_issuer,
                "aud": jwt_settings.jwt_audience,
            },
            jwt_settings.access_token_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalidError):
            codec.verify_session(token, TokenKind.ACCESS)


def test_hash_opaque_is_sha256_hex(codec):
    assert codec.hash_opaque("abc") == hash_token("abc")
    assert len(codec.hash_opaque("abc")) == 64
