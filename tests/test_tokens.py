"""Unit tests for the token codec and the credential verifier."""

from datetime import timedelta

import jwt
import pytest

from api import create_app
from api.config import TestingConfig
from utils.security import hash_password, verify_password
from utils.tokens import (
    ACCESS,
    REFRESH,
    AccessClaims,
    ExpiredToken,
    MalformedToken,
    RefreshClaims,
    decode_token,
    encode_token,
)


class TestPasswords:
    def test_verify_accepts_correct_password(self):
        pw_hash = hash_password("secret123")
        assert pw_hash != "secret123"
        assert verify_password("secret123", pw_hash) is True

    def test_verify_rejects_wrong_password(self):
        assert verify_password("wrong", hash_password("secret123")) is False

    def test_verify_rejects_garbage_hash(self):
        assert verify_password("secret123", "not-a-hash") is False


class TestCodec:
    def test_access_token_round_trip(self, app):
        token = encode_token("user-1", "USER", ACCESS, timedelta(minutes=15))
        claims = decode_token(token)
        assert isinstance(claims, AccessClaims)
        assert claims.kind == "access"
        assert claims.subject_id == "user-1"
        assert claims.role == "USER"
        assert not hasattr(claims, "token_id")

    def test_refresh_token_carries_token_id(self, app):
        token = encode_token("user-1", "ADMIN", REFRESH, timedelta(days=7))
        claims = decode_token(token)
        assert isinstance(claims, RefreshClaims)
        assert claims.kind == "refresh"
        assert claims.role == "ADMIN"
        assert claims.token_id

    def test_tokens_minted_together_are_distinct(self, app):
        a = encode_token("user-1", "USER", REFRESH, timedelta(days=7))
        b = encode_token("user-1", "USER", REFRESH, timedelta(days=7))
        assert a != b

    def test_standard_claims(self, app):
        token = encode_token("user-1", "USER", ACCESS, timedelta(minutes=15))
        payload = jwt.decode(token, options={"verify_signature": False})
        assert payload["iss"] == "social-media-app"
        assert payload["aud"] == "social-media-app-users"
        assert payload["type"] == "access"
        assert payload["exp"] - payload["iat"] == 15 * 60

    def test_expired_token(self, app):
        token = encode_token("user-1", "USER", ACCESS, timedelta(seconds=-30))
        with pytest.raises(ExpiredToken):
            decode_token(token)

    def test_tampered_token_is_malformed(self, app):
        token = encode_token("user-1", "USER", ACCESS, timedelta(minutes=15))
        header, payload, signature = token.split(".")
        forged = ".".join([header, payload, signature[::-1]])
        with pytest.raises(MalformedToken):
            decode_token(forged)

    def test_garbage_is_malformed(self, app):
        with pytest.raises(MalformedToken):
            decode_token("not.a.jwt")

    def test_wrong_secret_is_malformed(self, app):
        token = jwt.encode(
            {"sub": "user-1", "role": "USER", "type": "access", "jti": "x", "iat": 0, "exp": 4102444800,
             "iss": "social-media-app", "aud": "social-media-app-users"},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(MalformedToken):
            decode_token(token)

    def test_wrong_audience_is_malformed(self, app):
        app.config["JWT_AUDIENCE"] = "someone-else"
        token = encode_token("user-1", "USER", ACCESS, timedelta(minutes=15))
        app.config["JWT_AUDIENCE"] = "social-media-app-users"
        with pytest.raises(MalformedToken):
            decode_token(token)

    def test_unknown_kind_is_rejected(self, app):
        with pytest.raises(ValueError):
            encode_token("user-1", "USER", "session", timedelta(minutes=1))

    def test_missing_secret_fails_at_startup(self, monkeypatch):
        monkeypatch.setattr(TestingConfig, "JWT_SECRET", None)
        with pytest.raises(RuntimeError):
            create_app("test")
