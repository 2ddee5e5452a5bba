"""Tests for the request gate (pure functions and Flask decorators)."""

from datetime import timedelta

from utils.decorators import (
    INSUFFICIENT_ROLE,
    INVALID_OR_EXPIRED_TOKEN,
    NO_TOKEN,
    WRONG_TOKEN_TYPE,
    Identity,
    Rejection,
    authenticate,
    authenticate_admin,
    bearer_token,
)
from utils.sessions import issue_token_pair
from utils.tokens import ACCESS, encode_token


def _bearer(token):
    return f"Bearer {token}"


def test_bearer_token_parsing():
    assert bearer_token(None) is None
    assert bearer_token("") is None
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer  abc ") == "abc"


def test_missing_token(app):
    result = authenticate(None)
    assert result == Rejection(NO_TOKEN, "No token provided", 401)


def test_valid_access_token(app, user):
    pair = issue_token_pair(user.id, user.role)
    assert authenticate(_bearer(pair.access_token)) == Identity(user.id, "USER")


def test_expired_and_malformed_look_alike(app):
    expired = encode_token("user-1", "USER", ACCESS, timedelta(seconds=-1))
    for token in (expired, "garbage"):
        result = authenticate(_bearer(token))
        assert isinstance(result, Rejection)
        assert result.code == INVALID_OR_EXPIRED_TOKEN
        assert result.status == 401


def test_refresh_token_is_not_an_access_token(app, user):
    pair = issue_token_pair(user.id, user.role)
    result = authenticate(_bearer(pair.refresh_token))
    assert result.code == WRONG_TOKEN_TYPE
    assert result.status == 401


def test_admin_gate(app, user, admin):
    user_token = issue_token_pair(user.id, user.role).access_token
    admin_token = issue_token_pair(admin.id, admin.role).access_token

    rejected = authenticate_admin(_bearer(user_token))
    assert rejected.code == INSUFFICIENT_ROLE
    assert rejected.status == 403

    assert authenticate_admin(_bearer(admin_token)) == Identity(admin.id, "ADMIN")
    assert authenticate_admin(None).code == NO_TOKEN


class TestDecorators:
    def test_protected_route_without_token(self, client):
        response = client.get("/api/users/profile")
        assert response.status_code == 401
        assert response.get_json()["error"] == NO_TOKEN

    def test_protected_route_with_refresh_token(self, client, user):
        pair = issue_token_pair(user.id, user.role)
        response = client.get("/api/users/profile", headers={"Authorization": _bearer(pair.refresh_token)})
        assert response.status_code == 401
        assert response.get_json()["error"] == WRONG_TOKEN_TYPE

    def test_protected_route_with_access_token(self, client, user):
        pair = issue_token_pair(user.id, user.role)
        response = client.get("/api/users/profile", headers={"Authorization": _bearer(pair.access_token)})
        assert response.status_code == 200
        assert response.get_json()["user"]["email"] == "a@x.com"

    def test_admin_route_rejects_user_role(self, client, user):
        pair = issue_token_pair(user.id, user.role)
        response = client.get("/api/admin/users", headers={"Authorization": _bearer(pair.access_token)})
        assert response.status_code == 403
        assert response.get_json()["error"] == INSUFFICIENT_ROLE

    def test_admin_route_accepts_admin_role(self, client, admin):
        pair = issue_token_pair(admin.id, admin.role)
        response = client.get("/api/admin/users", headers={"Authorization": _bearer(pair.access_token)})
        assert response.status_code == 200
