"""
Request gate.

authenticate() and authenticate_admin() are plain functions of the
Authorization header: they return an Identity or a Rejection and touch no
request state. jwt_required() / admin_required() wrap them for Flask views and
put the identity on flask.g.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional, Union

from flask import g, request

from api.errors import error_response
from models.user import ROLE_ADMIN
from utils.tokens import AccessClaims, ExpiredToken, TokenError, decode_token

logger = logging.getLogger(__name__)

NO_TOKEN = "NO_TOKEN"
INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
WRONG_TOKEN_TYPE = "WRONG_TOKEN_TYPE"
INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: str


@dataclass(frozen=True)
class Rejection:
    code: str
    message: str
    status: int


GateResult = Union[Identity, Rejection]


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def authenticate(authorization: Optional[str]) -> GateResult:
    token = bearer_token(authorization)
    if token is None:
        return Rejection(NO_TOKEN, "No token provided", 401)

    try:
        claims = decode_token(token)
    except TokenError as exc:
        # expired and malformed look the same to the caller
        if not isinstance(exc, ExpiredToken):
            logger.info("Rejected bearer token: %s", exc)
        return Rejection(INVALID_OR_EXPIRED_TOKEN, "Invalid or expired token", 401)

    if not isinstance(claims, AccessClaims):
        return Rejection(WRONG_TOKEN_TYPE, "Invalid token type", 401)
    return Identity(user_id=claims.subject_id, role=claims.role)


def authenticate_admin(authorization: Optional[str]) -> GateResult:
    result = authenticate(authorization)
    if isinstance(result, Identity) and result.role != ROLE_ADMIN:
        return Rejection(INSUFFICIENT_ROLE, "Admin access required", 403)
    return result


def _gate(check):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            result = check(request.headers.get("Authorization"))
            if isinstance(result, Rejection):
                return error_response(result.code, result.message, result.status)
            g.current_user_id = result.user_id
            g.current_user_role = result.role
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def jwt_required():
    """Require a valid access token."""
    return _gate(authenticate)


def admin_required():
    """Require a valid access token whose role is ADMIN."""
    return _gate(authenticate_admin)
