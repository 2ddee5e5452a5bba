"""
Token codec:
- JWT creation/verification via PyJWT (HS256 by default)
- Claims: sub, role, type ("access" | "refresh"), jti, iss, aud, iat, exp
- Decoded tokens come back as AccessClaims or RefreshClaims, never a raw dict,
  so a refresh-only field can't be read off an access token by accident.

Secret, algorithm, issuer and audience are read from the Flask app config.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import ClassVar, Union

import jwt
from flask import current_app

ACCESS = "access"
REFRESH = "refresh"
TOKEN_KINDS = (ACCESS, REFRESH)


class TokenError(Exception):
    """Base class for tokens that can't be accepted."""


class ExpiredToken(TokenError):
    """Signature is valid but the token is past its expiry."""


class MalformedToken(TokenError):
    """Bad signature, bad structure, wrong issuer/audience or unknown kind."""


@dataclass(frozen=True)
class AccessClaims:
    kind: ClassVar[str] = ACCESS

    subject_id: str
    role: str
    expires_at: datetime


@dataclass(frozen=True)
class RefreshClaims:
    kind: ClassVar[str] = REFRESH

    subject_id: str
    role: str
    token_id: str
    expires_at: datetime


Claims = Union[AccessClaims, RefreshClaims]


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _secret() -> str:
    secret = current_app.config.get("JWT_SECRET")
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def encode_token(subject_id: str, role: str, kind: str, ttl: timedelta) -> str:
    """Sign a token for subject_id that expires ttl from now."""
    if kind not in TOKEN_KINDS:
        raise ValueError(f"Unknown token kind: {kind}")
    now = _now()
    payload = {
        "sub": str(subject_id),
        "role": role,
        "type": kind,
        "jti": generate_jti(),
        "iss": current_app.config["JWT_ISSUER"],
        "aud": current_app.config["JWT_AUDIENCE"],
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, _secret(), algorithm=current_app.config["JWT_ALGORITHM"])


def decode_token(token: str) -> Claims:
    """
    Decode and validate a JWT.
    Raises ExpiredToken when the token is past expiry and MalformedToken for anything else.
    """
    try:
        decoded = jwt.decode(
            token,
            _secret(),
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            issuer=current_app.config["JWT_ISSUER"],
            audience=current_app.config["JWT_AUDIENCE"],
            options={"require": ["sub", "type", "jti", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredToken("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise MalformedToken(f"Invalid token: {exc}") from exc

    expires_at = datetime.fromtimestamp(decoded["exp"], timezone.utc).replace(tzinfo=None)
    role = decoded.get("role")
    if not isinstance(role, str):
        raise MalformedToken("Invalid token: missing role")

    kind = decoded["type"]
    if kind == ACCESS:
        return AccessClaims(subject_id=decoded["sub"], role=role, expires_at=expires_at)
    if kind == REFRESH:
        return RefreshClaims(
            subject_id=decoded["sub"],
            role=role,
            token_id=decoded["jti"],
            expires_at=expires_at,
        )
    raise MalformedToken(f"Invalid token: unknown type {kind!r}")
