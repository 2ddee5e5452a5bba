"""
Refresh-token ledger: persistent record of issued refresh tokens.

Each user may hold at most REFRESH_TOKEN_CAP live (non-revoked) tokens. Older
excess tokens are revoked, not deleted; deletion is left to
cleanup_expired_tokens(), which runs out of band (`flask cleanup-tokens`).
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from flask import current_app
from sqlalchemy import and_, or_

from models import storage
from models.base_model import utcnow
from models.refresh_token import RefreshToken
from utils.tokens import decode_token

logger = logging.getLogger(__name__)


def live_tokens(user_id: str) -> List[RefreshToken]:
    """Non-revoked tokens for user_id, newest first."""
    session = storage.get_session()
    return (
        session.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
        .order_by(RefreshToken.created_at.desc())
        .all()
    )


def store_refresh_token(token: str, user_id: str) -> RefreshToken:
    """
    Persist a freshly signed refresh token.

    If the user already has `cap` or more live tokens, all but the newest
    cap - 1 are revoked first, so at most `cap` remain live after the insert.
    The read and both writes share one commit.
    """
    claims = decode_token(token)
    cap = current_app.config["REFRESH_TOKEN_CAP"]

    existing = live_tokens(user_id)
    if len(existing) >= cap:
        excess = existing[cap - 1:]
        for row in excess:
            row.is_revoked = True
        logger.info("Revoked %d excess refresh token(s) for user %s", len(excess), user_id)

    row = RefreshToken(token=token, user_id=user_id, expires_at=claims.expires_at, is_revoked=False)
    storage.new(row)
    storage.save()
    return row


def find_active(token: str, now: Optional[datetime] = None) -> Optional[RefreshToken]:
    """Return the ledger row for token if it is neither revoked nor expired."""
    now = now or utcnow()
    session = storage.get_session()
    return (
        session.query(RefreshToken)
        .filter(
            RefreshToken.token == token,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > now,
        )
        .first()
    )


def revoke_refresh_token(token: str) -> Optional[str]:
    """
    Revoke a single token and return the id of its owner, or None when the
    token was never recorded. Revoking an already revoked token is a no-op.
    """
    session = storage.get_session()
    row = session.query(RefreshToken).filter(RefreshToken.token == token).first()
    if row is None:
        return None
    row.is_revoked = True
    storage.save()
    return row.user_id


def mark_used(row: RefreshToken) -> bool:
    """
    Revoke row only if it is still live. False means another request revoked
    it between the lookup and this update.
    """
    session = storage.get_session()
    updated = (
        session.query(RefreshToken)
        .filter(RefreshToken.id == row.id, RefreshToken.is_revoked.is_(False))
        .update({RefreshToken.is_revoked: True}, synchronize_session="fetch")
    )
    storage.save()
    return updated == 1


def revoke_all_refresh_tokens(user_id: str) -> int:
    """Revoke every live token for user_id; returns how many were revoked."""
    session = storage.get_session()
    count = (
        session.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
        .update({RefreshToken.is_revoked: True}, synchronize_session="fetch")
    )
    storage.save()
    return count


def cleanup_expired_tokens(now: Optional[datetime] = None) -> int:
    """
    Delete expired rows, and revoked rows older than REVOKED_TOKEN_RETENTION.
    Returns the number of deleted rows.
    """
    now = now or utcnow()
    cutoff = now - current_app.config["REVOKED_TOKEN_RETENTION"]
    session = storage.get_session()
    deleted = (
        session.query(RefreshToken)
        .filter(
            or_(
                RefreshToken.expires_at < now,
                and_(RefreshToken.is_revoked.is_(True), RefreshToken.created_at < cutoff),
            )
        )
        .delete(synchronize_session=False)
    )
    storage.save()
    logger.info("Refresh token cleanup removed %d row(s)", deleted)
    return deleted
