"""
Token pairs: issuance, rotation-on-use and revocation.

A refresh token is single use. rotate_token_pair() revokes the presented token
before minting its replacement, so replaying it fails the ledger lookup.
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from flask import current_app

from utils import ledger
from utils.tokens import ACCESS, REFRESH, RefreshClaims, TokenError, decode_token, encode_token

logger = logging.getLogger(__name__)


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def issue_token_pair(user_id: str, role: str) -> TokenPair:
    """Mint an (access, refresh) pair and record the refresh half in the ledger."""
    access_token = encode_token(user_id, role, ACCESS, current_app.config["ACCESS_TOKEN_EXPIRES"])
    refresh_token = encode_token(user_id, role, REFRESH, current_app.config["REFRESH_TOKEN_EXPIRES"])
    ledger.store_refresh_token(refresh_token, user_id)
    logger.info("Issued token pair for user %s", user_id)
    return TokenPair(access_token, refresh_token)


def rotate_token_pair(refresh_token: str) -> Optional[TokenPair]:
    """
    Exchange a refresh token for a new pair, or return None.

    None covers a malformed or expired token, an access token presented as a
    refresh token, and a token the ledger no longer considers active. The last
    case includes replay of an already rotated token, which can't be told apart
    from natural expiry here.
    """
    try:
        claims = decode_token(refresh_token)
    except TokenError as exc:
        logger.info("Refresh rejected: %s", exc)
        return None
    if not isinstance(claims, RefreshClaims):
        logger.info("Refresh rejected: %s token presented", claims.kind)
        return None

    row = ledger.find_active(refresh_token)
    if row is None:
        logger.warning("Refresh token for user %s is not active (expired, revoked or reused)", claims.subject_id)
        return None

    user = row.user
    if not ledger.mark_used(row):
        logger.warning("Refresh token for user %s was rotated concurrently", claims.subject_id)
        return None

    # role comes from the user record so role changes apply on the next rotation
    return issue_token_pair(user.id, user.role)


def logout(refresh_token: Optional[str]) -> None:
    """End one session. Missing or unknown tokens are ignored."""
    if not refresh_token:
        return
    user_id = ledger.revoke_refresh_token(refresh_token)
    if user_id is not None:
        logger.info("Logged out session for user %s", user_id)


def logout_all(user_id: str) -> int:
    """End every session of user_id."""
    count = ledger.revoke_all_refresh_tokens(user_id)
    logger.info("Revoked %d refresh token(s) for user %s", count, user_id)
    return count
