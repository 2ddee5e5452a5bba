from __future__ import annotations

from typing import Any, Dict, Optional


class TokenStore:
    """In-memory credentials for one client session.

    Only the access token and the user profile live here; the refresh token
    stays in the HTTP client's cookie jar.
    """

    def __init__(self, access_token: Optional[str] = None, user: Optional[Dict[str, Any]] = None):
        self.access_token = access_token
        self.user = user

    def set(self, access_token: str, user: Optional[Dict[str, Any]] = None) -> None:
        self.access_token = access_token
        if user is not None:
            self.user = user

    def clear(self) -> None:
        self.access_token = None
        self.user = None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None
