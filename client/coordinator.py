"""
Client-side refresh coordination.

Many requests can discover an expired access token at the same time. The
coordinator makes sure only one of them calls the refresh endpoint; the others
queue up behind it and resume with its result. Construct one per client
session and share it between every request of that session.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx

from client.errors import RefreshFailed
from client.token_store import TokenStore

logger = logging.getLogger(__name__)

# a 401 from these means bad credentials or a dead session, not an expired access token
NO_REFRESH_PATHS = ("/auth/login", "/auth/signup", "/auth/refresh", "/auth/logout")


class RefreshCoordinator:
    def __init__(
        self,
        http: httpx.AsyncClient,
        store: TokenStore,
        *,
        refresh_path: str = "/auth/refresh",
        refresh_timeout: float = 10.0,
        on_session_expired: Optional[Callable[[str], Any]] = None,
        current_path: Optional[Callable[[], str]] = None,
        auth_paths: Sequence[str] = ("/auth", "/login"),
    ):
        self.http = http
        self.store = store
        self.refresh_path = refresh_path
        self.refresh_timeout = refresh_timeout
        self.on_session_expired = on_session_expired
        self.current_path = current_path
        self.auth_paths = tuple(auth_paths)

        self._refreshing = False
        self._waiters: List[asyncio.Future] = []
        # bumped by every refresh and by reset(); a refresh only settles its own cycle
        self._cycle = 0

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    def reset(self) -> None:
        """
        Drop refresh state. Anyone still queued gets RefreshFailed, and a refresh
        still in flight no longer touches the store or later waiters.
        """
        self._cycle += 1
        self._settle(error=RefreshFailed("Refresh state was reset"))

    async def guarded_request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send a request with the current access token.

        On a 401 the request is retried once, after a refresh (shared with any
        concurrent callers). The retry's response is returned as-is, even if it
        is another 401. Raises RefreshFailed when the refresh itself fails, or when
        the session was cleared while the request was in flight.
        """
        headers = kwargs.pop("headers", None)
        sent_token = self.store.access_token
        response = await self.http.request(method, url, headers=self._with_token(headers, sent_token), **kwargs)

        if response.status_code != 401 or self._skips_refresh(url):
            return response

        current = self.store.access_token
        if current is None and sent_token is not None:
            # the session ended (failed refresh or logout) while this request was in flight
            await response.aclose()
            raise RefreshFailed("Session ended while the request was in flight", response)
        if current is not None and current != sent_token:
            # another caller refreshed while this request was in flight
            token = current
        else:
            token = await self.refresh()

        await response.aclose()
        return await self.http.request(method, url, headers=self._with_token(headers, token), **kwargs)

    async def refresh(self) -> str:
        """
        Obtain a new access token, joining the refresh already in flight if any.
        """
        if self._refreshing:
            return await self._wait_for_refresh()

        # set before the first await so concurrent callers queue instead of starting their own
        self._refreshing = True
        self._cycle += 1
        cycle = self._cycle
        try:
            token = await self._rotate()
        except RefreshFailed as exc:
            if cycle == self._cycle:
                self._settle(error=exc)
                self._session_expired()
            raise
        except BaseException:
            # cancellation or an unexpected error; queued callers must not hang
            if cycle == self._cycle:
                self._settle(error=RefreshFailed("Token refresh was interrupted"))
            raise

        if cycle != self._cycle:
            # reset() ran meanwhile; only the caller that started this refresh sees its result
            logger.info("Dropping result of a refresh that was reset")
            return token

        self.store.set(token)
        self._settle(token=token)
        return token

    async def _wait_for_refresh(self) -> str:
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(waiter, self.refresh_timeout)
        except asyncio.TimeoutError as exc:
            raise RefreshFailed("Timed out waiting for token refresh") from exc

    async def _rotate(self) -> str:
        try:
            response = await asyncio.wait_for(self.http.post(self.refresh_path), self.refresh_timeout)
        except asyncio.TimeoutError as exc:
            raise RefreshFailed("Token refresh timed out") from exc
        except httpx.HTTPError as exc:
            raise RefreshFailed(f"Token refresh failed: {exc}") from exc

        if response.status_code != 200:
            raise RefreshFailed(f"Token refresh rejected with status {response.status_code}", response)
        try:
            token = response.json().get("accessToken")
        except ValueError as exc:
            raise RefreshFailed("Token refresh returned invalid JSON", response) from exc
        if not token:
            raise RefreshFailed("Token refresh returned no access token", response)
        return token

    def _settle(self, token: Optional[str] = None, error: Optional[BaseException] = None) -> None:
        waiters, self._waiters = self._waiters, []
        self._refreshing = False
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(token)

    def _session_expired(self) -> None:
        self.store.clear()
        path = self.current_path() if self.current_path else ""
        if any(p in path for p in self.auth_paths):
            return
        logger.info("Session expired, redirecting to /")
        if self.on_session_expired is not None:
            self.on_session_expired("/")

    def _skips_refresh(self, url) -> bool:
        path = httpx.URL(str(url)).path.rstrip("/")
        return path.endswith(NO_REFRESH_PATHS)

    @staticmethod
    def _with_token(headers: Optional[Dict[str, str]], token: Optional[str]) -> Dict[str, str]:
        merged = dict(headers or {})
        if token:
            merged["Authorization"] = f"Bearer {token}"
        return merged
