"""
Async API client for the auth endpoints, built on httpx.

    async with AuthClient("https://social.example.com/api") as api:
        await api.login("a@x.com", "secret123")
        response = await api.request("GET", "/users/profile")

The refresh token cookie is kept by the httpx cookie jar; the access token
lives in a TokenStore. Authenticated calls go through the RefreshCoordinator.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import httpx

from client.coordinator import RefreshCoordinator
from client.token_store import TokenStore


class AuthClient:
    def __init__(
        self,
        base_url: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        on_session_expired: Optional[Callable[[str], Any]] = None,
        current_path: Optional[Callable[[], str]] = None,
    ):
        self.store = TokenStore()
        self.http = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self.coordinator = RefreshCoordinator(
            self.http,
            self.store,
            refresh_timeout=timeout,
            on_session_expired=on_session_expired,
            current_path=current_path,
        )

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        return await self.coordinator.guarded_request(method, url, **kwargs)

    async def signup(self, email: str, username: str, name: str, password: str) -> Dict[str, Any]:
        response = await self.http.post(
            "/auth/signup",
            json={"email": email, "username": username, "name": name, "password": password},
        )
        return self._start_session(response)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        response = await self.http.post("/auth/login", json={"email": email, "password": password})
        return self._start_session(response)

    async def refresh(self) -> str:
        return await self.coordinator.refresh()

    async def logout(self) -> Dict[str, Any]:
        try:
            response = await self.http.post("/auth/logout")
            response.raise_for_status()
            return response.json()
        finally:
            self.store.clear()

    async def logout_all(self) -> Dict[str, Any]:
        response = await self.coordinator.guarded_request("POST", "/auth/logout-all")
        response.raise_for_status()
        self.store.clear()
        return response.json()

    def _start_session(self, response: httpx.Response) -> Dict[str, Any]:
        response.raise_for_status()
        data = response.json()
        self.store.set(data["accessToken"], data.get("user"))
        return data
