from __future__ import annotations

import asyncio
from typing import Any

import httpx

from hr_auth.auth.models import Principal
from hr_auth.configs.logging_config import get_logger
from hr_auth.errors import (
    AppError,
    AuthError,
    BadRequestError,
    DuplicateAccountError,
    InvalidCredentialsError,
)
from hr_auth.webclient.session_store import MemorySessionStore, SessionState, SessionStore, SessionUser

log = get_logger(__name__)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or "request failed"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or "request failed")
    return "request failed"


def _credential_error(resp: httpx.Response) -> AppError:
    """Same classification the server used."""
    message = _error_message(resp)
    if resp.status_code == 401:
        return InvalidCredentialsError(message)
    if resp.status_code == 409:
        return DuplicateAccountError(message)
    if resp.status_code == 400:
        return BadRequestError(message)
    return AppError(message, http_status=resp.status_code)


class SessionClient:
    """
    Holds the signed-in principal and token pair for one client and attaches
    the access token to every call.

    A 401 on an API call triggers exactly one refresh and one retry; when the
    refresh fails the session is cleared and AuthError is raised.
    """

    def __init__(
        self,
        base_url: str = "",
        store: SessionStore | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.session = client or httpx.AsyncClient(base_url=base_url)
        self._store = store or MemorySessionStore()
        self._state = self._store.load()
        self._lock = asyncio.Lock()

    # ----------------------------
    # State
    # ----------------------------

    def current_principal(self) -> Principal | None:
        if self._state.user is None:
            return None
        return self._state.user.to_principal()

    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    def _apply(self, payload: dict[str, Any]) -> Principal:
        self._state = SessionState(
            access_token=payload["accessToken"],
            refresh_token=payload["refreshToken"],
            user=SessionUser.model_validate(payload["user"]),
        )
        self._store.save(self._state)
        return self._state.user.to_principal()

    def _clear(self) -> None:
        self._state = SessionState()
        self._store.clear()

    # ----------------------------
    # Auth operations
    # ----------------------------

    async def _authenticate(self, path: str, body: dict[str, Any]) -> Principal:
        self._clear()
        resp = await self.session.post(path, json=body)
        if resp.status_code != 200:
            log.info("session.auth.failed path=%s status=%s", path, resp.status_code)
            raise _credential_error(resp)
        principal = self._apply(resp.json())
        log.info("session.auth.ok path=%s user_id=%s", path, principal.user_id)
        return principal

    async def login(self, email: str, password: str) -> Principal:
        return await self._authenticate("/login", {"email": email, "password": password})

    async def register(
        self, email: str, password: str, company_name: str, industry: str | None = None
    ) -> Principal:
        body: dict[str, Any] = {"email": email, "password": password, "companyName": company_name}
        if industry:
            body["industry"] = industry
        return await self._authenticate("/register", body)

    def logout(self) -> None:
        # Tokens are stateless; nothing to tell the server.
        self._clear()

    async def _refresh(self, stale_access_token: str | None) -> None:
        async with self._lock:
            # double-check inside lock: a concurrent caller may have refreshed already
            if self._state.access_token != stale_access_token:
                if self._state.access_token is None:
                    # cleared by a failed refresh in another caller
                    raise AuthError()
                return
            refresh_token = self._state.refresh_token
            if not refresh_token:
                raise AuthError()
            resp = await self.session.post("/refresh", json={"refreshToken": refresh_token})
            if resp.status_code != 200:
                log.info("session.refresh.failed status=%s", resp.status_code)
                raise AuthError()
            self._apply(resp.json())
            log.info("session.refresh.ok")

    # ----------------------------
    # API calls
    # ----------------------------

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if self._state.access_token:
            headers["Authorization"] = f"Bearer {self._state.access_token}"
        return await self.session.request(method, url, headers=headers, **kwargs)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        used_token = self._state.access_token
        resp = await self._send(method, url, **kwargs)
        if resp.status_code != 401 or used_token is None:
            return resp

        try:
            await self._refresh(used_token)
        except AuthError:
            self._clear()
            raise AuthError("Session expired. Please log in again.")

        return await self._send(method, url, **kwargs)

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def aclose(self) -> None:
        await self.session.aclose()
