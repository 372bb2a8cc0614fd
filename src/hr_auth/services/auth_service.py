from __future__ import annotations

import asyncio
from typing import Any, Protocol

from hr_auth.auth.credentials import CredentialVerifier, UserLookup, normalize_email
from hr_auth.auth.jwt import TokenIssuer
from hr_auth.auth.models import Rejection, Role, UserRecord
from hr_auth.auth.passwords import DEFAULT_ROUNDS, hash_password
from hr_auth.auth.refresh import IssuedSession, RefreshFlow
from hr_auth.configs.logging_config import get_logger
from hr_auth.errors import AuthError, InvalidCredentialsError

log = get_logger(__name__)


class UserStore(UserLookup, Protocol):
    async def register_company(
        self, *, email: str, password_hash: str, company_name: str, industry: str | None
    ) -> UserRecord: ...

    async def create_user(
        self,
        *,
        company_id: int,
        email: str,
        password_hash: str,
        role: Role,
        profile: dict[str, Any],
    ) -> tuple[UserRecord, dict[str, Any]]: ...

    async def delete_user(self, *, company_id: int, user_id: str) -> bool: ...


def session_payload(session: IssuedSession) -> dict[str, Any]:
    return {
        "user": session.principal.to_public(),
        "accessToken": session.tokens.access_token,
        "refreshToken": session.tokens.refresh_token,
    }


class AuthService:
    """Login, registration and refresh; maps verifier rejections onto AppErrors."""

    def __init__(
        self,
        users: UserStore,
        credentials: CredentialVerifier,
        issuer: TokenIssuer,
        refresh_flow: RefreshFlow,
        *,
        timeout: float | None = None,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self._users = users
        self._credentials = credentials
        self._issuer = issuer
        self._refresh_flow = refresh_flow
        self._timeout = timeout
        self._rounds = bcrypt_rounds

    async def login(self, email: str, password: str) -> IssuedSession:
        result = await self._credentials.verify(email, password)
        if isinstance(result, Rejection):
            raise InvalidCredentialsError()
        log.info("auth.login.ok user_id=%s company_id=%s", result.user_id, result.company_id)
        return IssuedSession(principal=result, tokens=self._issuer.issue(result))

    async def register(
        self, email: str, password: str, company_name: str, industry: str | None = None
    ) -> IssuedSession:
        email = normalize_email(email)
        password_hash = await asyncio.to_thread(hash_password, password, self._rounds)
        user = await asyncio.wait_for(
            self._users.register_company(
                email=email,
                password_hash=password_hash,
                company_name=company_name.strip(),
                industry=industry,
            ),
            self._timeout,
        )
        principal = user.to_principal()
        log.info("auth.register.ok user_id=%s company_id=%s", principal.user_id, principal.company_id)
        return IssuedSession(principal=principal, tokens=self._issuer.issue(principal))

    async def refresh(self, refresh_token: str) -> IssuedSession:
        result = await self._refresh_flow.refresh(refresh_token)
        if isinstance(result, Rejection):
            raise AuthError()
        return result
