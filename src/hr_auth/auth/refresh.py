from __future__ import annotations

import asyncio
from dataclasses import dataclass

from hr_auth.auth.credentials import UserLookup
from hr_auth.auth.jwt import TokenIssuer, TokenVerifier
from hr_auth.auth.models import Principal, Rejection, TokenPair
from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    principal: Principal
    tokens: TokenPair


class RefreshFlow:
    """
    Exchanges a refresh credential for a new access/refresh pair.

    Unlike access verification this re-reads the user, so deleted accounts
    stop refreshing. Old refresh credentials are not invalidated.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        issuer: TokenIssuer,
        users: UserLookup,
        *,
        timeout: float | None = None,
    ):
        self._verifier = verifier
        self._issuer = issuer
        self._users = users
        self._timeout = timeout

    async def refresh(self, refresh_token: str) -> IssuedSession | Rejection:
        user_id = self._verifier.verify_refresh(refresh_token)
        if isinstance(user_id, Rejection):
            log.info("auth.refresh.rejected reason=%s", user_id.value)
            return user_id

        user = await asyncio.wait_for(self._users.find_user_by_id(user_id), self._timeout)
        if user is None:
            log.info("auth.refresh.rejected reason=%s user_id=%s", Rejection.PRINCIPAL_NOT_FOUND.value, user_id)
            return Rejection.PRINCIPAL_NOT_FOUND

        principal = user.to_principal()
        log.info("auth.refresh.ok user_id=%s company_id=%s", principal.user_id, principal.company_id)
        return IssuedSession(principal=principal, tokens=self._issuer.issue(principal))
