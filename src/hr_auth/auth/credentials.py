from __future__ import annotations

import asyncio
from typing import Protocol

from hr_auth.auth.models import Principal, Rejection, UserRecord
from hr_auth.auth.passwords import DEFAULT_ROUNDS, dummy_hash, verify_password
from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)


class UserLookup(Protocol):
    async def find_user_by_email(self, email: str) -> UserRecord | None: ...

    async def find_user_by_id(self, user_id: str) -> UserRecord | None: ...


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialVerifier:
    """
    Checks an email/password pair against the stored bcrypt hash.

    Unknown email and wrong password produce the same rejection, and both run
    one bcrypt comparison so response timing does not reveal which one it was.
    """

    def __init__(
        self,
        users: UserLookup,
        *,
        timeout: float | None = None,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self._users = users
        self._timeout = timeout
        self._rounds = bcrypt_rounds

    async def verify(self, email: str, password: str) -> Principal | Rejection:
        email = normalize_email(email)
        user = await asyncio.wait_for(self._users.find_user_by_email(email), self._timeout)

        stored_hash = user.password_hash if user is not None else dummy_hash(self._rounds)
        # bcrypt is CPU bound; keep it off the event loop
        matches = await asyncio.to_thread(verify_password, password, stored_hash)

        if user is None or not matches:
            log.info("auth.credentials.rejected known_user=%s", user is not None)
            return Rejection.INVALID_CREDENTIALS

        log.info("auth.credentials.ok user_id=%s company_id=%s", user.id, user.company_id)
        return user.to_principal()
