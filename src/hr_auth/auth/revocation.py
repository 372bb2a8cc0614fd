from __future__ import annotations

import redis.asyncio as redis

from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)


class RevocationList:
    """
    Short-lived denylist of user ids, checked on every bearer request.

    Entries only need to outlive the longest access credential that may still
    be in circulation, so the TTL equals the access token lifetime.
    """

    def __init__(self, client: redis.Redis, *, ttl_seconds: int, prefix: str = "hr:revoked:"):
        self._redis = client
        self._ttl = ttl_seconds
        self._prefix = prefix

    def _key(self, user_id: str) -> str:
        return f"{self._prefix}{user_id}"

    async def revoke(self, user_id: str) -> None:
        log.info("revocation.add user_id=%s ttl=%s", user_id, self._ttl)
        await self._redis.setex(self._key(user_id), self._ttl, "1")

    async def is_revoked(self, user_id: str) -> bool:
        return bool(await self._redis.exists(self._key(user_id)))
