import redis.asyncio as redis
from redis.exceptions import RedisError

from hr_auth.configs.logging_config import get_logger

log = get_logger(__name__)


class RedisClient:
    """
    Connection holder for the revocation denylist.

    Stays empty when no redis_url is configured; close() is then a no-op.
    """

    client: redis.Redis = None

    async def connect(self, url: str, *, timeout: float | None = None) -> None:
        # bounded like user-store calls
        self.client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        try:
            await self.client.ping()
        except RedisError as e:
            log.error("redis.connect failed error=%s", str(e))
            await self.close()
            raise
        log.info("redis.connect ok")

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None
            log.info("redis.close")


redis_client = RedisClient()
