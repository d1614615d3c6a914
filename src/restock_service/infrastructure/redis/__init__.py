"""Redis-backed dedupe cache with graceful degradation."""

import redis.asyncio as aioredis
import structlog

from restock_service.config import Settings

logger = structlog.get_logger()

DEDUPE_PREFIX = "restock:event:"


async def create_redis_client(settings: Settings) -> aioredis.Redis | None:
    """Connect to Redis, returning None when it is disabled or unreachable."""
    if not settings.redis_enabled:
        return None
    client = aioredis.from_url(
        settings.redis_url,
        decode_responses=False,
        socket_connect_timeout=2,
        socket_timeout=2,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.warning("Redis unavailable, event dedupe disabled", error=str(e))
        await client.aclose()
        return None
    logger.info("Redis connection established")
    return client


class CacheService:
    """Short-lived record of recently seen restock events. No-ops if Redis is unavailable.

    Redelivered webhooks are cheap to drop here, but nothing relies on it:
    the per-subscription claim is what prevents double sends.
    """

    def __init__(self, client: aioredis.Redis | None):
        self.client = client

    async def add_if_absent(self, key: str, ttl_seconds: int = 600) -> bool:
        """Record ``key``. False means it was already seen within the TTL."""
        if not self.client:
            return True
        try:
            created = await self.client.set(
                f"{DEDUPE_PREFIX}{key}", b"1", nx=True, ex=ttl_seconds
            )
        except Exception as e:
            logger.warning("Dedupe check failed", key=key, error=str(e))
            return True
        return bool(created)

    async def forget(self, key: str) -> None:
        if not self.client:
            return
        try:
            await self.client.delete(f"{DEDUPE_PREFIX}{key}")
        except Exception as e:
            logger.warning("Dedupe delete failed", key=key, error=str(e))

    async def health_check(self) -> bool:
        if not self.client:
            return False
        try:
            return await self.client.ping()
        except Exception:
            return False

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None
