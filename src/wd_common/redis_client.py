"""Redis client factory: backs the market snapshot cache only.

Ledger balances never live here; they are SUM(amount) in PostgreSQL.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger(__name__)

_redis: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis  # noqa: PLW0603
    if _redis is None:
        _redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


async def ping_redis() -> None:
    """Fail startup early when the snapshot cache is unreachable."""
    client = await get_redis()
    await client.ping()
    logger.info("Snapshot cache reachable at %s", settings.REDIS_URL.rsplit("@", 1)[-1])


async def close_redis() -> None:
    global _redis  # noqa: PLW0603
    if _redis is not None:
        await _redis.aclose()
        _redis = None
