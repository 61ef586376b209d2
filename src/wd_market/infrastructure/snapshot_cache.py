"""SnapshotCache: Redis-backed latest-snapshot store.

Single writer (the feed ingester via PUT /markets/{match_id}/snapshot), many
readers. Each match is one JSON document; a write replaces it atomically, so
readers see either the old or the new snapshot and never block the writer.
Entries expire after SNAPSHOT_TTL_SECONDS so dead matches age out.
"""

import logging

import redis.asyncio as aioredis
from pydantic import ValidationError as PydanticValidationError

from config.settings import settings
from src.wd_market.domain.models import MarketSnapshot

logger = logging.getLogger(__name__)

_KEY_PREFIX = "snapshot:"


def snapshot_key(match_id: str) -> str:
    return f"{_KEY_PREFIX}{match_id}"


class SnapshotCache:
    def __init__(self, redis: aioredis.Redis, ttl_seconds: int | None = None) -> None:
        self._redis = redis
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.SNAPSHOT_TTL_SECONDS

    async def put(self, snapshot: MarketSnapshot) -> None:
        await self._redis.set(
            snapshot_key(snapshot.match_id),
            snapshot.model_dump_json(),
            ex=self._ttl if self._ttl > 0 else None,
        )

    async def get(self, match_id: str) -> MarketSnapshot | None:
        raw = await self._redis.get(snapshot_key(match_id))
        if raw is None:
            return None
        try:
            return MarketSnapshot.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Discarding unreadable snapshot for match %s", match_id)
            return None
