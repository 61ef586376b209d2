"""Tests for SnapshotCache over a mocked Redis client."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

from src.wd_market.domain.models import MarketLine, MarketSnapshot
from src.wd_market.infrastructure.snapshot_cache import SnapshotCache, snapshot_key


def _snapshot() -> MarketSnapshot:
    return MarketSnapshot(
        match_id="M-1",
        updated_at=datetime(2026, 3, 4, 5, 0, tzinfo=UTC),
        lines={"handicap:full": [MarketLine(line="-0.5", prices={"home": Decimal("0.95")})]},
    )


async def test_put_writes_json_with_ttl() -> None:
    redis = AsyncMock()
    await SnapshotCache(redis, ttl_seconds=60).put(_snapshot())
    key, payload = redis.set.await_args.args
    assert key == snapshot_key("M-1") == "snapshot:M-1"
    assert redis.set.await_args.kwargs["ex"] == 60
    assert MarketSnapshot.model_validate_json(payload) == _snapshot()


async def test_zero_ttl_means_no_expiry() -> None:
    redis = AsyncMock()
    await SnapshotCache(redis, ttl_seconds=0).put(_snapshot())
    assert redis.set.await_args.kwargs["ex"] is None


async def test_get_parses_stored_snapshot() -> None:
    redis = AsyncMock()
    redis.get.return_value = _snapshot().model_dump_json()
    snapshot = await SnapshotCache(redis).get("M-1")
    assert snapshot is not None
    assert snapshot.lines["handicap:full"][0].prices["home"] == Decimal("0.95")


async def test_missing_or_unreadable_is_none() -> None:
    redis = AsyncMock()
    redis.get.return_value = None
    assert await SnapshotCache(redis).get("M-1") is None
    redis.get.return_value = '{"match_id": 1'
    assert await SnapshotCache(redis).get("M-1") is None
