"""Snapshot store Protocol: single writer (feed ingester), many readers."""

from typing import Protocol

from src.wd_market.domain.models import MarketSnapshot


class SnapshotStoreProtocol(Protocol):
    async def put(self, snapshot: MarketSnapshot) -> None: ...

    async def get(self, match_id: str) -> MarketSnapshot | None: ...
