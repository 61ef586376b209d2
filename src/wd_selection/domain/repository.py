"""Selection stats Protocol: aggregates over bet history."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_selection.domain.models import AccountStats


class SelectionStatsProtocol(Protocol):
    async def account_stats(
        self,
        db: AsyncSession,
        account_ids: list[int],
        daily_boundary: datetime,
        weekly_boundary: datetime,
    ) -> dict[int, AccountStats]: ...

    async def used_line_keys(self, db: AsyncSession, match_id: str) -> set[str]: ...
