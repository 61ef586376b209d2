"""SelectionStatsRepository: read-only aggregates over bets.

Stats are per book account regardless of which user placed the bet: the
upstream book sees the account, not our users.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_registry.domain.models import derive_line_key
from src.wd_selection.domain.models import AccountStats

_ACCOUNT_STATS_SQL = text("""
    SELECT account_id,
           COALESCE(SUM(stake) FILTER (
               WHERE created_at >= :daily_boundary AND status <> 'cancelled'
           ), 0) AS daily_effective,
           COALESCE(SUM(profit_loss) FILTER (
               WHERE status = 'settled' AND settled_at >= :daily_boundary
           ), 0) AS daily_profit,
           COALESCE(SUM(profit_loss) FILTER (
               WHERE status = 'settled' AND settled_at >= :weekly_boundary
           ), 0) AS weekly_profit
    FROM bets
    WHERE account_id = ANY(:account_ids)
      AND (created_at >= :weekly_boundary OR settled_at >= :weekly_boundary)
    GROUP BY account_id
""")

_USED_LINES_SQL = text("""
    SELECT DISTINCT a.line_key, a.original_username, a.username
    FROM bets b
    JOIN book_accounts a ON a.id = b.account_id
    WHERE b.match_id = :match_id
      AND b.status <> 'cancelled'
""")


class SelectionStatsRepository:
    async def account_stats(
        self,
        db: AsyncSession,
        account_ids: list[int],
        daily_boundary: datetime,
        weekly_boundary: datetime,
    ) -> dict[int, AccountStats]:
        if not account_ids:
            return {}
        result = await db.execute(
            _ACCOUNT_STATS_SQL,
            {
                "account_ids": account_ids,
                "daily_boundary": daily_boundary,
                "weekly_boundary": weekly_boundary,
            },
        )
        return {
            int(row.account_id): AccountStats(  # type: ignore[attr-defined]
                daily_effective_amount=int(row.daily_effective),  # type: ignore[attr-defined]
                daily_profit=int(row.daily_profit),  # type: ignore[attr-defined]
                weekly_profit=int(row.weekly_profit),  # type: ignore[attr-defined]
            )
            for row in result.fetchall()
        }

    async def used_line_keys(self, db: AsyncSession, match_id: str) -> set[str]:
        result = await db.execute(_USED_LINES_SQL, {"match_id": match_id})
        return {
            derive_line_key(row.line_key, row.original_username, row.username)  # type: ignore[attr-defined]
            for row in result.fetchall()
        }
