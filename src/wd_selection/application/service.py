"""AccountSelectionService: loads pool + history, delegates to the pure resolver."""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wd_common.datetime_utils import daily_boundary, utc_now, weekly_boundary
from src.wd_gateway.auth.dependencies import CurrentUser
from src.wd_registry.domain.repository import AccountRegistryProtocol
from src.wd_registry.infrastructure.persistence import AccountRegistry
from src.wd_selection.domain.models import SelectionResult
from src.wd_selection.domain.repository import SelectionStatsProtocol
from src.wd_selection.domain.resolver import resolve
from src.wd_selection.infrastructure.persistence import SelectionStatsRepository


def reset_boundaries(now: datetime) -> tuple[datetime, datetime]:
    daily = daily_boundary(now, settings.RESET_TIMEZONE, settings.RESET_HOUR)
    weekly = weekly_boundary(
        daily, settings.RESET_TIMEZONE, settings.RESET_HOUR, settings.WEEKLY_RESET_WEEKDAY
    )
    return daily, weekly


class AccountSelectionService:
    def __init__(
        self,
        registry: AccountRegistryProtocol | None = None,
        stats: SelectionStatsProtocol | None = None,
    ) -> None:
        self._registry: AccountRegistryProtocol = registry or AccountRegistry()
        self._stats: SelectionStatsProtocol = stats or SelectionStatsRepository()

    async def select_accounts(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        match_id: str,
        limit: int | None = None,
    ) -> SelectionResult:
        now = utc_now()
        daily, weekly = reset_boundaries(now)
        pool = await self._registry.list_pool(db, actor.pool_owner_id)
        stats = await self._stats.account_stats(db, [a.id for a in pool], daily, weekly)
        used = await self._stats.used_line_keys(db, match_id)
        eligible, excluded = resolve(pool, stats, used, limit)
        return SelectionResult(
            match_id=match_id,
            generated_at=now,
            daily_boundary=daily,
            weekly_boundary=weekly,
            total_accounts=len(pool),
            eligible_accounts=eligible,
            excluded_accounts=excluded,
        )
