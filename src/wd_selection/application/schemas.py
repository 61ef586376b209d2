"""Pydantic schemas for wd_selection API."""

from pydantic import BaseModel

from src.wd_common.cents import cents_to_display
from src.wd_selection.domain.models import SelectionEntry, SelectionResult


class SelectionAccountItem(BaseModel):
    id: int
    username: str
    line_key: str
    is_online: bool
    stop_profit_limit_cents: int


class SelectionStatsItem(BaseModel):
    daily_effective_amount_cents: int
    daily_profit_cents: int
    daily_profit_display: str
    weekly_profit_cents: int
    weekly_profit_display: str
    loss_bucket: int


class SelectionFlagsItem(BaseModel):
    stop_profit_reached: bool
    line_conflicted: bool
    offline: bool
    limit_reached: bool


class SelectionEntryItem(BaseModel):
    account: SelectionAccountItem
    stats: SelectionStatsItem
    flags: SelectionFlagsItem

    @classmethod
    def from_entry(cls, entry: SelectionEntry) -> "SelectionEntryItem":
        a, s, f = entry.account, entry.stats, entry.flags
        return cls(
            account=SelectionAccountItem(
                id=a.id,
                username=a.username,
                line_key=a.line_key,
                is_online=a.is_online,
                stop_profit_limit_cents=a.stop_profit_limit,
            ),
            stats=SelectionStatsItem(
                daily_effective_amount_cents=s.daily_effective_amount,
                daily_profit_cents=s.daily_profit,
                daily_profit_display=cents_to_display(s.daily_profit),
                weekly_profit_cents=s.weekly_profit,
                weekly_profit_display=cents_to_display(s.weekly_profit),
                loss_bucket=s.loss_bucket,
            ),
            flags=SelectionFlagsItem(
                stop_profit_reached=f.stop_profit_reached,
                line_conflicted=f.line_conflicted,
                offline=f.offline,
                limit_reached=f.limit_reached,
            ),
        )


class SelectionResponse(BaseModel):
    match_id: str
    generated_at: str
    daily_boundary: str
    weekly_boundary: str
    total_accounts: int
    eligible_accounts: list[SelectionEntryItem]
    excluded_accounts: list[SelectionEntryItem]

    @classmethod
    def from_result(cls, result: SelectionResult) -> "SelectionResponse":
        return cls(
            match_id=result.match_id,
            generated_at=result.generated_at.isoformat(),
            daily_boundary=result.daily_boundary.isoformat(),
            weekly_boundary=result.weekly_boundary.isoformat(),
            total_accounts=result.total_accounts,
            eligible_accounts=[SelectionEntryItem.from_entry(e) for e in result.eligible_accounts],
            excluded_accounts=[SelectionEntryItem.from_entry(e) for e in result.excluded_accounts],
        )
