"""Domain models for wd_selection: per-request, never persisted."""

from dataclasses import dataclass, field
from datetime import datetime

from src.wd_registry.domain.models import BookAccount


@dataclass(frozen=True)
class AccountStats:
    daily_effective_amount: int = 0   # cents staked since the daily boundary, cancelled excluded
    daily_profit: int = 0             # cents, settled since the daily boundary
    weekly_profit: int = 0            # cents, settled since the weekly boundary

    @property
    def loss_bucket(self) -> int:
        """0 = losing today, 1 = losing this week, 2 = neither. Lower ranks first."""
        if self.daily_profit < 0:
            return 0
        if self.weekly_profit < 0:
            return 1
        return 2


@dataclass
class SelectionFlags:
    stop_profit_reached: bool = False
    line_conflicted: bool = False
    offline: bool = False
    limit_reached: bool = False       # otherwise eligible, left out by the cap

    @property
    def blocking(self) -> bool:
        return self.stop_profit_reached or self.line_conflicted or self.offline

    def reasons(self) -> list[str]:
        return [name for name, value in vars(self).items() if value]


@dataclass
class SelectionEntry:
    account: BookAccount
    stats: AccountStats
    flags: SelectionFlags = field(default_factory=SelectionFlags)


@dataclass
class SelectionResult:
    match_id: str
    generated_at: datetime
    daily_boundary: datetime
    weekly_boundary: datetime
    total_accounts: int
    eligible_accounts: list[SelectionEntry]
    excluded_accounts: list[SelectionEntry]
