"""Domain models for wd_betting: pure dataclasses, no SQLAlchemy dependency.

Bet lifecycle: pending → confirmed → settled, or → cancelled from either
non-terminal state. The orchestrator creates bets; only the settlement
reconciler transitions them afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.wd_common.enums import BetStatus

TERMINAL_STATUSES = frozenset({BetStatus.SETTLED.value, BetStatus.CANCELLED.value})
OPEN_STATUSES = (BetStatus.PENDING.value, BetStatus.CONFIRMED.value)


@dataclass
class Bet:
    id: int                          # BIGSERIAL, 0 before insert
    distribution_id: str             # groups the bets of one distribution call (ticket)
    user_id: str                     # placing user
    ledger_user_id: str              # user charged and paid back
    account_id: int
    match_id: str
    market_category: str
    market_scope: str
    market_side: str
    stake: int                       # cents
    odds: Decimal
    odds_source: str                 # OddsSource value
    status: str                      # BetStatus value
    market_line: str | None = None
    spread_gid: str | None = None
    single_limit: int | None = None  # cents
    placement_id: str | None = None
    result: str | None = None        # BetResult value
    score: str | None = None
    payout: int | None = None        # cents, stake included
    profit_loss: int | None = None   # cents, payout - stake
    error_message: str | None = None
    created_at: datetime | None = None
    settled_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass
class FailedPlacement:
    account_id: int
    stake: int                       # cents
    error: str
    username: str | None = None
    error_code: int | None = None
    upstream_code: str | None = None


@dataclass
class ExecutionResult:
    succeeded: list[Bet] = field(default_factory=list)
    failed: list[FailedPlacement] = field(default_factory=list)


@dataclass
class TicketSummary:
    """Read-time aggregate of the bets sharing one distribution_id."""
    distribution_id: str
    match_id: str
    market_category: str
    market_scope: str
    market_side: str
    market_line: str | None
    bet_count: int
    settled_count: int
    cancelled_count: int
    total_stake: int                 # cents, cancelled excluded
    total_payout: int                # cents
    total_profit_loss: int           # cents
    last_bet_id: int
    created_at: datetime | None = None
