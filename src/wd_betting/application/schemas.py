"""Pydantic schemas for wd_betting API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.wd_betting.domain.models import Bet, FailedPlacement, TicketSummary
from src.wd_common.cents import cents_to_display
from src.wd_common.enums import BetResult, BetStatus, DistributionMode
from src.wd_market.domain.models import MarketDescriptor

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DistributeRequest(BaseModel):
    match_id: str = Field(..., min_length=1, max_length=64)
    descriptor: MarketDescriptor
    total_amount_cents: int = Field(..., gt=0, description="Total stake across all accounts")
    mode: DistributionMode = DistributionMode.AVERAGE
    single_limit_range: str | None = Field(
        None, max_length=32, description="'min-max' stake units per account; empty = account ceiling"
    )
    interval_range: str | None = Field(
        None, max_length=32, description="'min-max' seconds between placements"
    )
    quantity: int | None = Field(None, ge=1, le=500, description="Maximum number of accounts")
    min_odds: Decimal | None = Field(None, gt=0)
    account_ids: list[int] | None = Field(None, description="Restrict to these accounts")
    sport: str = Field("football", max_length=32)
    live: bool = False


class SyncSettlementsRequest(BaseModel):
    account_ids: list[int] | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


def _stake_charged(b: Bet) -> bool:
    # Failed placements are cancelled before any charge; a book void cancels
    # after the charge and posts no return.
    if b.status != BetStatus.CANCELLED:
        return True
    return b.result == BetResult.VOID


class BetItem(BaseModel):
    id: int
    distribution_id: str
    account_id: int
    match_id: str
    market_category: str
    market_scope: str
    market_side: str
    market_line: str | None
    spread_gid: str | None
    stake_cents: int
    stake_display: str
    odds: str
    odds_source: str
    single_limit_cents: int | None
    status: str
    placement_id: str | None
    result: str | None
    score: str | None
    payout_cents: int | None
    profit_loss_cents: int | None
    error_message: str | None
    stake_charged: bool = Field(
        ..., description="Whether the stake is debited on the ledger. A voided bet keeps its charge"
    )
    created_at: str
    settled_at: str | None

    @classmethod
    def from_bet(cls, b: Bet) -> "BetItem":
        return cls(
            id=b.id,
            distribution_id=b.distribution_id,
            account_id=b.account_id,
            match_id=b.match_id,
            market_category=b.market_category,
            market_scope=b.market_scope,
            market_side=b.market_side,
            market_line=b.market_line,
            spread_gid=b.spread_gid,
            stake_cents=b.stake,
            stake_display=cents_to_display(b.stake),
            odds=str(b.odds),
            odds_source=b.odds_source,
            single_limit_cents=b.single_limit,
            status=b.status,
            placement_id=b.placement_id,
            result=b.result,
            score=b.score,
            payout_cents=b.payout,
            profit_loss_cents=b.profit_loss,
            error_message=b.error_message,
            stake_charged=_stake_charged(b),
            created_at=b.created_at.isoformat() if b.created_at else "",
            settled_at=b.settled_at.isoformat() if b.settled_at else None,
        )


class FailedPlacementItem(BaseModel):
    account_id: int
    username: str | None
    stake_cents: int
    error: str
    error_code: int | None
    upstream_code: str | None

    @classmethod
    def from_failure(cls, f: FailedPlacement) -> "FailedPlacementItem":
        return cls(
            account_id=f.account_id,
            username=f.username,
            stake_cents=f.stake,
            error=f.error,
            error_code=f.error_code,
            upstream_code=f.upstream_code,
        )


class DistributionResponse(BaseModel):
    distribution_id: str | None
    match_id: str
    odds: str | None = None
    odds_source: str | None = None
    odds_verified: bool = False
    spread_mismatch: bool = False
    odds_message: str | None = None
    requested_total_cents: int
    planned_total_cents: int = 0
    succeeded: list[BetItem] = Field(default_factory=list)
    failed: list[FailedPlacementItem] = Field(default_factory=list)
    aborted_reason: str | None = None


class BetListResponse(BaseModel):
    items: list[BetItem]
    next_cursor: str | None
    has_more: bool


class TicketItem(BaseModel):
    distribution_id: str
    match_id: str
    market_category: str
    market_scope: str
    market_side: str
    market_line: str | None
    bet_count: int
    settled_count: int
    cancelled_count: int
    total_stake_cents: int
    total_payout_cents: int
    total_profit_loss_cents: int
    total_profit_loss_display: str
    created_at: str

    @classmethod
    def from_ticket(cls, t: TicketSummary) -> "TicketItem":
        return cls(
            distribution_id=t.distribution_id,
            match_id=t.match_id,
            market_category=t.market_category,
            market_scope=t.market_scope,
            market_side=t.market_side,
            market_line=t.market_line,
            bet_count=t.bet_count,
            settled_count=t.settled_count,
            cancelled_count=t.cancelled_count,
            total_stake_cents=t.total_stake,
            total_payout_cents=t.total_payout,
            total_profit_loss_cents=t.total_profit_loss,
            total_profit_loss_display=cents_to_display(t.total_profit_loss),
            created_at=t.created_at.isoformat() if t.created_at else "",
        )


class TicketListResponse(BaseModel):
    items: list[TicketItem]
    next_cursor: str | None
    has_more: bool
