"""Settlement classification: pure mapping from an upstream record to a bet transition.

    win   → settled, payout = reported payout, else stake + profit
    lose  → settled, payout 0
    draw  → settled, payout = stake
    void  → cancelled, no payout

A record without a result is still open and yields None.
"""

from dataclasses import dataclass

from src.wd_betting.domain.models import Bet
from src.wd_book.domain.models import SettlementRecord
from src.wd_common.enums import BetResult, BetStatus


@dataclass(frozen=True)
class SettlementOutcome:
    status: BetStatus
    result: str
    score: str | None
    payout: int         # cents, stake included
    profit_loss: int    # cents, payout - stake; 0 for cancelled bets


def classify(bet: Bet, record: SettlementRecord) -> SettlementOutcome | None:
    if not record.result:
        return None
    try:
        result = BetResult(record.result.lower())
    except ValueError:
        raise ValueError(f"unknown settlement result {record.result!r}") from None

    if result == BetResult.VOID:
        return SettlementOutcome(
            status=BetStatus.CANCELLED, result=result.value, score=record.score,
            payout=0, profit_loss=0,
        )
    if result == BetResult.WIN:
        if record.payout is not None:
            payout = record.payout
        else:
            payout = bet.stake + (record.profit or 0)
    elif result == BetResult.DRAW:
        payout = bet.stake
    else:
        payout = 0
    return SettlementOutcome(
        status=BetStatus.SETTLED,
        result=result.value,
        score=record.score,
        payout=payout,
        profit_loss=payout - bet.stake,
    )
