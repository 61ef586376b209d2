"""Value objects exchanged with the upstream book client."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class OddsPreview:
    odds: Decimal | None
    closed: bool
    message: str | None = None
    spread: str | None = None          # line text as the book printed it


@dataclass(frozen=True)
class Placement:
    placement_id: str
    odds: Decimal | None = None        # odds the book actually accepted, if reported


@dataclass(frozen=True)
class SettlementRecord:
    placement_id: str
    result: str | None                 # BetResult value; None while still open
    score: str | None = None
    payout: int | None = None          # cents, stake included
    profit: int | None = None          # cents, win amount excluding stake
