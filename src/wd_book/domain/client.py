"""Book client Protocol: per-account access to the upstream book.

Implementations raise UpstreamTransientError for network/timeout/busy
failures, SessionExpiredError when the account must log in again and
UpstreamRejectedError for any other refusal.
"""

from decimal import Decimal
from typing import Protocol

from src.wd_book.domain.models import OddsPreview, Placement, SettlementRecord
from src.wd_market.domain.models import AnyDescriptor
from src.wd_registry.domain.models import BookAccount


class BookClientProtocol(Protocol):
    async def preview_odds(
        self, match_id: str, descriptor: AnyDescriptor, account: BookAccount
    ) -> OddsPreview: ...

    async def place_bet(
        self,
        match_id: str,
        descriptor: AnyDescriptor,
        stake: int,
        odds: Decimal,
        account: BookAccount,
    ) -> Placement: ...

    async def fetch_settlements(self, account: BookAccount) -> list[SettlementRecord]: ...
