"""Result of reconciling displayed odds against the book."""

from dataclasses import dataclass, field
from decimal import Decimal

from src.wd_common.enums import OddsSource


@dataclass(frozen=True)
class ReconciledOdds:
    odds: Decimal
    source: OddsSource
    spread_mismatch: bool = False
    message: str | None = None
    returned_spread: str | None = None
    preview_account_id: int | None = None
    # Accounts whose session turned out to be expired while previewing.
    expired_account_ids: tuple[int, ...] = field(default_factory=tuple)

    @property
    def verified(self) -> bool:
        return self.source == OddsSource.PREVIEW
