"""Pydantic schemas for wd_ledger API."""

from pydantic import BaseModel, Field, field_validator

from src.wd_common.cents import cents_to_display
from src.wd_ledger.domain.models import EntryTypeTotal, LedgerEntry

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class RechargeRequest(BaseModel):
    target_user_id: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0, description="Amount to credit in cents")
    description: str | None = Field(None, max_length=255)


class TransferRequest(BaseModel):
    target_user_id: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0, description="Amount to move in cents")
    description: str | None = Field(None, max_length=255)


class AdjustmentRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    amount_cents: int = Field(..., description="Signed correction in cents")
    description: str = Field(..., min_length=1, max_length=255)

    @field_validator("amount_cents")
    @classmethod
    def _non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("amount_cents must not be zero")
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    balance_cents: int
    balance_display: str
    currency: str

    @classmethod
    def from_cents(cls, user_id: str, balance: int, currency: str) -> "BalanceResponse":
        return cls(
            user_id=user_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            currency=currency,
        )


class LedgerEntryItem(BaseModel):
    id: int
    user_id: str
    transaction_id: str
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_before_cents: int
    balance_after_cents: int
    balance_after_display: str
    account_id: int | None
    bet_id: int | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_entry(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            user_id=e.user_id,
            transaction_id=e.transaction_id,
            entry_type=e.entry_type,
            amount_cents=e.amount,
            amount_display=cents_to_display(e.amount),
            balance_before_cents=e.balance_before,
            balance_after_cents=e.balance_after,
            balance_after_display=cents_to_display(e.balance_after),
            account_id=e.account_id,
            bet_id=e.bet_id,
            description=e.description,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class PostingResponse(BaseModel):
    """`entry` is the caller-facing row; `counter_entry` is the other half of a pair."""
    entry: LedgerEntryItem
    counter_entry: LedgerEntryItem | None = None
    new_balance_cents: int
    new_balance_display: str


class LedgerEntriesResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class EntryTypeTotalItem(BaseModel):
    entry_type: str
    count: int
    total_cents: int
    total_display: str

    @classmethod
    def from_total(cls, t: EntryTypeTotal) -> "EntryTypeTotalItem":
        return cls(
            entry_type=t.entry_type,
            count=t.count,
            total_cents=t.total,
            total_display=cents_to_display(t.total),
        )


class LedgerSummaryResponse(BaseModel):
    user_id: str
    balance_cents: int
    balance_display: str
    by_type: list[EntryTypeTotalItem]
