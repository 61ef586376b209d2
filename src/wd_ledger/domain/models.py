"""Domain models for wd_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    transaction_id: str
    entry_type: str                  # LedgerEntryType value
    amount: int                      # cents, positive=credit negative=debit
    balance_before: int              # cents, derived SUM(amount) at write time
    balance_after: int               # cents, balance_before + amount
    account_id: int | None = None
    bet_id: int | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class Posting:
    """A single entry waiting to be written; balances are filled in under the user lock."""
    user_id: str
    entry_type: str
    amount: int
    transaction_id: str
    description: str | None = None
    account_id: int | None = None
    bet_id: int | None = None


@dataclass
class EntryTypeTotal:
    entry_type: str
    count: int
    total: int   # cents
