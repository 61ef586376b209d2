"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"
    STAFF = "staff"


class MarketScope(str, Enum):
    FULL = "full"
    HALF = "half"


class DistributionMode(str, Enum):
    """优选: rank order with randomized stakes; 平均: even split."""
    PREFERRED = "优选"
    AVERAGE = "平均"


class BetStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SETTLED = "settled"
    CANCELLED = "cancelled"


class BetResult(str, Enum):
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"
    VOID = "void"


class LedgerEntryType(str, Enum):
    # Bet lifecycle
    CHARGE = "charge"
    RETURN = "return"
    # Funding (paired when sender is not an administrator)
    RECHARGE = "recharge"
    TRANSFER_OUT = "transfer-out"
    TRANSFER_IN = "transfer-in"
    # Manual correction
    ADJUSTMENT = "adjustment"


class OddsSource(str, Enum):
    """Where the odds used for a placement came from."""
    PREVIEW = "preview"
    CACHE_FALLBACK = "cache_fallback"
