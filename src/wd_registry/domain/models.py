"""Domain models for wd_registry: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

UNKNOWN_LINE_KEY = "UNKNOWN"
_LINE_PREFIX_LEN = 4


def derive_line_key(
    explicit: str | None, original_username: str | None, username: str | None
) -> str:
    """Grouping key for accounts sharing upstream provenance.

    The stored `line_key` wins. Accounts without one fall back to the first
    four characters (upper-cased) of their original upstream username, then of
    their current username.
    """
    if explicit and explicit.strip():
        return explicit.strip().upper()
    base = (original_username or username or "").strip()
    if not base:
        return UNKNOWN_LINE_KEY
    return base[:_LINE_PREFIX_LEN].upper()


@dataclass
class StakeCeiling:
    prematch: int | None = None   # cents
    live: int | None = None       # cents


@dataclass
class BookAccount:
    id: int
    user_id: str                       # owning user
    agent_id: str | None
    username: str
    original_username: str | None
    line_key: str
    stop_profit_limit: int             # cents, 0 = no limit
    is_online: bool
    is_enabled: bool
    proxy_url: str | None = None
    stake_ceilings: dict[str, StakeCeiling] = field(default_factory=dict)  # keyed by sport
    created_at: datetime | None = None

    def stake_ceiling(self, sport: str, live: bool) -> int | None:
        """Per-sport ceiling for the period; the other period's ceiling is the fallback."""
        ceiling = self.stake_ceilings.get(sport)
        if ceiling is None:
            return None
        primary, secondary = (ceiling.live, ceiling.prematch) if live else (ceiling.prematch, ceiling.live)
        return primary or secondary or None


@dataclass
class DirectoryUser:
    """Read-only view of a user managed by the external admin flow."""
    id: str
    role: str                # UserRole value
    agent_id: str | None = None
    is_active: bool = True
