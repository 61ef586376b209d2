"""Upstream book error codes.

The book answers rejected previews and placements with short codes such as
"1X008". Each maps to a category; `network` and `status` failures are
transient (retrying later may succeed), `session` means the account must log
in again, everything else is a definitive rejection of this request.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    NETWORK = "network"
    STATUS = "status"
    LIMIT = "limit"
    ODDS = "odds"
    VALIDATION = "validation"
    BALANCE = "balance"
    SESSION = "session"
    OTHER = "other"


TRANSIENT_CATEGORIES = frozenset({ErrorCategory.NETWORK, ErrorCategory.STATUS})


@dataclass(frozen=True)
class UpstreamErrorCode:
    code: str
    message: str
    category: ErrorCategory


def _entry(code: str, message: str, category: ErrorCategory) -> tuple[str, UpstreamErrorCode]:
    return code, UpstreamErrorCode(code, message, category)


UPSTREAM_ERROR_CODES: dict[str, UpstreamErrorCode] = dict([
    # network congestion
    _entry("0X001", "Network congestion, please retry", ErrorCategory.NETWORK),
    _entry("0X002", "Network congestion, please retry", ErrorCategory.NETWORK),
    # book busy / paused
    _entry("0X003", "System busy, please retry later", ErrorCategory.STATUS),
    _entry("0X004", "System busy, please retry later", ErrorCategory.STATUS),
    _entry("0X005", "System busy, please retry later", ErrorCategory.STATUS),
    _entry("0X006", "System paused, please wait", ErrorCategory.STATUS),
    _entry("0X007", "System busy, please retry later", ErrorCategory.STATUS),
    _entry("0X008", "System busy, please retry later", ErrorCategory.STATUS),
    # market state
    _entry("0X009", "Market no longer open for betting", ErrorCategory.STATUS),
    _entry("1X001", "Market not open for betting yet", ErrorCategory.STATUS),
    _entry("1X002", "Betting cut-off time has passed", ErrorCategory.STATUS),
    _entry("1X003", "Match has moved to in-play markets", ErrorCategory.STATUS),
    _entry("1X009", "Trading temporarily suspended", ErrorCategory.STATUS),
    _entry("1X010", "Trading temporarily suspended", ErrorCategory.STATUS),
    _entry("1X011", "Market no longer open for betting", ErrorCategory.STATUS),
    # stake limits
    _entry("1X004", "Stake below the minimum", ErrorCategory.LIMIT),
    _entry("1X008", "Stake exceeds the single-match credit limit", ErrorCategory.LIMIT),
    _entry("1X012", "Total stake exceeds the account limit", ErrorCategory.LIMIT),
    _entry("1X017", "Single-match parlay limit exceeded", ErrorCategory.LIMIT),
    _entry("1X018", "Maximum stake limit reached", ErrorCategory.LIMIT),
    _entry("1X019", "Combined potential win exceeds the limit", ErrorCategory.LIMIT),
    _entry("1X020", "Single-bet potential win exceeds the limit", ErrorCategory.LIMIT),
    _entry("1X022", "Stake below the minimum", ErrorCategory.LIMIT),
    # odds movement
    _entry("1X005", "Line, odds or score has changed", ErrorCategory.ODDS),
    _entry("1X006", "Line, odds or score has changed", ErrorCategory.ODDS),
    _entry("1X013", "Odds error, please place again", ErrorCategory.ODDS),
    _entry("1X015", "Line, odds or score has changed", ErrorCategory.ODDS),
    _entry("1X016", "Line, odds or score has changed", ErrorCategory.ODDS),
    # request validation
    _entry("1X007", "Stake not accepted for this market", ErrorCategory.VALIDATION),
    _entry("1X021", "Duplicate handicap selection", ErrorCategory.VALIDATION),
    _entry("1X023", "Match requires a main-market stake", ErrorCategory.VALIDATION),
    # account
    _entry("1X014", "Login failed, please log in again", ErrorCategory.SESSION),
    _entry("1X024", "Placement failed, please place again", ErrorCategory.OTHER),
    _entry("1X025", "Market switch error", ErrorCategory.OTHER),
])


def lookup(code: str | None) -> UpstreamErrorCode | None:
    if not code:
        return None
    return UPSTREAM_ERROR_CODES.get(code.strip().upper())


def format_upstream_error(code: str | None, original_message: str | None = None) -> str:
    """"[1X008] Stake exceeds ..." for known codes, else the book's own text."""
    info = lookup(code)
    if info is not None:
        return f"[{info.code}] {info.message}"
    if original_message:
        return original_message
    return f"Unknown upstream error code: {code}" if code else "Placement failed"


def category_of(code: str | None) -> ErrorCategory:
    info = lookup(code)
    return info.category if info else ErrorCategory.OTHER


def is_transient(code: str | None) -> bool:
    return category_of(code) in TRANSIENT_CATEGORIES
