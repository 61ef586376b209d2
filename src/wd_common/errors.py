"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Permission
  2xxx: Ledger
  3xxx: Market/Odds
  4xxx: Bet/Planning
  5xxx: Upstream book
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/Permission ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class PermissionDeniedError(AppError):
    def __init__(self, detail: str = "Permission denied") -> None:
        super().__init__(1003, detail, 403)


# --- 2xxx: Ledger ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )
        self.required = required
        self.available = available


class TargetUserInvalidError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, detail, 400)


# --- 3xxx: Market/Odds ---

class MarketClosedError(AppError):
    def __init__(self, match_id: str, detail: str = "market closed") -> None:
        super().__init__(3002, f"Market closed for match {match_id}: {detail}", 422)
        self.match_id = match_id
        self.detail = detail


class OddsBelowMinimumError(AppError):
    def __init__(self, odds: object, min_odds: object) -> None:
        super().__init__(
            3003, f"Live odds {odds} are below the minimum odds {min_odds}", 422
        )


class OddsUnavailableError(AppError):
    def __init__(self, match_id: str) -> None:
        super().__init__(3004, f"No odds available for match {match_id}", 503)


# --- 4xxx: Bet/Planning ---

class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, detail, 400)


class NoEligibleAccountsError(AppError):
    def __init__(self, match_id: str) -> None:
        super().__init__(4002, f"No eligible accounts for match {match_id}", 422)


class BetNotFoundError(AppError):
    def __init__(self, bet_id: int) -> None:
        super().__init__(4004, f"Bet not found: {bet_id}", 404)


# --- 5xxx: Upstream book ---

class UpstreamTransientError(AppError):
    """Network failure or timeout talking to the book; safe to retry."""

    def __init__(self, detail: str) -> None:
        super().__init__(5001, f"Upstream unavailable: {detail}", 503)


class UpstreamRejectedError(AppError):
    """The book answered and refused the request."""

    def __init__(self, detail: str, upstream_code: str | None = None) -> None:
        super().__init__(5002, detail, 422)
        self.upstream_code = upstream_code


class SessionExpiredError(UpstreamRejectedError):
    def __init__(self, detail: str = "Upstream session expired", upstream_code: str | None = None) -> None:
        super().__init__(detail, upstream_code)
        self.code = 5003


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
