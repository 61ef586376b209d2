"""Distribution and bet read services.

placeDistributedBet, in order; every step before dispatch is side-effect
free apart from flipping expired sessions offline:

    validate → funds check → select accounts → (filter to account_ids)
    → reconcile odds → min_odds → plan → dispatch

A closed market is not an error at the call level: the result comes back
with empty succeeded/failed lists and an `aborted_reason`.
"""

import logging
import random

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wd_betting.application.orchestrator import DistributionContext, ExecutionOrchestrator
from src.wd_betting.application.schemas import (
    BetItem,
    BetListResponse,
    DistributeRequest,
    DistributionResponse,
    FailedPlacementItem,
    TicketItem,
    TicketListResponse,
)
from src.wd_betting.domain.repository import BetRepositoryProtocol
from src.wd_betting.infrastructure.persistence import BetRepository
from src.wd_book.domain.client import BookClientProtocol
from src.wd_book.infrastructure.http_client import get_book_client
from src.wd_common.enums import UserRole
from src.wd_common.errors import (
    InsufficientFundsError,
    MarketClosedError,
    NoEligibleAccountsError,
    OddsBelowMinimumError,
    ValidationError,
)
from src.wd_common.id_generator import generate_id
from src.wd_common.pagination import cursor_decode, cursor_encode
from src.wd_common.redis_client import get_redis
from src.wd_gateway.auth.dependencies import CurrentUser
from src.wd_ledger.domain.repository import LedgerRepositoryProtocol
from src.wd_ledger.infrastructure.persistence import LedgerRepository
from src.wd_market.domain.repository import SnapshotStoreProtocol
from src.wd_market.infrastructure.snapshot_cache import SnapshotCache
from src.wd_odds.application.reconciler import OddsReconciler
from src.wd_planning.domain.planner import build_plan
from src.wd_planning.domain.ranges import IntRange, parse_range, parse_stake_range
from src.wd_registry.domain.models import BookAccount
from src.wd_registry.domain.repository import AccountRegistryProtocol
from src.wd_registry.infrastructure.persistence import AccountRegistry
from src.wd_selection.application.service import AccountSelectionService
from src.wd_selection.domain.models import SelectionEntry, SelectionResult

logger = logging.getLogger(__name__)


def _stake_range_for(
    caller_range: IntRange | None, sport: str, live: bool
):  # -> Callable[[BookAccount], IntRange]
    min_units = settings.MIN_STAKE_UNITS
    unit = settings.STAKE_UNIT_CENTS

    def range_for(account: BookAccount) -> IntRange:
        if caller_range is not None:
            return caller_range
        ceiling = account.stake_ceiling(sport, live)
        if ceiling:
            return IntRange(min_units, max(ceiling // unit, min_units))
        return IntRange(min_units, settings.DEFAULT_MAX_STAKE_UNITS)

    return range_for


def _restrict_to(
    selection: SelectionResult, account_ids: list[int]
) -> list[SelectionEntry]:
    """Keep requested accounts only; any requested account that was not admitted is an error."""
    wanted = set(account_ids)
    eligible = [e for e in selection.eligible_accounts if e.account.id in wanted]
    problems: list[str] = []
    excluded_by_id = {e.account.id: e for e in selection.excluded_accounts}
    admitted = {e.account.id for e in eligible}
    for account_id in sorted(wanted - admitted):
        entry = excluded_by_id.get(account_id)
        if entry is None:
            problems.append(f"{account_id}: not in your account pool")
        else:
            problems.append(f"{account_id}: {', '.join(entry.flags.reasons())}")
    if problems:
        raise ValidationError("Requested accounts not eligible: " + "; ".join(problems))
    return eligible


class DistributionService:
    def __init__(
        self,
        selection: AccountSelectionService | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
        registry: AccountRegistryProtocol | None = None,
        book: BookClientProtocol | None = None,
        cache: SnapshotStoreProtocol | None = None,
        orchestrator: ExecutionOrchestrator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._selection = selection or AccountSelectionService()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()
        self._registry: AccountRegistryProtocol = registry or AccountRegistry()
        self._book = book
        self._cache = cache
        self._orchestrator = orchestrator
        self._rng = rng

    async def distribute(
        self, db: AsyncSession, actor: CurrentUser, req: DistributeRequest
    ) -> DistributionResponse:
        unit = settings.STAKE_UNIT_CENTS
        if req.total_amount_cents % unit != 0:
            raise ValidationError(f"total_amount_cents must be a multiple of {unit}")
        caller_range = parse_stake_range(req.single_limit_range)
        interval = parse_range(
            req.interval_range or settings.DEFAULT_INTERVAL_RANGE, "interval range"
        )
        if interval is None:
            raise ValidationError("interval_range is required")

        charge_user_id = actor.charge_user_id
        balance = await self._ledger.get_balance(db, charge_user_id)
        if balance < req.total_amount_cents:
            raise InsufficientFundsError(req.total_amount_cents, balance)

        limit = None if req.account_ids else req.quantity
        selection = await self._selection.select_accounts(db, actor, req.match_id, limit)
        if req.account_ids:
            entries = _restrict_to(selection, req.account_ids)
        else:
            entries = selection.eligible_accounts
        if not entries:
            raise NoEligibleAccountsError(req.match_id)
        accounts = [e.account for e in entries]

        async def take_offline(account: BookAccount, reason: str) -> None:
            await self._registry.set_online(db, account.id, False, reason)
            await db.commit()

        reconciler = OddsReconciler(await self._snapshot_cache(), self._book_client())
        try:
            odds = await reconciler.reconcile(
                req.match_id, req.descriptor, accounts, on_session_expired=take_offline
            )
        except MarketClosedError as exc:
            logger.info("Distribution aborted on %s: %s", req.match_id, exc.detail)
            return DistributionResponse(
                distribution_id=None,
                match_id=req.match_id,
                requested_total_cents=req.total_amount_cents,
                aborted_reason=exc.message,
            )

        if req.min_odds is not None and odds.odds < req.min_odds:
            raise OddsBelowMinimumError(odds.odds, req.min_odds)

        expired = set(odds.expired_account_ids)
        accounts = [a for a in accounts if a.id not in expired]
        plan = build_plan(
            mode=req.mode,
            accounts=accounts,
            total_cents=req.total_amount_cents,
            unit_cents=unit,
            min_units=settings.MIN_STAKE_UNITS,
            interval=interval,
            range_for=_stake_range_for(caller_range, req.sport, req.live),
            quantity=req.quantity,
            rng=self._rng,
        )

        ctx = DistributionContext(
            distribution_id=generate_id(),
            match_id=req.match_id,
            descriptor=req.descriptor,
            user_id=actor.user_id,
            ledger_user_id=charge_user_id,
        )
        result = await self._get_orchestrator().execute(
            ctx, plan, odds, settings.DISTRIBUTION_TIMEOUT_SECONDS
        )
        return DistributionResponse(
            distribution_id=ctx.distribution_id,
            match_id=req.match_id,
            odds=str(odds.odds),
            odds_source=odds.source.value,
            odds_verified=odds.verified,
            spread_mismatch=odds.spread_mismatch,
            odds_message=odds.message,
            requested_total_cents=req.total_amount_cents,
            planned_total_cents=plan.planned_total,
            succeeded=[BetItem.from_bet(b) for b in result.succeeded],
            failed=[FailedPlacementItem.from_failure(f) for f in result.failed],
        )

    async def _snapshot_cache(self) -> SnapshotStoreProtocol:
        if self._cache is None:
            self._cache = SnapshotCache(await get_redis())
        return self._cache

    def _book_client(self) -> BookClientProtocol:
        if self._book is None:
            self._book = get_book_client()
        return self._book

    def _get_orchestrator(self) -> ExecutionOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = ExecutionOrchestrator(self._book_client())
        return self._orchestrator


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

_repo: BetRepositoryProtocol = BetRepository()


def _scope(actor: CurrentUser) -> dict[str, str | None]:
    """admin: everything; agent: bets charged to it (own + staff); staff: own bets."""
    if actor.is_admin:
        return {"user_id": None, "ledger_user_id": None}
    if actor.role == UserRole.AGENT:
        return {"user_id": None, "ledger_user_id": actor.user_id}
    return {"user_id": actor.user_id, "ledger_user_id": None}


async def list_bets(
    db: AsyncSession,
    actor: CurrentUser,
    match_id: str | None,
    status: str | None,
    cursor: str | None,
    limit: int,
) -> BetListResponse:
    # Fetch limit+1 to detect has_more without a COUNT(*) query
    bets = await _repo.list_bets(
        db,
        **_scope(actor),
        match_id=match_id,
        status=status,
        cursor_id=cursor_decode(cursor),
        limit=limit + 1,
    )
    has_more = len(bets) > limit
    page = bets[:limit]
    return BetListResponse(
        items=[BetItem.from_bet(b) for b in page],
        next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
        has_more=has_more,
    )


async def list_tickets(
    db: AsyncSession,
    actor: CurrentUser,
    cursor: str | None,
    limit: int,
) -> TicketListResponse:
    tickets = await _repo.list_tickets(
        db, **_scope(actor), cursor_id=cursor_decode(cursor), limit=limit + 1
    )
    has_more = len(tickets) > limit
    page = tickets[:limit]
    return TicketListResponse(
        items=[TicketItem.from_ticket(t) for t in page],
        next_cursor=cursor_encode(page[-1].last_bet_id) if has_more and page else None,
        has_more=has_more,
    )
