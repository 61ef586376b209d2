"""ExecutionOrchestrator: dispatch a stake plan to the book, one task per account.

Every plan item runs as an independent asyncio task:

    sleep(delay) → deadline check → [shielded] place upstream → record

* Delays are cumulative from dispatch start, so placements leave in plan
  order at strictly increasing instants.
* Past the deadline an item is reported as failed and never sent upstream.
* Once dispatched, the upstream call and its recording are shielded from
  cancellation: money committed upstream is always recorded.
* Placements for one account serialize on that account's session lock.
* Each task records in its own session and transaction. Success writes the
  bet and its charge entry together; failure writes a cancelled bet carrying
  the error and no ledger entry.
* Outcomes are collected by `asyncio.gather` and reduced into
  succeeded/failed in plan order; no shared accumulator.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.wd_betting.domain.models import Bet, ExecutionResult, FailedPlacement
from src.wd_betting.domain.repository import BetRepositoryProtocol
from src.wd_betting.infrastructure.persistence import BetRepository
from src.wd_book.domain.client import BookClientProtocol
from src.wd_book.infrastructure.session_locks import AccountSessionLocks, session_locks
from src.wd_common.database import async_session_factory
from src.wd_common.enums import BetStatus, LedgerEntryType
from src.wd_common.errors import AppError, SessionExpiredError, UpstreamRejectedError
from src.wd_common.id_generator import generate_transaction_id
from src.wd_ledger.domain.models import Posting
from src.wd_ledger.domain.posting import LedgerPoster
from src.wd_ledger.infrastructure.persistence import LedgerRepository
from src.wd_market.domain.models import AnyDescriptor
from src.wd_odds.domain.models import ReconciledOdds
from src.wd_planning.domain.models import PlanItem, StakePlan
from src.wd_registry.domain.repository import AccountRegistryProtocol
from src.wd_registry.infrastructure.persistence import AccountRegistry

logger = logging.getLogger(__name__)

NOT_DISPATCHED = "Not dispatched: distribution window expired"


@dataclass(frozen=True)
class DistributionContext:
    distribution_id: str
    match_id: str
    descriptor: AnyDescriptor
    user_id: str             # placing user
    ledger_user_id: str      # charged user


class ExecutionOrchestrator:
    def __init__(
        self,
        book: BookClientProtocol,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        bets: BetRepositoryProtocol | None = None,
        registry: AccountRegistryProtocol | None = None,
        poster: LedgerPoster | None = None,
        locks: AccountSessionLocks | None = None,
    ) -> None:
        self._book = book
        self._session_factory = session_factory or async_session_factory
        self._bets: BetRepositoryProtocol = bets or BetRepository()
        self._registry: AccountRegistryProtocol = registry or AccountRegistry()
        self._poster = poster or LedgerPoster(LedgerRepository())
        self._locks = locks or session_locks

    async def execute(
        self,
        ctx: DistributionContext,
        plan: StakePlan,
        odds: ReconciledOdds,
        timeout_seconds: float,
    ) -> ExecutionResult:
        loop = asyncio.get_running_loop()
        start = loop.time()
        deadline = start + timeout_seconds
        tasks = [
            asyncio.create_task(self._run_item(ctx, item, odds, start, deadline))
            for item in plan.items
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        result = ExecutionResult()
        for item, outcome in zip(plan.items, outcomes):
            if isinstance(outcome, Bet):
                result.succeeded.append(outcome)
            elif isinstance(outcome, FailedPlacement):
                result.failed.append(outcome)
            else:
                logger.error(
                    "Placement task for account %s crashed: %r", item.account.id, outcome
                )
                result.failed.append(
                    FailedPlacement(
                        account_id=item.account.id,
                        username=item.account.username,
                        stake=item.stake,
                        error="Internal error while placing",
                    )
                )
        logger.info(
            "Distribution %s on %s: %d succeeded, %d failed",
            ctx.distribution_id, ctx.match_id, len(result.succeeded), len(result.failed),
        )
        return result

    async def _run_item(
        self,
        ctx: DistributionContext,
        item: PlanItem,
        odds: ReconciledOdds,
        start: float,
        deadline: float,
    ) -> Bet | FailedPlacement:
        loop = asyncio.get_running_loop()
        wait = start + item.delay_seconds - loop.time()
        if wait > 0:
            await asyncio.sleep(wait)
        if loop.time() > deadline:
            logger.warning("Account %s not dispatched: deadline passed", item.account.id)
            return FailedPlacement(
                account_id=item.account.id,
                username=item.account.username,
                stake=item.stake,
                error=NOT_DISPATCHED,
            )
        return await asyncio.shield(self._place_and_record(ctx, item, odds.odds, odds.source.value))

    async def _place_and_record(
        self,
        ctx: DistributionContext,
        item: PlanItem,
        odds: Decimal,
        odds_source: str,
    ) -> Bet | FailedPlacement:
        account = item.account
        try:
            async with self._locks.for_account(account.id):
                placement = await self._book.place_bet(
                    ctx.match_id, ctx.descriptor, item.stake, odds, account
                )
        except AppError as exc:
            logger.warning(
                "Placement failed: account=%s stake=%d error=%s", account.id, item.stake, exc.message
            )
            await self._record_failure(ctx, item, odds, odds_source, exc)
            return FailedPlacement(
                account_id=account.id,
                username=account.username,
                stake=item.stake,
                error=exc.message,
                error_code=exc.code,
                upstream_code=exc.upstream_code if isinstance(exc, UpstreamRejectedError) else None,
            )

        accepted_odds = placement.odds or odds
        try:
            bet = await self._record_success(ctx, item, accepted_odds, odds_source, placement.placement_id)
        except Exception:
            logger.exception(
                "Placement %s for account %s accepted upstream but not recorded",
                placement.placement_id, account.id,
            )
            return FailedPlacement(
                account_id=account.id,
                username=account.username,
                stake=item.stake,
                error=f"Placed upstream as {placement.placement_id} but recording failed",
            )
        logger.info(
            "Placed: account=%s stake=%d odds=%s placement=%s",
            account.id, item.stake, accepted_odds, placement.placement_id,
        )
        return bet

    def _new_bet(
        self,
        ctx: DistributionContext,
        item: PlanItem,
        odds: Decimal,
        odds_source: str,
        status: BetStatus,
        placement_id: str | None = None,
        error_message: str | None = None,
    ) -> Bet:
        d = ctx.descriptor
        return Bet(
            id=0,
            distribution_id=ctx.distribution_id,
            user_id=ctx.user_id,
            ledger_user_id=ctx.ledger_user_id,
            account_id=item.account.id,
            match_id=ctx.match_id,
            market_category=d.category,
            market_scope=d.scope.value,
            market_side=d.side,
            market_line=d.line_text,
            spread_gid=d.line_gid,
            stake=item.stake,
            odds=odds,
            odds_source=odds_source,
            single_limit=item.single_limit,
            status=status.value,
            placement_id=placement_id,
            error_message=error_message,
        )

    async def _record_success(
        self,
        ctx: DistributionContext,
        item: PlanItem,
        odds: Decimal,
        odds_source: str,
        placement_id: str,
    ) -> Bet:
        async with self._session_factory() as db:
            try:
                bet = await self._bets.insert(
                    db,
                    self._new_bet(ctx, item, odds, odds_source, BetStatus.CONFIRMED, placement_id),
                )
                await self._poster.post(
                    db,
                    Posting(
                        user_id=ctx.ledger_user_id,
                        entry_type=LedgerEntryType.CHARGE.value,
                        amount=-item.stake,
                        transaction_id=generate_transaction_id("BET"),
                        description=f"Bet {bet.id} on {ctx.match_id} via account {item.account.id}",
                        account_id=item.account.id,
                        bet_id=bet.id,
                    ),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return bet

    async def _record_failure(
        self,
        ctx: DistributionContext,
        item: PlanItem,
        odds: Decimal,
        odds_source: str,
        exc: AppError,
    ) -> None:
        async with self._session_factory() as db:
            try:
                await self._bets.insert(
                    db,
                    self._new_bet(
                        ctx, item, odds, odds_source, BetStatus.CANCELLED, error_message=exc.message
                    ),
                )
                if isinstance(exc, SessionExpiredError):
                    await self._registry.set_online(db, item.account.id, False, exc.message)
                await db.commit()
            except Exception:
                await db.rollback()
                logger.exception("Could not record failed placement for account %s", item.account.id)
