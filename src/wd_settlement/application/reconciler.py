"""SettlementReconciler: pull terminal results from the book and apply them.

For every account holding open (pending/confirmed) bets:

    fetch settlements (under the account's session lock)
    → for each open bet with a terminal upstream record, in its own transaction:
        lock the row → skip if already terminal → mark settled/cancelled
        → post a RETURN entry for a positive payout, unless one already exists

Idempotent: a second run over settled bets writes nothing. An account whose
fetch fails is reported in `errors` and its bets counted as skipped; the
other accounts still run.
"""

import logging
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.wd_betting.domain.models import Bet
from src.wd_betting.domain.repository import BetRepositoryProtocol
from src.wd_betting.infrastructure.persistence import BetRepository
from src.wd_book.domain.client import BookClientProtocol
from src.wd_book.domain.models import SettlementRecord
from src.wd_book.infrastructure.session_locks import AccountSessionLocks, session_locks
from src.wd_common.database import async_session_factory
from src.wd_common.enums import BetStatus, LedgerEntryType
from src.wd_common.errors import AppError, SessionExpiredError
from src.wd_common.id_generator import generate_transaction_id
from src.wd_ledger.domain.models import Posting
from src.wd_ledger.domain.posting import LedgerPoster
from src.wd_ledger.domain.repository import LedgerRepositoryProtocol
from src.wd_ledger.infrastructure.persistence import LedgerRepository
from src.wd_registry.domain.models import BookAccount
from src.wd_registry.domain.repository import AccountRegistryProtocol
from src.wd_registry.infrastructure.persistence import AccountRegistry
from src.wd_settlement.domain.classification import classify
from src.wd_settlement.domain.models import SyncReport

logger = logging.getLogger(__name__)


class SettlementReconciler:
    def __init__(
        self,
        book: BookClientProtocol,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        bets: BetRepositoryProtocol | None = None,
        registry: AccountRegistryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
        locks: AccountSessionLocks | None = None,
    ) -> None:
        self._book = book
        self._session_factory = session_factory or async_session_factory
        self._bets: BetRepositoryProtocol = bets or BetRepository()
        self._registry: AccountRegistryProtocol = registry or AccountRegistry()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()
        self._poster = LedgerPoster(self._ledger)
        self._locks = locks or session_locks

    async def sync(self, account_ids: list[int] | None = None) -> SyncReport:
        """Reconcile open bets of `account_ids`, or of every account when None."""
        async with self._session_factory() as db:
            open_bets = await self._bets.list_open(db, account_ids)
            by_account: defaultdict[int, list[Bet]] = defaultdict(list)
            for bet in open_bets:
                by_account[bet.account_id].append(bet)
            accounts = await self._registry.get_by_ids(db, sorted(by_account))

        report = SyncReport()
        known = {a.id for a in accounts}
        for account_id in sorted(set(by_account) - known):
            report.skipped += len(by_account[account_id])
            report.errors.append(f"account {account_id}: not found in registry")
        for account in accounts:
            report.merge(await self._sync_account(account, by_account[account.id]))

        logger.info(
            "Settlement sync: %d updated, %d skipped, %d errors",
            report.updated, report.skipped, len(report.errors),
        )
        return report

    async def _sync_account(self, account: BookAccount, bets: list[Bet]) -> SyncReport:
        report = SyncReport()
        try:
            async with self._locks.for_account(account.id):
                records = await self._book.fetch_settlements(account)
        except AppError as exc:
            logger.warning("Settlement fetch failed for account %s: %s", account.id, exc.message)
            report.skipped += len(bets)
            report.errors.append(f"account {account.id}: {exc.message}")
            if isinstance(exc, SessionExpiredError):
                await self._take_offline(account, exc.message)
            return report

        by_placement = {r.placement_id: r for r in records}
        for bet in bets:
            record = by_placement.get(bet.placement_id or "")
            if record is None or not record.result:
                report.skipped += 1
                continue
            try:
                applied = await self._apply(bet.id, record)
            except Exception as exc:
                logger.exception("Could not settle bet %s", bet.id)
                report.errors.append(f"bet {bet.id}: {exc}")
                continue
            if applied:
                report.updated += 1
            else:
                report.skipped += 1
        return report

    async def _apply(self, bet_id: int, record: SettlementRecord) -> bool:
        """Apply one terminal record in its own transaction. False when there was nothing to do."""
        async with self._session_factory() as db:
            try:
                bet = await self._bets.get_for_update(db, bet_id)
                if bet is None or bet.is_terminal:
                    await db.rollback()
                    return False
                outcome = classify(bet, record)
                if outcome is None:
                    await db.rollback()
                    return False

                if outcome.status == BetStatus.CANCELLED:
                    await self._bets.mark_cancelled(
                        db, bet.id, outcome.result, "Voided by book"
                    )
                else:
                    await self._bets.mark_settled(
                        db, bet.id, outcome.result, outcome.score,
                        outcome.payout, outcome.profit_loss,
                    )
                    if outcome.payout > 0 and not await self._ledger.has_entry_for_bet(
                        db, bet.id, LedgerEntryType.RETURN.value
                    ):
                        await self._poster.post(
                            db,
                            Posting(
                                user_id=bet.ledger_user_id,
                                entry_type=LedgerEntryType.RETURN.value,
                                amount=outcome.payout,
                                transaction_id=generate_transaction_id("RETURN"),
                                description=f"Bet {bet.id} {outcome.result} on {bet.match_id}",
                                account_id=bet.account_id,
                                bet_id=bet.id,
                            ),
                        )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Bet %s %s: result=%s payout=%d",
            bet_id, outcome.status.value, outcome.result, outcome.payout,
        )
        return True

    async def _take_offline(self, account: BookAccount, reason: str) -> None:
        async with self._session_factory() as db:
            await self._registry.set_online(db, account.id, False, reason)
            await db.commit()
