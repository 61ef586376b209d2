"""LedgerPoster: the only code path that writes ledger entries.

Single postings (charge / return / adjustment) and paired postings
(transfer-out + transfer-in, or transfer-out + recharge) both go through here.
Nothing is committed: callers run these inside their own transaction so a
paired posting persists both rows or neither.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_common.errors import InsufficientFundsError
from src.wd_ledger.domain.models import LedgerEntry, Posting
from src.wd_ledger.domain.repository import LedgerRepositoryProtocol

logger = logging.getLogger(__name__)


class LedgerPoster:
    def __init__(self, repo: LedgerRepositoryProtocol) -> None:
        self._repo = repo

    async def post(
        self, db: AsyncSession, posting: Posting, require_funds: bool = False
    ) -> LedgerEntry:
        """Lock the user, read the live balance, append one entry.

        With `require_funds`, a debit larger than the current balance raises
        InsufficientFundsError before anything is written.
        """
        await self._repo.lock_user(db, posting.user_id)
        return await self._append(db, posting, require_funds)

    async def post_pair(
        self,
        db: AsyncSession,
        debit: Posting,
        credit: Posting,
        require_funds: bool = True,
    ) -> tuple[LedgerEntry, LedgerEntry]:
        """Write a debit/credit pair as one unit. Locks are taken in sorted user order."""
        if debit.amount >= 0 or credit.amount <= 0:
            raise ValueError("paired posting needs a negative debit and a positive credit")
        for user_id in sorted({debit.user_id, credit.user_id}):
            await self._repo.lock_user(db, user_id)
        debit_entry = await self._append(db, debit, require_funds)
        credit_entry = await self._append(db, credit, require_funds=False)
        logger.info(
            "Paired posting %s: %s %d -> %s",
            debit.transaction_id,
            debit.user_id,
            credit.amount,
            credit.user_id,
        )
        return debit_entry, credit_entry

    async def _append(
        self, db: AsyncSession, posting: Posting, require_funds: bool
    ) -> LedgerEntry:
        balance_before = await self._repo.get_balance(db, posting.user_id)
        if require_funds and posting.amount < 0 and balance_before + posting.amount < 0:
            raise InsufficientFundsError(-posting.amount, balance_before)
        return await self._repo.insert_entry(
            db,
            user_id=posting.user_id,
            transaction_id=posting.transaction_id,
            entry_type=posting.entry_type,
            amount=posting.amount,
            balance_before=balance_before,
            balance_after=balance_before + posting.amount,
            account_id=posting.account_id,
            bet_id=posting.bet_id,
            description=posting.description,
        )
