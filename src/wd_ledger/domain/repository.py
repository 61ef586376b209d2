"""Ledger repository Protocol.

Entries are insert-only. The caller owns the transaction and must hold the
user's posting lock (`lock_user`) between reading the balance and inserting.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_ledger.domain.models import EntryTypeTotal, LedgerEntry


class LedgerRepositoryProtocol(Protocol):
    async def lock_user(self, db: AsyncSession, user_id: str) -> None: ...

    async def get_balance(self, db: AsyncSession, user_id: str) -> int: ...

    async def insert_entry(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        transaction_id: str,
        entry_type: str,
        amount: int,
        balance_before: int,
        balance_after: int,
        account_id: int | None,
        bet_id: int | None,
        description: str | None,
    ) -> LedgerEntry: ...

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...

    async def summarize(self, db: AsyncSession, user_id: str) -> list[EntryTypeTotal]: ...

    async def has_entry_for_bet(
        self, db: AsyncSession, bet_id: int, entry_type: str
    ) -> bool: ...
