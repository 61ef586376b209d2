"""LedgerRepository: concrete implementation of LedgerRepositoryProtocol.

There is no balance column anywhere: the balance is SUM(amount) over the
user's entries. Writers serialize per user with a transaction-scoped advisory
lock, so read-balance-then-insert is atomic against concurrent postings for
the same user while other users proceed in parallel.

Transaction ownership: the CALLER commits or rolls back. The advisory lock is
released with the transaction.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_common.errors import InternalError
from src.wd_ledger.domain.models import EntryTypeTotal, LedgerEntry

_LOCK_USER_SQL = text("SELECT pg_advisory_xact_lock(hashtext(:user_id))")

_BALANCE_SQL = text("""
    SELECT COALESCE(SUM(amount), 0) AS balance
    FROM ledger_entries
    WHERE user_id = :user_id
""")

_INSERT_ENTRY_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, transaction_id, entry_type, amount,
         balance_before, balance_after, account_id, bet_id, description)
    VALUES
        (:user_id, :transaction_id, :entry_type, :amount,
         :balance_before, :balance_after, :account_id, :bet_id, :description)
    RETURNING id, user_id, transaction_id, entry_type, amount,
              balance_before, balance_after, account_id, bet_id, description, created_at
""")

_LIST_ENTRIES_SQL = text("""
    SELECT id, user_id, transaction_id, entry_type, amount,
           balance_before, balance_after, account_id, bet_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = CAST(:entry_type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")

_SUMMARY_SQL = text("""
    SELECT entry_type, COUNT(*) AS entry_count, COALESCE(SUM(amount), 0) AS total
    FROM ledger_entries
    WHERE user_id = :user_id
    GROUP BY entry_type
    ORDER BY entry_type
""")

_HAS_ENTRY_FOR_BET_SQL = text("""
    SELECT 1
    FROM ledger_entries
    WHERE bet_id = :bet_id AND entry_type = :entry_type
    LIMIT 1
""")


def _row_to_entry(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        transaction_id=row.transaction_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_before=row.balance_before,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        bet_id=row.bet_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    async def lock_user(self, db: AsyncSession, user_id: str) -> None:
        await db.execute(_LOCK_USER_SQL, {"user_id": user_id})

    async def get_balance(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(_BALANCE_SQL, {"user_id": user_id})
        return int(result.scalar_one())

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
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "user_id": user_id,
                "transaction_id": transaction_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_before": balance_before,
                "balance_after": balance_after,
                "account_id": account_id,
                "bet_id": bet_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows: this should never happen")
        return _row_to_entry(row)

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_ENTRIES_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def summarize(self, db: AsyncSession, user_id: str) -> list[EntryTypeTotal]:
        result = await db.execute(_SUMMARY_SQL, {"user_id": user_id})
        return [
            EntryTypeTotal(
                entry_type=row.entry_type,  # type: ignore[attr-defined]
                count=int(row.entry_count),  # type: ignore[attr-defined]
                total=int(row.total),  # type: ignore[attr-defined]
            )
            for row in result.fetchall()
        ]

    async def has_entry_for_bet(
        self, db: AsyncSession, bet_id: int, entry_type: str
    ) -> bool:
        result = await db.execute(
            _HAS_ENTRY_FOR_BET_SQL, {"bet_id": bet_id, "entry_type": entry_type}
        )
        return result.fetchone() is not None
