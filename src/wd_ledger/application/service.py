"""LedgerApplicationService: recharge, transfer, adjustment and read models.

Write operations run inside one transaction (`commit` on success, `rollback`
on any exception), so paired postings never leave a half-written transfer.

Permission rules:
    recharge   admin → anyone, single credit, no funds check
               agent → own staff only, paired with a transfer-out, funds checked
               staff → forbidden
    transfer   anyone → anyone but self, paired, funds always checked
    adjustment admin only (enforced by the router), single signed entry
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wd_common.cents import cents_to_display
from src.wd_common.enums import LedgerEntryType, UserRole
from src.wd_common.errors import PermissionDeniedError, TargetUserInvalidError
from src.wd_common.id_generator import generate_transaction_id
from src.wd_common.pagination import cursor_decode, cursor_encode
from src.wd_gateway.auth.dependencies import CurrentUser
from src.wd_ledger.application.schemas import (
    BalanceResponse,
    EntryTypeTotalItem,
    LedgerEntriesResponse,
    LedgerEntryItem,
    LedgerSummaryResponse,
    PostingResponse,
)
from src.wd_ledger.domain.models import LedgerEntry, Posting
from src.wd_ledger.domain.posting import LedgerPoster
from src.wd_ledger.domain.repository import LedgerRepositoryProtocol
from src.wd_ledger.infrastructure.persistence import LedgerRepository
from src.wd_registry.domain.models import DirectoryUser
from src.wd_registry.domain.repository import UserDirectoryProtocol
from src.wd_registry.infrastructure.user_directory import UserDirectory

logger = logging.getLogger(__name__)


def _posting_response(
    entry: LedgerEntry, counter: LedgerEntry | None = None
) -> PostingResponse:
    return PostingResponse(
        entry=LedgerEntryItem.from_entry(entry),
        counter_entry=LedgerEntryItem.from_entry(counter) if counter else None,
        new_balance_cents=entry.balance_after,
        new_balance_display=cents_to_display(entry.balance_after),
    )


class LedgerApplicationService:
    def __init__(
        self,
        repo: LedgerRepositoryProtocol | None = None,
        users: UserDirectoryProtocol | None = None,
    ) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()
        self._users: UserDirectoryProtocol = users or UserDirectory()
        self._poster = LedgerPoster(self._repo)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def viewable_user_id(
        self, db: AsyncSession, actor: CurrentUser, user_id: str | None = None
    ) -> str:
        """The ledger `actor` asked for; admins see everyone, agents their own staff."""
        target_id = user_id or actor.user_id
        if target_id != actor.user_id:
            await self._ensure_can_view(db, actor, target_id)
        return target_id

    async def get_balance(
        self, db: AsyncSession, actor: CurrentUser, user_id: str | None = None
    ) -> BalanceResponse:
        target_id = await self.viewable_user_id(db, actor, user_id)
        balance = await self._repo.get_balance(db, target_id)
        return BalanceResponse.from_cents(target_id, balance, settings.CURRENCY)

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerEntriesResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_entries(db, user_id, cursor_id, limit + 1, entry_type)
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerEntriesResponse(
            items=[LedgerEntryItem.from_entry(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def summary(self, db: AsyncSession, user_id: str) -> LedgerSummaryResponse:
        totals = await self._repo.summarize(db, user_id)
        balance = sum(t.total for t in totals)
        return LedgerSummaryResponse(
            user_id=user_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            by_type=[EntryTypeTotalItem.from_total(t) for t in totals],
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def recharge(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        target_user_id: str,
        amount_cents: int,
        description: str | None = None,
    ) -> PostingResponse:
        if actor.role == UserRole.STAFF:
            raise PermissionDeniedError("Staff members cannot recharge")
        target = await self._require_user(db, target_user_id)
        if not actor.is_admin and not self._is_own_staff(actor, target):
            raise PermissionDeniedError("Agents can only recharge their own staff")

        tx_id = generate_transaction_id("RECHARGE")
        note = description or f"Recharge from {actor.user_id}"
        try:
            if actor.is_admin:
                entry = await self._poster.post(
                    db,
                    Posting(
                        user_id=target.id,
                        entry_type=LedgerEntryType.RECHARGE.value,
                        amount=amount_cents,
                        transaction_id=tx_id,
                        description=note,
                    ),
                )
                counter = None
            else:
                counter, entry = await self._poster.post_pair(
                    db,
                    debit=Posting(
                        user_id=actor.user_id,
                        entry_type=LedgerEntryType.TRANSFER_OUT.value,
                        amount=-amount_cents,
                        transaction_id=f"{tx_id}_OUT",
                        description=f"Recharge to {target.id}",
                    ),
                    credit=Posting(
                        user_id=target.id,
                        entry_type=LedgerEntryType.RECHARGE.value,
                        amount=amount_cents,
                        transaction_id=f"{tx_id}_IN",
                        description=note,
                    ),
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Recharge %s by %s (%s): %s +%d",
            tx_id, actor.user_id, actor.role.value, target.id, amount_cents,
        )
        return _posting_response(entry, counter)

    async def transfer(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        target_user_id: str,
        amount_cents: int,
        description: str | None = None,
    ) -> PostingResponse:
        if target_user_id == actor.user_id:
            raise TargetUserInvalidError("Cannot transfer to yourself")
        target = await self._require_user(db, target_user_id)

        tx_id = generate_transaction_id("TRANSFER")
        try:
            debit, credit = await self._poster.post_pair(
                db,
                debit=Posting(
                    user_id=actor.user_id,
                    entry_type=LedgerEntryType.TRANSFER_OUT.value,
                    amount=-amount_cents,
                    transaction_id=f"{tx_id}_OUT",
                    description=description or f"Transfer to {target.id}",
                ),
                credit=Posting(
                    user_id=target.id,
                    entry_type=LedgerEntryType.TRANSFER_IN.value,
                    amount=amount_cents,
                    transaction_id=f"{tx_id}_IN",
                    description=description or f"Transfer from {actor.user_id}",
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return _posting_response(debit, credit)

    async def adjust(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        user_id: str,
        amount_cents: int,
        description: str,
    ) -> PostingResponse:
        await self._require_user(db, user_id)
        try:
            entry = await self._poster.post(
                db,
                Posting(
                    user_id=user_id,
                    entry_type=LedgerEntryType.ADJUSTMENT.value,
                    amount=amount_cents,
                    transaction_id=generate_transaction_id("ADJUST"),
                    description=f"{description} (by {actor.user_id})",
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.warning("Manual adjustment on %s: %+d by %s", user_id, amount_cents, actor.user_id)
        return _posting_response(entry)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_user(self, db: AsyncSession, user_id: str) -> DirectoryUser:
        user = await self._users.get_user(db, user_id)
        if user is None or not user.is_active:
            raise TargetUserInvalidError(f"User not found: {user_id}")
        return user

    @staticmethod
    def _is_own_staff(actor: CurrentUser, target: DirectoryUser) -> bool:
        return (
            actor.role == UserRole.AGENT
            and target.role == UserRole.STAFF.value
            and target.agent_id == actor.user_id
        )

    async def _ensure_can_view(
        self, db: AsyncSession, actor: CurrentUser, user_id: str
    ) -> None:
        if actor.is_admin:
            return
        target = await self._users.get_user(db, user_id)
        if target is None or not self._is_own_staff(actor, target):
            raise PermissionDeniedError("Cannot view another user's ledger")
