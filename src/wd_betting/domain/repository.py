"""Bet repository Protocol."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_betting.domain.models import Bet, TicketSummary


class BetRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, bet: Bet) -> Bet: ...

    async def get_for_update(self, db: AsyncSession, bet_id: int) -> Bet | None: ...

    async def list_bets(
        self,
        db: AsyncSession,
        *,
        user_id: str | None,
        ledger_user_id: str | None,
        match_id: str | None,
        status: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[Bet]: ...

    async def list_tickets(
        self,
        db: AsyncSession,
        *,
        user_id: str | None,
        ledger_user_id: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[TicketSummary]: ...

    async def list_open(
        self, db: AsyncSession, account_ids: list[int] | None
    ) -> list[Bet]: ...

    async def mark_settled(
        self,
        db: AsyncSession,
        bet_id: int,
        result: str,
        score: str | None,
        payout: int,
        profit_loss: int,
    ) -> None: ...

    async def mark_cancelled(
        self,
        db: AsyncSession,
        bet_id: int,
        result: str | None,
        reason: str | None,
    ) -> None: ...
