"""BetRepository: raw SQL persistence for bets.

Transaction ownership: the CALLER commits. `get_for_update` takes a row lock
so two settlement runs cannot transition the same bet concurrently.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_betting.domain.models import Bet, TicketSummary
from src.wd_common.errors import InternalError

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, distribution_id, user_id, ledger_user_id, account_id, match_id,
    market_category, market_scope, market_side, market_line, spread_gid,
    stake, odds, odds_source, single_limit, status, placement_id,
    result, score, payout, profit_loss, error_message, created_at, settled_at
"""

_INSERT_BET_SQL = text(f"""
    INSERT INTO bets (distribution_id, user_id, ledger_user_id, account_id, match_id,
        market_category, market_scope, market_side, market_line, spread_gid,
        stake, odds, odds_source, single_limit, status, placement_id, error_message)
    VALUES (:distribution_id, :user_id, :ledger_user_id, :account_id, :match_id,
        :market_category, :market_scope, :market_side, :market_line, :spread_gid,
        :stake, :odds, :odds_source, :single_limit, :status, :placement_id, :error_message)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets WHERE id = :id
    FOR UPDATE
""")

_LIST_BETS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = CAST(:user_id AS TEXT))
      AND (CAST(:ledger_user_id AS TEXT) IS NULL OR ledger_user_id = CAST(:ledger_user_id AS TEXT))
      AND (CAST(:match_id AS TEXT) IS NULL OR match_id = CAST(:match_id AS TEXT))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_TICKETS_SQL = text("""
    SELECT distribution_id,
           MIN(match_id) AS match_id,
           MIN(market_category) AS market_category,
           MIN(market_scope) AS market_scope,
           MIN(market_side) AS market_side,
           MIN(market_line) AS market_line,
           COUNT(*) AS bet_count,
           COUNT(*) FILTER (WHERE status = 'settled') AS settled_count,
           COUNT(*) FILTER (WHERE status = 'cancelled') AS cancelled_count,
           COALESCE(SUM(stake) FILTER (WHERE status <> 'cancelled'), 0) AS total_stake,
           COALESCE(SUM(payout), 0) AS total_payout,
           COALESCE(SUM(profit_loss), 0) AS total_profit_loss,
           MAX(id) AS last_bet_id,
           MIN(created_at) AS created_at
    FROM bets
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = CAST(:user_id AS TEXT))
      AND (CAST(:ledger_user_id AS TEXT) IS NULL OR ledger_user_id = CAST(:ledger_user_id AS TEXT))
    GROUP BY distribution_id
    HAVING (CAST(:cursor_id AS BIGINT) IS NULL OR MAX(id) < CAST(:cursor_id AS BIGINT))
    ORDER BY MAX(id) DESC
    LIMIT :limit
""")

_LIST_OPEN_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bets
    WHERE status IN ('pending', 'confirmed')
      AND placement_id IS NOT NULL
      AND (CAST(:all_accounts AS BOOLEAN) OR account_id = ANY(:account_ids))
    ORDER BY account_id ASC, id ASC
""")

_MARK_SETTLED_SQL = text("""
    UPDATE bets
    SET status = 'settled', result = :result, score = :score,
        payout = :payout, profit_loss = :profit_loss,
        settled_at = NOW(), updated_at = NOW()
    WHERE id = :id AND status IN ('pending', 'confirmed')
""")

_MARK_CANCELLED_SQL = text("""
    UPDATE bets
    SET status = 'cancelled', result = :result, error_message = COALESCE(:reason, error_message),
        settled_at = NOW(), updated_at = NOW()
    WHERE id = :id AND status IN ('pending', 'confirmed')
""")


def _row_to_bet(row: Any) -> Bet:
    return Bet(
        id=row.id,
        distribution_id=row.distribution_id,
        user_id=row.user_id,
        ledger_user_id=row.ledger_user_id,
        account_id=row.account_id,
        match_id=row.match_id,
        market_category=row.market_category,
        market_scope=row.market_scope,
        market_side=row.market_side,
        market_line=row.market_line,
        spread_gid=row.spread_gid,
        stake=row.stake,
        odds=row.odds,
        odds_source=row.odds_source,
        single_limit=row.single_limit,
        status=row.status,
        placement_id=row.placement_id,
        result=row.result,
        score=row.score,
        payout=row.payout,
        profit_loss=row.profit_loss,
        error_message=row.error_message,
        created_at=row.created_at,
        settled_at=row.settled_at,
    )


def _row_to_ticket(row: Any) -> TicketSummary:
    return TicketSummary(
        distribution_id=row.distribution_id,
        match_id=row.match_id,
        market_category=row.market_category,
        market_scope=row.market_scope,
        market_side=row.market_side,
        market_line=row.market_line,
        bet_count=int(row.bet_count),
        settled_count=int(row.settled_count),
        cancelled_count=int(row.cancelled_count),
        total_stake=int(row.total_stake),
        total_payout=int(row.total_payout),
        total_profit_loss=int(row.total_profit_loss),
        last_bet_id=int(row.last_bet_id),
        created_at=row.created_at,
    )


class BetRepository:
    async def insert(self, db: AsyncSession, bet: Bet) -> Bet:
        result = await db.execute(
            _INSERT_BET_SQL,
            {
                "distribution_id": bet.distribution_id,
                "user_id": bet.user_id,
                "ledger_user_id": bet.ledger_user_id,
                "account_id": bet.account_id,
                "match_id": bet.match_id,
                "market_category": bet.market_category,
                "market_scope": bet.market_scope,
                "market_side": bet.market_side,
                "market_line": bet.market_line,
                "spread_gid": bet.spread_gid,
                "stake": bet.stake,
                "odds": bet.odds,
                "odds_source": bet.odds_source,
                "single_limit": bet.single_limit,
                "status": bet.status,
                "placement_id": bet.placement_id,
                "error_message": bet.error_message,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Bet insert returned no rows: this should never happen")
        return _row_to_bet(row)

    async def get_for_update(self, db: AsyncSession, bet_id: int) -> Bet | None:
        result = await db.execute(_GET_FOR_UPDATE_SQL, {"id": bet_id})
        row = result.fetchone()
        return _row_to_bet(row) if row else None

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
    ) -> list[Bet]:
        result = await db.execute(
            _LIST_BETS_SQL,
            {
                "user_id": user_id,
                "ledger_user_id": ledger_user_id,
                "match_id": match_id,
                "status": status,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_bet(row) for row in result.fetchall()]

    async def list_tickets(
        self,
        db: AsyncSession,
        *,
        user_id: str | None,
        ledger_user_id: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[TicketSummary]:
        result = await db.execute(
            _LIST_TICKETS_SQL,
            {
                "user_id": user_id,
                "ledger_user_id": ledger_user_id,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_ticket(row) for row in result.fetchall()]

    async def list_open(
        self, db: AsyncSession, account_ids: list[int] | None
    ) -> list[Bet]:
        result = await db.execute(
            _LIST_OPEN_SQL,
            {"all_accounts": account_ids is None, "account_ids": account_ids or []},
        )
        return [_row_to_bet(row) for row in result.fetchall()]

    async def mark_settled(
        self,
        db: AsyncSession,
        bet_id: int,
        result: str,
        score: str | None,
        payout: int,
        profit_loss: int,
    ) -> None:
        await db.execute(
            _MARK_SETTLED_SQL,
            {
                "id": bet_id,
                "result": result,
                "score": score,
                "payout": payout,
                "profit_loss": profit_loss,
            },
        )

    async def mark_cancelled(
        self,
        db: AsyncSession,
        bet_id: int,
        result: str | None,
        reason: str | None,
    ) -> None:
        await db.execute(
            _MARK_CANCELLED_SQL,
            {"id": bet_id, "result": result, "reason": reason},
        )

