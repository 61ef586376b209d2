"""AccountRegistry: raw SQL over book_accounts.

Transaction ownership: the caller commits. `set_online` is the only write
performed by this engine; login/logout and balance refresh belong to the
external automation layer.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wd_registry.domain.models import BookAccount, StakeCeiling, derive_line_key

_COLUMNS = """
    id, user_id, agent_id, username, original_username, line_key,
    stop_profit_limit, is_online, is_enabled, proxy_url, stake_ceilings, created_at
"""

_LIST_POOL_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM book_accounts
    WHERE is_enabled = TRUE
      AND (CAST(:agent_id AS TEXT) IS NULL OR agent_id = CAST(:agent_id AS TEXT))
    ORDER BY created_at ASC, id ASC
""")

_GET_BY_IDS_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM book_accounts
    WHERE id = ANY(:ids)
    ORDER BY id ASC
""")

_SET_ONLINE_SQL = text("""
    UPDATE book_accounts
    SET is_online = :online,
        status_message = :reason,
        updated_at = NOW()
    WHERE id = :account_id
""")


def _parse_ceilings(raw: Any) -> dict[str, StakeCeiling]:
    """stake_ceilings JSONB: {"football": {"prematch": 500000, "live": 300000}, ...}"""
    if not raw:
        return {}
    ceilings: dict[str, StakeCeiling] = {}
    for sport, limits in dict(raw).items():
        limits = limits or {}
        ceilings[str(sport)] = StakeCeiling(
            prematch=int(limits["prematch"]) if limits.get("prematch") else None,
            live=int(limits["live"]) if limits.get("live") else None,
        )
    return ceilings


def _row_to_account(row: Any) -> BookAccount:
    return BookAccount(
        id=int(row.id),
        user_id=str(row.user_id),
        agent_id=str(row.agent_id) if row.agent_id else None,
        username=row.username,
        original_username=row.original_username,
        line_key=derive_line_key(row.line_key, row.original_username, row.username),
        stop_profit_limit=int(row.stop_profit_limit or 0),
        is_online=bool(row.is_online),
        is_enabled=bool(row.is_enabled),
        proxy_url=row.proxy_url,
        stake_ceilings=_parse_ceilings(row.stake_ceilings),
        created_at=row.created_at,
    )


class AccountRegistry:
    async def list_pool(
        self, db: AsyncSession, owner_agent_id: str | None
    ) -> list[BookAccount]:
        result = await db.execute(_LIST_POOL_SQL, {"agent_id": owner_agent_id})
        return [_row_to_account(row) for row in result.fetchall()]

    async def get_by_ids(
        self, db: AsyncSession, account_ids: list[int]
    ) -> list[BookAccount]:
        if not account_ids:
            return []
        result = await db.execute(_GET_BY_IDS_SQL, {"ids": list(account_ids)})
        return [_row_to_account(row) for row in result.fetchall()]

    async def set_online(
        self, db: AsyncSession, account_id: int, online: bool, reason: str | None = None
    ) -> None:
        await db.execute(
            _SET_ONLINE_SQL,
            {
                "account_id": account_id,
                "online": online,
                "reason": reason[:255] if reason else None,
            },
        )
