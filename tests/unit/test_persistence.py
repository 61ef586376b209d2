"""Unit tests for the raw-SQL repositories using MagicMock AsyncSession."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.wd_betting.infrastructure.persistence import BetRepository
from src.wd_common.errors import InternalError
from src.wd_ledger.infrastructure.persistence import LedgerRepository
from src.wd_registry.domain.models import UNKNOWN_LINE_KEY, derive_line_key
from src.wd_registry.infrastructure.persistence import AccountRegistry
from tests.unit.fakes import make_bet


def _result(rows: list[Any] | None = None, one: Any = None) -> MagicMock:
    result = MagicMock()
    result.fetchall.return_value = rows or []
    result.fetchone.return_value = one
    return result


def _account_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", 7)
    row.user_id = "agent-1"
    row.agent_id = kwargs.get("agent_id", "agent-1")
    row.username = kwargs.get("username", "abcd1234")
    row.original_username = kwargs.get("original_username")
    row.line_key = kwargs.get("line_key")
    row.stop_profit_limit = kwargs.get("stop_profit_limit", 0)
    row.is_online = True
    row.is_enabled = True
    row.proxy_url = None
    row.stake_ceilings = kwargs.get("stake_ceilings", {})
    row.created_at = datetime.now(UTC)
    return row


def _bet_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    bet = make_bet(1)
    for name, value in vars(bet).items():
        setattr(row, name, kwargs.get(name, value))
    row.id = kwargs.get("id", 11)
    return row


class TestLineKey:
    def test_stored_key_wins(self) -> None:
        assert derive_line_key(" xy1 ", "ABCDEF", "zzzz") == "XY1"

    def test_original_username_prefix(self) -> None:
        assert derive_line_key(None, "abcdef", "zzzzzz") == "ABCD"

    def test_username_prefix(self) -> None:
        assert derive_line_key("", None, "qrstuv") == "QRST"

    def test_unknown(self) -> None:
        assert derive_line_key(None, None, " ") == UNKNOWN_LINE_KEY


class TestAccountRegistry:
    async def test_list_pool_maps_rows(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result([
            _account_row(
                original_username="orig99",
                stop_profit_limit=500_000,
                stake_ceilings={"football": {"prematch": 500000, "live": None}},
            )
        ])
        account, = await AccountRegistry().list_pool(db, "agent-1")
        assert account.line_key == "ORIG"
        assert account.stop_profit_limit == 500_000
        assert account.stake_ceiling("football", live=True) == 500_000
        assert account.stake_ceiling("tennis", live=False) is None
        assert db.execute.await_args.args[1] == {"agent_id": "agent-1"}

    async def test_get_by_ids_skips_query_when_empty(self) -> None:
        db = AsyncMock()
        assert await AccountRegistry().get_by_ids(db, []) == []
        db.execute.assert_not_awaited()

    async def test_set_online_truncates_reason(self) -> None:
        db = AsyncMock()
        await AccountRegistry().set_online(db, 3, False, "x" * 400)
        params = db.execute.await_args.args[1]
        assert params["online"] is False
        assert len(params["reason"]) == 255


class TestBetRepository:
    async def test_insert_returns_stored_bet(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=_bet_row(id=42))
        stored = await BetRepository().insert(db, make_bet(1))
        assert stored.id == 42
        assert stored.odds == Decimal("0.950")
        params = db.execute.await_args.args[1]
        assert params["ledger_user_id"] == "agent-1"
        assert params["status"] == "confirmed"

    async def test_insert_without_row_is_internal_error(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=None)
        with pytest.raises(InternalError):
            await BetRepository().insert(db, make_bet(1))

    async def test_get_for_update_missing(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=None)
        assert await BetRepository().get_for_update(db, 5) is None

    async def test_list_open_all_accounts_flag(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result([_bet_row()])
        bets = await BetRepository().list_open(db, None)
        assert len(bets) == 1
        assert db.execute.await_args.args[1] == {"all_accounts": True, "account_ids": []}


class TestLedgerRepository:
    async def test_balance_is_sum(self) -> None:
        db = AsyncMock()
        result = MagicMock()
        result.scalar_one.return_value = 1234
        db.execute.return_value = result
        assert await LedgerRepository().get_balance(db, "u-1") == 1234

    async def test_has_entry_for_bet(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(one=(1,))
        assert await LedgerRepository().has_entry_for_bet(db, 9, "return") is True
        db.execute.return_value = _result(one=None)
        assert await LedgerRepository().has_entry_for_bet(db, 9, "return") is False

    async def test_summary_rows(self) -> None:
        db = AsyncMock()
        row = MagicMock(entry_type="charge", entry_count=3, total=-3000)
        db.execute.return_value = _result([row])
        total, = await LedgerRepository().summarize(db, "u-1")
        assert (total.entry_type, total.count, total.total) == ("charge", 3, -3000)
