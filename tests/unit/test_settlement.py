"""Tests for settlement classification and the SettlementReconciler."""

import httpx
import pytest

from src.wd_betting.application.schemas import BetItem
from src.wd_book.domain.models import SettlementRecord
from src.wd_book.infrastructure.http_client import HttpBookClient
from src.wd_book.infrastructure.session_locks import AccountSessionLocks
from src.wd_common.enums import BetStatus, UserRole
from src.wd_common.errors import SessionExpiredError, UpstreamTransientError
from src.wd_gateway.auth.dependencies import CurrentUser
from src.wd_settlement.application.reconciler import SettlementReconciler
from src.wd_settlement.application.service import scoped_account_ids
from src.wd_settlement.domain.classification import classify
from tests.unit.fakes import (
    FakeBetRepo,
    FakeBook,
    FakeLedgerRepo,
    FakeRegistry,
    FakeSession,
    FakeSessionFactory,
    make_account,
    make_bet,
)


class TestClassify:
    def test_win_uses_reported_payout(self) -> None:
        outcome = classify(make_bet(1), SettlementRecord("P-1", "win", "2-1", payout=19_500))
        assert outcome is not None
        assert outcome.status == BetStatus.SETTLED
        assert outcome.payout == 19_500
        assert outcome.profit_loss == 9_500
        assert outcome.score == "2-1"

    def test_win_without_payout_adds_profit_to_stake(self) -> None:
        outcome = classify(make_bet(1), SettlementRecord("P-1", "WIN", profit=9_000))
        assert outcome is not None
        assert outcome.payout == 19_000

    def test_lose_pays_nothing(self) -> None:
        outcome = classify(make_bet(1), SettlementRecord("P-1", "lose"))
        assert outcome is not None
        assert (outcome.payout, outcome.profit_loss) == (0, -10_000)

    def test_draw_returns_stake(self) -> None:
        outcome = classify(make_bet(1), SettlementRecord("P-1", "draw"))
        assert outcome is not None
        assert (outcome.payout, outcome.profit_loss) == (10_000, 0)

    def test_void_cancels(self) -> None:
        outcome = classify(make_bet(1), SettlementRecord("P-1", "void"))
        assert outcome is not None
        assert outcome.status == BetStatus.CANCELLED
        assert outcome.payout == 0

    def test_no_result_is_still_open(self) -> None:
        assert classify(make_bet(1), SettlementRecord("P-1", None)) is None

    def test_unknown_result_rejected(self) -> None:
        with pytest.raises(ValueError, match="half-win"):
            classify(make_bet(1), SettlementRecord("P-1", "half-win"))


class Harness:
    def __init__(self, *account_ids: int, book: object | None = None) -> None:
        self.registry = FakeRegistry([make_account(i) for i in account_ids])
        self.book = book or FakeBook()
        self.bets = FakeBetRepo()
        self.ledger = FakeLedgerRepo()
        self.reconciler = SettlementReconciler(
            self.book,
            session_factory=FakeSessionFactory(),  # type: ignore[arg-type]
            bets=self.bets,
            registry=self.registry,
            ledger=self.ledger,
            locks=AccountSessionLocks(),
        )

    def returns(self) -> list:  # type: ignore[type-arg]
        return [e for e in self.ledger.entries if e.entry_type == "return"]


class TestReconciler:
    async def test_win_settles_and_pays_back_ledger_user(self) -> None:
        h = Harness(1)
        bet = h.bets.add(make_bet(1, "P-1"))
        h.book.settlements[1] = [SettlementRecord("P-1", "win", payout=19_500)]

        report = await h.reconciler.sync()

        assert (report.updated, report.skipped, report.errors) == (1, 0, [])
        stored = h.bets.bets[bet.id]
        assert stored.status == "settled"
        assert stored.payout == 19_500
        assert stored.settled_at is not None
        entry, = h.returns()
        assert (entry.user_id, entry.amount, entry.bet_id) == ("agent-1", 19_500, bet.id)
        assert entry.transaction_id.startswith("RETURN")

    async def test_second_run_writes_nothing(self) -> None:
        h = Harness(1)
        h.bets.add(make_bet(1, "P-1"))
        h.book.settlements[1] = [SettlementRecord("P-1", "draw")]
        await h.reconciler.sync()
        second = await h.reconciler.sync()
        assert second.updated == 0
        assert len(h.returns()) == 1

    async def test_terminal_bet_is_not_reapplied(self) -> None:
        h = Harness(1)
        bet = h.bets.add(make_bet(1, "P-1", status="settled"))
        applied = await h.reconciler._apply(bet.id, SettlementRecord("P-1", "win", payout=1))
        assert applied is False
        assert h.returns() == []

    async def test_existing_return_entry_not_duplicated(self) -> None:
        h = Harness(1)
        bet = h.bets.add(make_bet(1, "P-1"))
        h.ledger._store("agent-1", "RETURN-OLD", "return", 19_500, 1, bet.id, None)
        h.book.settlements[1] = [SettlementRecord("P-1", "win", payout=19_500)]
        report = await h.reconciler.sync()
        assert report.updated == 1
        assert len(h.returns()) == 1

    async def test_void_cancels_without_entry(self) -> None:
        h = Harness(1)
        bet = h.bets.add(make_bet(1, "P-1"))
        h.book.settlements[1] = [SettlementRecord("P-1", "void")]
        await h.reconciler.sync()
        assert h.bets.bets[bet.id].status == "cancelled"
        assert h.bets.bets[bet.id].error_message == "Voided by book"
        assert h.ledger.entries == []
        assert BetItem.from_bet(h.bets.bets[bet.id]).stake_charged is True

    async def test_failed_placement_listed_as_not_charged(self) -> None:
        h = Harness(1)
        bet = h.bets.add(make_bet(1, None, status="cancelled"))
        assert BetItem.from_bet(bet).stake_charged is False
        assert BetItem.from_bet(make_bet(1, "P-1")).stake_charged is True

    async def test_lose_settles_without_entry(self) -> None:
        h = Harness(1)
        bet = h.bets.add(make_bet(1, "P-1"))
        h.book.settlements[1] = [SettlementRecord("P-1", "lose")]
        await h.reconciler.sync()
        assert h.bets.bets[bet.id].status == "settled"
        assert h.bets.bets[bet.id].profit_loss == -10_000
        assert h.ledger.entries == []

    async def test_still_open_upstream_is_skipped(self) -> None:
        h = Harness(1)
        h.bets.add(make_bet(1, "P-1"))
        h.bets.add(make_bet(1, "P-2"))
        h.book.settlements[1] = [SettlementRecord("P-1", None)]
        report = await h.reconciler.sync()
        assert (report.updated, report.skipped) == (0, 2)

    async def test_fetch_failure_reported_other_accounts_run(self) -> None:
        h = Harness(1, 2)
        h.bets.add(make_bet(1, "P-1"))
        h.bets.add(make_bet(2, "P-2"))
        h.book.settlements[1] = UpstreamTransientError("gateway timeout")
        h.book.settlements[2] = [SettlementRecord("P-2", "lose")]
        report = await h.reconciler.sync()
        assert report.updated == 1
        assert report.skipped == 1
        assert report.errors == ["account 1: Upstream unavailable: gateway timeout"]

    async def test_malformed_gateway_record_isolated_to_its_account(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/accounts/1/settlements":
                records = [{"placement_id": "P-1", "result": "win", "payout_cents": "195.50"}]
            else:
                records = [{"placement_id": "P-2", "result": "lose"}]
            return httpx.Response(200, json={"success": True, "data": {"records": records}})

        client = HttpBookClient(base_url="http://book.test", transport=httpx.MockTransport(handler))
        h = Harness(1, 2, book=client)
        h.bets.add(make_bet(1, "P-1"))
        bet2 = h.bets.add(make_bet(2, "P-2"))

        report = await h.reconciler.sync()

        assert report.updated == 1
        assert report.skipped == 1
        assert len(report.errors) == 1
        assert report.errors[0].startswith("account 1: malformed settlement record")
        assert h.bets.bets[bet2.id].status == "settled"
        assert h.registry.accounts[1].is_online is True

    async def test_expired_session_takes_account_offline(self) -> None:
        h = Harness(1)
        h.bets.add(make_bet(1, "P-1"))
        h.book.settlements[1] = SessionExpiredError("[1X014] Login failed, please log in again")
        report = await h.reconciler.sync()
        assert report.skipped == 1
        assert h.registry.accounts[1].is_online is False

    async def test_sync_limited_to_requested_accounts(self) -> None:
        h = Harness(1, 2)
        h.bets.add(make_bet(1, "P-1"))
        h.bets.add(make_bet(2, "P-2"))
        await h.reconciler.sync([2])
        assert h.book.settlement_calls == [2]

    async def test_unknown_account_counted_as_skipped(self) -> None:
        h = Harness()
        h.bets.add(make_bet(9, "P-9"))
        report = await h.reconciler.sync()
        assert report.skipped == 1
        assert "account 9" in report.errors[0]


class TestScope:
    async def test_admin_passes_through(self) -> None:
        admin = CurrentUser(user_id="admin-1", role=UserRole.ADMIN)
        assert await scoped_account_ids(FakeSession(), admin, None) is None
        assert await scoped_account_ids(FakeSession(), admin, [5]) == [5]

    async def test_agent_limited_to_pool(self) -> None:
        registry = FakeRegistry([make_account(1), make_account(2, agent_id="agent-2")])
        agent = CurrentUser(user_id="agent-1", role=UserRole.AGENT)
        assert await scoped_account_ids(FakeSession(), agent, None, registry) == [1]
        assert await scoped_account_ids(FakeSession(), agent, [1, 2], registry) == [1]
