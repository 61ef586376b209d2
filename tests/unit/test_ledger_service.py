"""Unit tests for LedgerPoster and LedgerApplicationService with in-memory fakes."""

import pytest

from src.wd_common.enums import UserRole
from src.wd_common.errors import (
    InsufficientFundsError,
    PermissionDeniedError,
    TargetUserInvalidError,
)
from src.wd_gateway.auth.dependencies import CurrentUser
from src.wd_ledger.application.service import LedgerApplicationService
from src.wd_ledger.domain.models import Posting
from src.wd_ledger.domain.posting import LedgerPoster
from src.wd_registry.domain.models import DirectoryUser
from tests.unit.fakes import FakeLedgerRepo, FakeSession, FakeUserDirectory

ADMIN = CurrentUser(user_id="admin-1", role=UserRole.ADMIN)
AGENT = CurrentUser(user_id="agent-1", role=UserRole.AGENT)
OTHER_AGENT = CurrentUser(user_id="agent-2", role=UserRole.AGENT)
STAFF = CurrentUser(user_id="staff-1", role=UserRole.STAFF, agent_id="agent-1")

USERS = [
    DirectoryUser(id="admin-1", role="admin"),
    DirectoryUser(id="agent-1", role="agent"),
    DirectoryUser(id="agent-2", role="agent"),
    DirectoryUser(id="staff-1", role="staff", agent_id="agent-1"),
    DirectoryUser(id="staff-9", role="staff", agent_id="agent-2"),
    DirectoryUser(id="gone", role="staff", agent_id="agent-1", is_active=False),
]


def _service(balances: dict[str, int] | None = None) -> tuple[LedgerApplicationService, FakeLedgerRepo]:
    repo = FakeLedgerRepo(balances)
    return LedgerApplicationService(repo=repo, users=FakeUserDirectory(USERS)), repo


class TestLedgerInvariants:
    async def test_balance_chain_on_every_entry(self) -> None:
        repo = FakeLedgerRepo()
        poster = LedgerPoster(repo)
        db = FakeSession()
        for amount in (10_000, -2_500, 700, -8_200):
            await poster.post(db, Posting("u-1", "adjustment", amount, f"TX{amount}"))
        entries = repo.entries_for("u-1")
        assert all(e.balance_after == e.balance_before + e.amount for e in entries)
        for earlier, later in zip(entries, entries[1:]):
            assert later.balance_before == earlier.balance_after
        assert await repo.get_balance(db, "u-1") == sum(e.amount for e in entries)

    async def test_pair_locks_users_in_sorted_order(self) -> None:
        repo = FakeLedgerRepo({"zed": 1_000})
        poster = LedgerPoster(repo)
        await poster.post_pair(
            FakeSession(),
            Posting("zed", "transfer-out", -100, "T_OUT"),
            Posting("amy", "transfer-in", 100, "T_IN"),
        )
        assert repo.lock_order == ["amy", "zed"]

    async def test_pair_requires_debit_and_credit(self) -> None:
        poster = LedgerPoster(FakeLedgerRepo())
        with pytest.raises(ValueError):
            await poster.post_pair(
                FakeSession(),
                Posting("a", "transfer-out", 100, "T_OUT"),
                Posting("b", "transfer-in", 100, "T_IN"),
            )

    async def test_funds_check_only_when_required(self) -> None:
        repo = FakeLedgerRepo()
        poster = LedgerPoster(repo)
        entry = await poster.post(FakeSession(), Posting("u-1", "charge", -500, "TX"))
        assert entry.balance_after == -500
        with pytest.raises(InsufficientFundsError):
            await poster.post(
                FakeSession(), Posting("u-1", "charge", -500, "TX2"), require_funds=True
            )


class TestTransfer:
    async def test_insufficient_funds_writes_nothing(self) -> None:
        svc, repo = _service({"agent-1": 50})
        db = FakeSession()
        with pytest.raises(InsufficientFundsError):
            await svc.transfer(db, AGENT, "staff-1", 100)
        assert repo.entries_for("agent-1") == []
        assert repo.entries_for("staff-1") == []
        assert db.rollbacks == 1

    async def test_transfer_writes_exactly_two_entries(self) -> None:
        svc, repo = _service({"agent-1": 10_000})
        db = FakeSession()
        resp = await svc.transfer(db, AGENT, "agent-2", 4_000, "settle up")
        out, = repo.entries_for("agent-1")
        inn, = repo.entries_for("agent-2")
        assert (out.entry_type, out.amount) == ("transfer-out", -4_000)
        assert (inn.entry_type, inn.amount) == ("transfer-in", 4_000)
        assert out.transaction_id.endswith("_OUT")
        assert inn.transaction_id == out.transaction_id[:-4] + "_IN"
        assert resp.new_balance_cents == 6_000
        assert db.commits == 1

    async def test_failed_credit_rolls_back_debit(self) -> None:
        svc, repo = _service({"agent-1": 10_000})
        repo.fail_on_insert_for = "agent-2"
        db = FakeSession()
        with pytest.raises(RuntimeError):
            await svc.transfer(db, AGENT, "agent-2", 4_000)
        assert repo.entries_for("agent-1") == []
        assert repo.entries_for("agent-2") == []

    async def test_admin_transfer_still_checks_funds(self) -> None:
        svc, _ = _service()
        with pytest.raises(InsufficientFundsError):
            await svc.transfer(FakeSession(), ADMIN, "agent-1", 100)

    async def test_cannot_transfer_to_self(self) -> None:
        svc, _ = _service({"agent-1": 10_000})
        with pytest.raises(TargetUserInvalidError):
            await svc.transfer(FakeSession(), AGENT, "agent-1", 100)

    async def test_unknown_or_inactive_target(self) -> None:
        svc, _ = _service({"agent-1": 10_000})
        with pytest.raises(TargetUserInvalidError):
            await svc.transfer(FakeSession(), AGENT, "nobody", 100)
        with pytest.raises(TargetUserInvalidError):
            await svc.transfer(FakeSession(), AGENT, "gone", 100)


class TestRecharge:
    async def test_admin_recharge_single_entry_no_funds_check(self) -> None:
        svc, repo = _service()
        resp = await svc.recharge(FakeSession(), ADMIN, "agent-1", 50_000)
        entry, = repo.entries_for("agent-1")
        assert entry.entry_type == "recharge"
        assert entry.amount == 50_000
        assert repo.entries_for("admin-1") == []
        assert resp.counter_entry is None
        assert resp.new_balance_cents == 50_000

    async def test_agent_recharge_own_staff_is_paired(self) -> None:
        svc, repo = _service({"agent-1": 20_000})
        resp = await svc.recharge(FakeSession(), AGENT, "staff-1", 5_000)
        out, = repo.entries_for("agent-1")
        credit, = repo.entries_for("staff-1")
        assert (out.entry_type, out.amount) == ("transfer-out", -5_000)
        assert (credit.entry_type, credit.amount) == ("recharge", 5_000)
        assert resp.counter_entry is not None
        assert resp.counter_entry.amount_cents == -5_000

    async def test_agent_recharge_checks_funds(self) -> None:
        svc, repo = _service({"agent-1": 1_000})
        with pytest.raises(InsufficientFundsError):
            await svc.recharge(FakeSession(), AGENT, "staff-1", 5_000)
        assert repo.entries_for("staff-1") == []

    async def test_agent_cannot_recharge_other_agents_staff(self) -> None:
        svc, _ = _service({"agent-1": 20_000})
        with pytest.raises(PermissionDeniedError):
            await svc.recharge(FakeSession(), AGENT, "staff-9", 1_000)

    async def test_staff_cannot_recharge(self) -> None:
        svc, _ = _service()
        with pytest.raises(PermissionDeniedError):
            await svc.recharge(FakeSession(), STAFF, "agent-1", 1_000)


class TestReads:
    async def test_balance_of_self(self) -> None:
        svc, _ = _service({"staff-1": 1_234})
        resp = await svc.get_balance(FakeSession(), STAFF)
        assert resp.balance_cents == 1_234
        assert resp.currency == "CNY"

    async def test_agent_sees_own_staff_only(self) -> None:
        svc, _ = _service({"staff-1": 500, "staff-9": 900})
        resp = await svc.get_balance(FakeSession(), AGENT, "staff-1")
        assert resp.balance_cents == 500
        with pytest.raises(PermissionDeniedError):
            await svc.get_balance(FakeSession(), AGENT, "staff-9")

    async def test_admin_sees_anyone(self) -> None:
        svc, _ = _service({"staff-9": 900})
        resp = await svc.get_balance(FakeSession(), ADMIN, "staff-9")
        assert resp.balance_cents == 900

    async def test_staff_cannot_see_agent(self) -> None:
        svc, _ = _service()
        with pytest.raises(PermissionDeniedError):
            await svc.get_balance(FakeSession(), STAFF, "agent-1")

    async def test_entries_paginate_newest_first(self) -> None:
        svc, _ = _service()
        db = FakeSession()
        for amount in (100, 200, 300):
            await svc.adjust(db, ADMIN, "agent-1", amount, "fix")
        first = await svc.list_entries(db, "agent-1", None, 2, None)
        assert [i.amount_cents for i in first.items] == [300, 200]
        assert first.has_more is True
        second = await svc.list_entries(db, "agent-1", first.next_cursor, 2, None)
        assert [i.amount_cents for i in second.items] == [100]
        assert second.has_more is False

    async def test_summary_groups_by_type(self) -> None:
        svc, _ = _service({"agent-1": 10_000})
        db = FakeSession()
        await svc.transfer(db, AGENT, "agent-2", 3_000)
        summary = await svc.summary(db, "agent-1")
        totals = {t.entry_type: (t.count, t.total_cents) for t in summary.by_type}
        assert totals["transfer-out"] == (1, -3_000)
        assert summary.balance_cents == 7_000
