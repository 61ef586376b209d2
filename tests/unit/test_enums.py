"""Tests for wd_common.enums: values must match DB CHECK constraints."""

from src.wd_common.enums import (
    BetResult,
    BetStatus,
    DistributionMode,
    LedgerEntryType,
    OddsSource,
    UserRole,
)


class TestAllEnumsAreStr:
    def test_bet_status_is_str(self) -> None:
        assert isinstance(BetStatus.SETTLED, str)
        assert BetStatus.SETTLED == "settled"

    def test_distribution_mode_parses_from_label(self) -> None:
        assert DistributionMode("平均") is DistributionMode.AVERAGE
        assert DistributionMode("优选") is DistributionMode.PREFERRED


class TestValues:
    def test_user_roles(self) -> None:
        assert {r.value for r in UserRole} == {"admin", "agent", "staff"}

    def test_bet_status(self) -> None:
        assert {s.value for s in BetStatus} == {"pending", "confirmed", "settled", "cancelled"}

    def test_bet_result(self) -> None:
        assert {r.value for r in BetResult} == {"win", "lose", "draw", "void"}

    def test_ledger_entry_types(self) -> None:
        assert {t.value for t in LedgerEntryType} == {
            "charge", "return", "recharge", "transfer-out", "transfer-in", "adjustment",
        }

    def test_odds_sources(self) -> None:
        assert {s.value for s in OddsSource} == {"preview", "cache_fallback"}
