"""Tests for bj_common.enums — values are the persisted JSON wire format."""

from src.bj_common.enums import (
    AccountStatus,
    Channel,
    GoalMetric,
    GoalScopeType,
    GoalStatus,
    LedgerEntryKind,
    WagerKind,
    WagerStatus,
)


class TestAllEnumsAreStr:
    """All enums inherit from (str, Enum) for JSON serialization."""

    def test_wager_status_is_str(self) -> None:
        assert isinstance(WagerStatus.WON, str)
        assert WagerStatus.WON == "won"

    def test_ledger_kind_is_str(self) -> None:
        assert isinstance(LedgerEntryKind.DEPOSIT, str)
        assert LedgerEntryKind.DEPOSIT == "deposit"


class TestWagerStatus:
    def test_all_values(self) -> None:
        expected = {"pending", "won", "lost", "void", "cashed_out"}
        assert {s.value for s in WagerStatus} == expected


class TestWagerKind:
    def test_all_values(self) -> None:
        assert {k.value for k in WagerKind} == {"single", "parlay", "system"}


class TestLedgerEntryKind:
    def test_all_values(self) -> None:
        expected = {
            "deposit",
            "withdrawal",
            "settle_win",
            "settle_loss",
            "settle_void",
            "settle_cashout",
            "correction",
        }
        assert {k.value for k in LedgerEntryKind} == expected


class TestGoalEnums:
    def test_metrics(self) -> None:
        assert {m.value for m in GoalMetric} == {"profit", "roi", "win_rate", "bet_count"}

    def test_statuses(self) -> None:
        assert {s.value for s in GoalStatus} == {"in_progress", "achieved", "failed"}

    def test_scopes(self) -> None:
        assert {s.value for s in GoalScopeType} == {"all", "sport", "kind", "tag"}


class TestAccountEnums:
    def test_status(self) -> None:
        assert {s.value for s in AccountStatus} == {"active", "blocked"}

    def test_channel(self) -> None:
        assert {c.value for c in Channel} == {"web", "telegram"}
