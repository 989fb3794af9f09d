"""Unit tests for bj_clearing.domain.settlement — the ledger core."""

from datetime import UTC, datetime
from decimal import Decimal

from src.bj_account.domain.models import Aggregate, Leg
from src.bj_clearing.domain.invariants import verify_aggregate_invariants
from src.bj_clearing.domain.settlement import (
    ManualProfit,
    WagerChanges,
    WagerDraft,
    add_wager,
    apply_status_change,
    delete_wager,
    resolve_settled_profit,
    set_balance,
    update_wager,
)
from src.bj_common.enums import LedgerEntryKind, WagerKind, WagerStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
BANK = 100000


def _draft(
    stake: int = 10000,
    odds: str = "2.5",
    status: WagerStatus = WagerStatus.PENDING,
    manual: int | None = None,
) -> WagerDraft:
    return WagerDraft(
        sport="Football",
        bookmaker="Bet365",
        kind=WagerKind.SINGLE,
        legs=[Leg(home="Real", away="Barca", market="Home win")],
        stake_cents=stake,
        odds=Decimal(odds),
        status=status,
        manual_profit_cents=manual,
    )


def _with_pending(stake: int = 10000, odds: str = "2.5") -> tuple[Aggregate, str]:
    agg, wager, entry = add_wager(Aggregate.fresh(BANK), _draft(stake, odds), NOW)
    assert entry is None
    return agg, wager.id


class TestScenarios:
    def test_a_pending_to_won_books_profit(self) -> None:
        agg, wid = _with_pending()
        agg, entry = apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        wager = agg.find_wager(wid)
        assert wager is not None
        assert wager.profit_cents == 15000
        assert agg.balance_cents == BANK + 15000
        assert len(agg.ledger) == 1
        assert entry is not None
        assert entry.kind == LedgerEntryKind.SETTLE_WIN
        assert entry.delta_cents == 15000

    def test_b_won_to_lost_books_difference(self) -> None:
        agg, wid = _with_pending()
        agg, _ = apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        agg, entry = apply_status_change(agg, wid, WagerStatus.LOST, now=NOW)
        assert entry is not None
        assert entry.kind == LedgerEntryKind.SETTLE_LOSS
        assert entry.delta_cents == -25000
        assert agg.balance_cents == BANK - 10000
        assert len(agg.ledger) == 2

    def test_c_delete_reverses_booked_profit(self) -> None:
        agg, wid = _with_pending()
        agg, _ = apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        agg, _ = apply_status_change(agg, wid, WagerStatus.LOST, now=NOW)
        agg, entry = delete_wager(agg, wid, NOW)
        assert entry is not None
        assert entry.delta_cents == 10000
        assert entry.kind == LedgerEntryKind.CORRECTION
        assert agg.find_wager(wid) is None
        assert agg.balance_cents == BANK
        assert verify_aggregate_invariants(agg) == []


class TestStatusChange:
    def test_same_status_twice_is_idempotent(self) -> None:
        agg, wid = _with_pending()
        agg, _ = apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        again, entry = apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        assert entry is None
        assert again.balance_cents == agg.balance_cents
        assert len(again.ledger) == 1

    def test_void_after_win_returns_to_stake_neutral(self) -> None:
        agg, wid = _with_pending()
        agg, _ = apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        agg, entry = apply_status_change(agg, wid, WagerStatus.VOID, now=NOW)
        assert entry is not None
        assert entry.kind == LedgerEntryKind.SETTLE_VOID
        assert agg.balance_cents == BANK

    def test_back_to_pending_clears_profit(self) -> None:
        agg, wid = _with_pending()
        agg, _ = apply_status_change(agg, wid, WagerStatus.LOST, now=NOW)
        agg, entry = apply_status_change(agg, wid, WagerStatus.PENDING, now=NOW)
        wager = agg.find_wager(wid)
        assert wager is not None and wager.profit_cents is None
        assert entry is not None and entry.delta_cents == 10000
        assert agg.balance_cents == BANK

    def test_cashout_uses_manual_profit(self) -> None:
        agg, wid = _with_pending()
        agg, entry = apply_status_change(agg, wid, WagerStatus.CASHED_OUT, 4500, NOW)
        wager = agg.find_wager(wid)
        assert wager is not None and wager.profit_cents == 4500
        assert entry is not None and entry.kind == LedgerEntryKind.SETTLE_CASHOUT
        assert agg.balance_cents == BANK + 4500

    def test_unknown_wager_is_noop(self) -> None:
        agg, _ = _with_pending()
        same, entry = apply_status_change(agg, "missing", WagerStatus.WON, now=NOW)
        assert entry is None
        assert same is agg

    def test_input_aggregate_not_mutated(self) -> None:
        agg, wid = _with_pending()
        apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        assert agg.balance_cents == BANK
        assert agg.ledger == []

    def test_resolve_manual_variant(self) -> None:
        agg, wid = _with_pending()
        wager = agg.find_wager(wid)
        assert wager is not None
        assert resolve_settled_profit(wager, WagerStatus.CASHED_OUT, -300) == ManualProfit(-300)
        assert resolve_settled_profit(wager, WagerStatus.PENDING, None) is None


class TestAddAndEdit:
    def test_newest_first(self) -> None:
        agg, first = _with_pending()
        agg, second, _ = add_wager(agg, _draft(), NOW)
        assert [w.id for w in agg.wagers] == [second.id, first]

    def test_add_settled_books_immediately(self) -> None:
        agg, wager, entry = add_wager(Aggregate.fresh(BANK), _draft(status=WagerStatus.LOST), NOW)
        assert entry is not None and entry.delta_cents == -10000
        assert wager.profit_cents == -10000
        assert agg.balance_cents == BANK - 10000

    def test_display_label_filled(self) -> None:
        _, wager, _ = add_wager(Aggregate.fresh(BANK), _draft(), NOW)
        assert wager.display_label == "Real vs Barca - Home win"

    def test_edit_stake_of_won_wager_rebooks(self) -> None:
        agg, wid = _with_pending()
        agg, _ = apply_status_change(agg, wid, WagerStatus.WON, now=NOW)
        agg, entry = update_wager(agg, wid, WagerChanges(stake_cents=20000), NOW)
        assert entry is not None
        assert entry.delta_cents == 15000  # 30000 - 15000
        assert agg.balance_cents == BANK + 30000
        assert verify_aggregate_invariants(agg) == []

    def test_edit_pending_wager_books_nothing(self) -> None:
        agg, wid = _with_pending()
        agg, entry = update_wager(agg, wid, WagerChanges(odds=Decimal("3.1"), notes="late goal"), NOW)
        assert entry is None
        wager = agg.find_wager(wid)
        assert wager is not None and wager.odds == Decimal("3.1") and wager.notes == "late goal"

    def test_delete_pending_has_no_entry(self) -> None:
        agg, wid = _with_pending()
        agg, entry = delete_wager(agg, wid, NOW)
        assert entry is None
        assert agg.wagers == []


class TestSetBalance:
    def test_deposit(self) -> None:
        agg, entry = set_balance(Aggregate.fresh(BANK), BANK + 5000, NOW)
        assert entry is not None and entry.kind == LedgerEntryKind.DEPOSIT
        assert entry.delta_cents == 5000
        assert agg.balance_cents == BANK + 5000

    def test_withdrawal(self) -> None:
        agg, entry = set_balance(Aggregate.fresh(BANK), 40000, NOW)
        assert entry is not None and entry.kind == LedgerEntryKind.WITHDRAWAL
        assert entry.delta_cents == -60000

    def test_same_value_no_entry(self) -> None:
        agg, entry = set_balance(Aggregate.fresh(BANK), BANK, NOW)
        assert entry is None
        assert agg.ledger == []

    def test_ledger_chain_is_contiguous(self) -> None:
        agg, _ = set_balance(Aggregate.fresh(BANK), 120000, NOW)
        agg, _ = set_balance(agg, 90000, NOW)
        assert [e.id for e in agg.ledger] == [1, 2]
        assert agg.ledger[1].balance_before_cents == agg.ledger[0].balance_after_cents
        assert verify_aggregate_invariants(agg) == []
