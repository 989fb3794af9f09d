"""Wager settlement — the ledger core.

Pure functions over the Aggregate: every call returns a new aggregate and the
ledger entry it appended (or None). Inputs are never mutated.

Booking rule: the balance always reflects each wager's *booked* profit
(0 while pending). A mutation books ``delta = new_profit - booked_profit``:
  - delta == 0 → wager fields change, no ledger entry (re-applying a status
    is financially idempotent)
  - delta != 0 → exactly one entry, kind chosen by the wager's new status,
    and balance += delta

Callers validate input first (see validation.py); these functions never raise.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

from src.bj_account.domain.models import Aggregate, LedgerEntry, Leg, Wager
from src.bj_clearing.domain.labels import display_label
from src.bj_clearing.domain.validation import normalize_tags
from src.bj_common.cents import multiply_cents
from src.bj_common.datetime_utils import utc_now
from src.bj_common.enums import LedgerEntryKind, WagerKind, WagerStatus
from src.bj_common.id_generator import generate_id

logger = logging.getLogger(__name__)

_ENTRY_KIND_BY_STATUS: dict[WagerStatus, LedgerEntryKind] = {
    WagerStatus.WON: LedgerEntryKind.SETTLE_WIN,
    WagerStatus.LOST: LedgerEntryKind.SETTLE_LOSS,
    WagerStatus.VOID: LedgerEntryKind.SETTLE_VOID,
    WagerStatus.CASHED_OUT: LedgerEntryKind.SETTLE_CASHOUT,
    WagerStatus.PENDING: LedgerEntryKind.CORRECTION,
}

_DESCRIPTION_BY_STATUS: dict[WagerStatus, str] = {
    WagerStatus.WON: "Wager won",
    WagerStatus.LOST: "Wager lost",
    WagerStatus.VOID: "Wager voided",
    WagerStatus.CASHED_OUT: "Wager cashed out",
    WagerStatus.PENDING: "Settlement reversed",
}


# ---------------------------------------------------------------------------
# Settled profit variant
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComputedProfit:
    """Profit derived from stake, odds and status."""

    amount_cents: int


@dataclass(frozen=True)
class ManualProfit:
    """Profit supplied by the user (cash-outs)."""

    amount_cents: int


SettledProfit = ComputedProfit | ManualProfit


# ---------------------------------------------------------------------------
# Mutation inputs
# ---------------------------------------------------------------------------


@dataclass
class WagerDraft:
    sport: str
    bookmaker: str
    kind: WagerKind
    legs: list[Leg]
    stake_cents: int
    odds: Decimal
    status: WagerStatus = WagerStatus.PENDING
    manual_profit_cents: int | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None


@dataclass
class WagerChanges:
    """Partial edit; None means 'leave as is'."""

    sport: str | None = None
    bookmaker: str | None = None
    kind: WagerKind | None = None
    legs: list[Leg] | None = None
    stake_cents: int | None = None
    odds: Decimal | None = None
    tags: list[str] | None = None
    notes: str | None = None


# ---------------------------------------------------------------------------
# Profit arithmetic
# ---------------------------------------------------------------------------


def settlement_profit(wager: Wager) -> int:
    """won: stake*(odds-1); lost: -stake; void/pending: 0; cashed_out: stored profit."""
    if wager.status == WagerStatus.WON:
        return multiply_cents(wager.stake_cents, wager.odds - 1)
    if wager.status == WagerStatus.LOST:
        return -wager.stake_cents
    if wager.status == WagerStatus.CASHED_OUT:
        return wager.profit_cents or 0
    return 0


def resolve_settled_profit(
    wager: Wager, status: WagerStatus, manual_profit_cents: int | None
) -> SettledProfit | None:
    """Profit the wager will carry in ``status``; None while pending.

    A cash-out without a manual amount keeps the previously stored cash-out
    profit (or 0). Boundaries reject that case before calling in.
    """
    if status == WagerStatus.PENDING:
        return None
    if status == WagerStatus.CASHED_OUT:
        if manual_profit_cents is not None:
            return ManualProfit(manual_profit_cents)
        kept = wager.profit_cents if wager.status == WagerStatus.CASHED_OUT else None
        return ManualProfit(kept or 0)
    return ComputedProfit(settlement_profit(replace(wager, status=status)))


def booked_profit(wager: Wager) -> int:
    """Profit currently reflected in the balance for this wager."""
    if wager.status == WagerStatus.PENDING:
        return 0
    if wager.profit_cents is None:
        return settlement_profit(wager)
    return wager.profit_cents


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _append_entry(
    aggregate: Aggregate,
    kind: LedgerEntryKind,
    delta_cents: int,
    description: str,
    wager_id: str | None,
    now: datetime,
) -> tuple[Aggregate, LedgerEntry]:
    before = aggregate.balance_cents
    entry = LedgerEntry(
        id=len(aggregate.ledger) + 1,
        timestamp=now,
        kind=kind,
        delta_cents=delta_cents,
        balance_before_cents=before,
        balance_after_cents=before + delta_cents,
        description=description,
        wager_id=wager_id,
    )
    logger.info(
        "Ledger entry #%d %s delta=%d balance %d -> %d wager=%s",
        entry.id, kind.value, delta_cents, before, entry.balance_after_cents, wager_id,
    )
    updated = replace(
        aggregate,
        balance_cents=entry.balance_after_cents,
        ledger=[*aggregate.ledger, entry],
    )
    return updated, entry


def _replace_wager(aggregate: Aggregate, wager: Wager) -> Aggregate:
    return replace(
        aggregate,
        wagers=[wager if w.id == wager.id else w for w in aggregate.wagers],
    )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def apply_status_change(
    aggregate: Aggregate,
    wager_id: str,
    new_status: WagerStatus,
    manual_profit_cents: int | None = None,
    now: datetime | None = None,
    description: str | None = None,
) -> tuple[Aggregate, LedgerEntry | None]:
    """Move a wager to ``new_status`` and book the profit difference."""
    wager = aggregate.find_wager(wager_id)
    if wager is None:
        return aggregate, None

    old_profit = booked_profit(wager)
    settled = resolve_settled_profit(wager, new_status, manual_profit_cents)
    new_profit = 0 if settled is None else settled.amount_cents
    updated_wager = replace(
        wager,
        status=new_status,
        profit_cents=None if settled is None else settled.amount_cents,
    )
    result = _replace_wager(aggregate, updated_wager)

    delta = new_profit - old_profit
    if delta == 0:
        return result, None

    text = description or f"{_DESCRIPTION_BY_STATUS[new_status]}: {updated_wager.display_label}"
    return _append_entry(
        result,
        _ENTRY_KIND_BY_STATUS[new_status],
        delta,
        text,
        wager.id,
        now or utc_now(),
    )


def delete_wager(
    aggregate: Aggregate,
    wager_id: str,
    now: datetime | None = None,
) -> tuple[Aggregate, LedgerEntry | None]:
    """Reverse a settled wager's booked profit, then drop it from the list."""
    wager = aggregate.find_wager(wager_id)
    if wager is None:
        return aggregate, None

    entry: LedgerEntry | None = None
    if wager.status != WagerStatus.PENDING:
        aggregate, entry = apply_status_change(
            aggregate,
            wager_id,
            WagerStatus.PENDING,
            now=now,
            description=f"Settlement reversed (wager deleted): {wager.display_label}",
        )

    remaining = [w for w in aggregate.wagers if w.id != wager_id]
    return replace(aggregate, wagers=remaining), entry


def set_balance(
    aggregate: Aggregate,
    new_balance_cents: int,
    now: datetime | None = None,
) -> tuple[Aggregate, LedgerEntry | None]:
    """Manual deposit or withdrawal bringing the balance to ``new_balance_cents``."""
    delta = new_balance_cents - aggregate.balance_cents
    if delta == 0:
        return aggregate, None
    if delta > 0:
        return _append_entry(
            aggregate, LedgerEntryKind.DEPOSIT, delta, "Manual deposit", None, now or utc_now()
        )
    return _append_entry(
        aggregate, LedgerEntryKind.WITHDRAWAL, delta, "Withdrawal", None, now or utc_now()
    )


def add_wager(
    aggregate: Aggregate,
    draft: WagerDraft,
    now: datetime | None = None,
    wager_id: str | None = None,
) -> tuple[Aggregate, Wager, LedgerEntry | None]:
    """Insert a new wager (newest first); settle it immediately if the draft is not pending."""
    now = now or utc_now()
    wager = Wager(
        id=wager_id or generate_id(),
        created_at=now,
        sport=draft.sport.strip(),
        bookmaker=draft.bookmaker.strip(),
        kind=draft.kind,
        legs=list(draft.legs),
        stake_cents=draft.stake_cents,
        odds=draft.odds,
        tags=normalize_tags(draft.tags),
        notes=draft.notes,
        display_label=display_label(draft.legs, draft.kind, draft.sport),
    )
    aggregate = replace(aggregate, wagers=[wager, *aggregate.wagers])

    entry: LedgerEntry | None = None
    if draft.status != WagerStatus.PENDING:
        aggregate, entry = apply_status_change(
            aggregate, wager.id, draft.status, draft.manual_profit_cents, now
        )
    created = aggregate.find_wager(wager.id)
    assert created is not None
    return aggregate, created, entry


def update_wager(
    aggregate: Aggregate,
    wager_id: str,
    changes: WagerChanges,
    now: datetime | None = None,
) -> tuple[Aggregate, LedgerEntry | None]:
    """Edit wager fields; a settled wager has its profit re-booked."""
    wager = aggregate.find_wager(wager_id)
    if wager is None:
        return aggregate, None

    updated = replace(
        wager,
        sport=changes.sport.strip() if changes.sport is not None else wager.sport,
        bookmaker=changes.bookmaker.strip() if changes.bookmaker is not None else wager.bookmaker,
        kind=changes.kind if changes.kind is not None else wager.kind,
        legs=list(changes.legs) if changes.legs is not None else wager.legs,
        stake_cents=changes.stake_cents if changes.stake_cents is not None else wager.stake_cents,
        odds=changes.odds if changes.odds is not None else wager.odds,
        tags=normalize_tags(changes.tags) if changes.tags is not None else wager.tags,
        notes=changes.notes if changes.notes is not None else wager.notes,
    )
    updated = replace(
        updated, display_label=display_label(updated.legs, updated.kind, updated.sport)
    )

    old_profit = booked_profit(wager)
    if updated.status not in (WagerStatus.PENDING, WagerStatus.CASHED_OUT):
        updated = replace(updated, profit_cents=settlement_profit(updated))
    result = _replace_wager(aggregate, updated)

    delta = booked_profit(updated) - old_profit
    if delta == 0:
        return result, None
    return _append_entry(
        result,
        _ENTRY_KIND_BY_STATUS[updated.status],
        delta,
        f"Wager edited: {updated.display_label}",
        wager.id,
        now or utc_now(),
    )
