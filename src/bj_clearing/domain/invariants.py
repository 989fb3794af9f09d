"""Aggregate invariant verification.

INV-1: balance == initial_balance + Σ ledger deltas
INV-2: every won/lost/void wager carries profit == settlement_profit(wager)
INV-3: ledger ids are 1..n and each entry starts where the previous one ended
INV-4: pending wagers carry no profit
"""

import logging

from src.bj_account.domain.models import Aggregate
from src.bj_clearing.domain.settlement import settlement_profit
from src.bj_common.enums import WagerStatus

logger = logging.getLogger(__name__)


def verify_aggregate_invariants(aggregate: Aggregate) -> list[str]:
    """Returns list of violation strings (empty when consistent)."""
    violations: list[str] = []

    ledger_sum = sum(e.delta_cents for e in aggregate.ledger)
    expected = aggregate.initial_balance_cents + ledger_sum
    if aggregate.balance_cents != expected:
        violations.append(
            f"INV-1 violated: balance={aggregate.balance_cents} != "
            f"initial({aggregate.initial_balance_cents}) + ledger({ledger_sum}) = {expected}"
        )

    for wager in aggregate.wagers:
        if wager.status in (WagerStatus.WON, WagerStatus.LOST, WagerStatus.VOID):
            computed = settlement_profit(wager)
            if wager.profit_cents != computed:
                violations.append(
                    f"INV-2 violated: wager {wager.id} profit={wager.profit_cents} "
                    f"!= computed={computed}"
                )
        elif wager.status == WagerStatus.PENDING and wager.profit_cents is not None:
            violations.append(
                f"INV-4 violated: pending wager {wager.id} has profit={wager.profit_cents}"
            )

    running = aggregate.initial_balance_cents
    for position, entry in enumerate(aggregate.ledger, start=1):
        if entry.id != position:
            violations.append(f"INV-3 violated: entry at position {position} has id={entry.id}")
        if entry.balance_before_cents != running:
            violations.append(
                f"INV-3 violated: entry {entry.id} starts at {entry.balance_before_cents}, "
                f"previous balance was {running}"
            )
        if entry.balance_after_cents != entry.balance_before_cents + entry.delta_cents:
            violations.append(
                f"INV-3 violated: entry {entry.id} before({entry.balance_before_cents}) + "
                f"delta({entry.delta_cents}) != after({entry.balance_after_cents})"
            )
        running = entry.balance_after_cents

    for msg in violations:
        logger.error(msg)
    return violations
