"""JSON codec for the Aggregate stored as one KV value.

Decoding never raises: an absent key gives a fresh aggregate, and a payload
that fails full validation is salvaged section by section — each top-level
section that still validates is kept, the rest fall back to defaults.
"""

import json
import logging
from dataclasses import replace
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from src.bj_account.domain.models import (
    Account,
    Aggregate,
    DialogState,
    Goal,
    LedgerEntry,
    Wager,
)

logger = logging.getLogger(__name__)

_AGGREGATE_ADAPTER: TypeAdapter[Aggregate] = TypeAdapter(Aggregate)

_BALANCE_SECTIONS = frozenset({"balance_cents", "initial_balance_cents"})

_SECTION_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "account": TypeAdapter(Account | None),
    "wagers": TypeAdapter(list[Wager]),
    "balance_cents": TypeAdapter(int),
    "initial_balance_cents": TypeAdapter(int),
    "goals": TypeAdapter(list[Goal]),
    "ledger": TypeAdapter(list[LedgerEntry]),
    "dialog": TypeAdapter(DialogState | None),
}


def encode_aggregate(aggregate: Aggregate) -> bytes:
    return _AGGREGATE_ADAPTER.dump_json(aggregate)


def decode_aggregate(raw: bytes | None, bankroll_cents: int) -> Aggregate:
    if raw is None:
        return Aggregate.fresh(bankroll_cents)

    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Aggregate payload is not JSON, starting fresh")
        return Aggregate.fresh(bankroll_cents)
    if not isinstance(data, dict):
        logger.warning("Aggregate payload is %s, not an object; starting fresh", type(data).__name__)
        return Aggregate.fresh(bankroll_cents)

    # Full validation only when both balances are stored; otherwise they are rebuilt below
    if _BALANCE_SECTIONS <= data.keys():
        try:
            return _AGGREGATE_ADAPTER.validate_python(data)
        except PydanticValidationError:
            pass

    salvaged: dict[str, Any] = {}
    for name, adapter in _SECTION_ADAPTERS.items():
        if name not in data:
            continue
        try:
            salvaged[name] = adapter.validate_python(data[name])
        except PydanticValidationError as e:
            logger.warning("Dropping malformed aggregate section %r (%d errors)", name, e.error_count())

    ledger_sum = sum(e.delta_cents for e in salvaged.get("ledger", []))
    if "balance_cents" in salvaged and "initial_balance_cents" not in salvaged:
        salvaged["initial_balance_cents"] = salvaged["balance_cents"] - ledger_sum
    elif "balance_cents" not in salvaged:
        initial = salvaged.get("initial_balance_cents", bankroll_cents)
        salvaged["initial_balance_cents"] = initial
        salvaged["balance_cents"] = initial + ledger_sum

    return replace(Aggregate.fresh(bankroll_cents), **salvaged)
