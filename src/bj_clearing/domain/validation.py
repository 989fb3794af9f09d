"""Input rules checked before anything reaches the ledger core.

The settlement functions are total over valid input; these checks are what
make the input valid. Each rule raises a ValidationError subclass.
"""

import math
import re
from datetime import datetime
from decimal import Decimal

from src.bj_account.domain.models import Leg
from src.bj_common.datetime_utils import ensure_utc
from src.bj_common.enums import GoalMetric, GoalScopeType, WagerKind, WagerStatus
from src.bj_common.errors import (
    InvalidBalanceError,
    InvalidGoalError,
    InvalidLegsError,
    InvalidOddsError,
    InvalidStakeError,
    ManualProfitRequiredError,
)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_NICKNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

# "Home - Away, Market"
_LEG_LINE_RE = re.compile(r"^\s*(?P<home>.+?)\s+-\s+(?P<away>.+?)\s*,\s*(?P<market>.+?)\s*$")


def validate_stake(stake_cents: int | None) -> None:
    if stake_cents is None or stake_cents <= 0:
        raise InvalidStakeError()


def validate_odds(odds: Decimal | None) -> None:
    if odds is None or not odds.is_finite() or odds <= 1:
        raise InvalidOddsError()


def validate_legs(legs: list[Leg]) -> None:
    if not legs:
        raise InvalidLegsError("at least one leg is required")
    for i, leg in enumerate(legs, start=1):
        if not leg.home.strip() or not leg.away.strip() or not leg.market.strip():
            raise InvalidLegsError(f"leg {i} needs home, away and market")
        if leg.home.strip().lower() == leg.away.strip().lower():
            raise InvalidLegsError(f"leg {i} has the same home and away side")


def validate_status_change(status: WagerStatus, manual_profit_cents: int | None) -> None:
    if status == WagerStatus.CASHED_OUT and manual_profit_cents is None:
        raise ManualProfitRequiredError()


def validate_balance(new_balance_cents: int) -> None:
    if new_balance_cents < 0:
        raise InvalidBalanceError()


def validate_goal_scope(scope_type: GoalScopeType, value: str | None) -> None:
    if scope_type != GoalScopeType.ALL and not (value and value.strip()):
        raise InvalidGoalError(f"scope '{scope_type.value}' needs a value")


def parse_leg_line(text: str) -> Leg | None:
    """Parse 'Real Madrid - Barcelona, Home win'. Returns None on bad shape."""
    match = _LEG_LINE_RE.match(text)
    if match is None:
        return None
    return Leg(
        home=match.group("home").strip(),
        away=match.group("away").strip(),
        market=match.group("market").strip(),
    )


def normalize_tags(tags: list[str] | set[str] | None) -> list[str]:
    """Tags are a set; persisted sorted for stable JSON."""
    if not tags:
        return []
    return sorted({t.strip() for t in tags if t and t.strip()})


def resolve_kind(kind: WagerKind | None, legs: list[Leg]) -> WagerKind:
    """Derive the kind from the leg count when not given; a single has exactly one leg."""
    if kind is None:
        return WagerKind.PARLAY if len(legs) > 1 else WagerKind.SINGLE
    if kind == WagerKind.SINGLE and len(legs) != 1:
        raise InvalidLegsError("a single wager has exactly one leg")
    if kind in (WagerKind.PARLAY, WagerKind.SYSTEM) and len(legs) < 2:
        raise InvalidLegsError(f"a {kind.value} wager needs at least two legs")
    return kind


def validate_goal_target(metric: GoalMetric, target_value: float) -> None:
    if not math.isfinite(target_value):
        raise InvalidGoalError("target must be a number")
    if metric == GoalMetric.BET_COUNT and target_value <= 0:
        raise InvalidGoalError("bet count target must be positive")
    if metric == GoalMetric.WIN_RATE and not 0 < target_value <= 100:
        raise InvalidGoalError("win rate target must be within 0..100")


def validate_goal(
    title: str,
    metric: GoalMetric,
    target_value: float,
    deadline: datetime,
    now: datetime,
) -> None:
    if not title.strip():
        raise InvalidGoalError("title is required")
    validate_goal_target(metric, target_value)
    if ensure_utc(deadline) <= now:
        raise InvalidGoalError("deadline must be in the future")
