"""Unit tests for bj_clearing.domain.validation and labels."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.bj_account.domain.models import Leg
from src.bj_clearing.domain.labels import display_label
from src.bj_clearing.domain.validation import (
    normalize_tags,
    parse_leg_line,
    resolve_kind,
    validate_balance,
    validate_goal,
    validate_goal_target,
    validate_goal_scope,
    validate_legs,
    validate_odds,
    validate_stake,
    validate_status_change,
)
from src.bj_common.enums import GoalMetric, GoalScopeType, WagerKind, WagerStatus
from src.bj_common.errors import (
    InvalidBalanceError,
    InvalidGoalError,
    InvalidLegsError,
    InvalidOddsError,
    InvalidStakeError,
    ManualProfitRequiredError,
)

NOW = datetime(2026, 3, 1, tzinfo=UTC)
LEG = Leg(home="Real", away="Barca", market="Home win")


class TestWagerInput:
    def test_stake_must_be_positive(self) -> None:
        validate_stake(1)
        for bad in (0, -100, None):
            with pytest.raises(InvalidStakeError):
                validate_stake(bad)

    def test_odds_must_exceed_one(self) -> None:
        validate_odds(Decimal("1.01"))
        for bad in (Decimal("1"), Decimal("0.5"), Decimal("NaN"), None):
            with pytest.raises(InvalidOddsError):
                validate_odds(bad)

    def test_legs_required(self) -> None:
        with pytest.raises(InvalidLegsError):
            validate_legs([])

    def test_leg_fields_required(self) -> None:
        with pytest.raises(InvalidLegsError, match="leg 2"):
            validate_legs([LEG, Leg(home="A", away="", market="Over")])

    def test_same_sides_rejected(self) -> None:
        with pytest.raises(InvalidLegsError):
            validate_legs([Leg(home="Real", away="real", market="Draw")])

    def test_cashout_needs_amount(self) -> None:
        validate_status_change(WagerStatus.CASHED_OUT, 0)
        validate_status_change(WagerStatus.WON, None)
        with pytest.raises(ManualProfitRequiredError):
            validate_status_change(WagerStatus.CASHED_OUT, None)

    def test_negative_balance_rejected(self) -> None:
        validate_balance(0)
        with pytest.raises(InvalidBalanceError):
            validate_balance(-1)


class TestResolveKind:
    def test_derived_from_leg_count(self) -> None:
        assert resolve_kind(None, [LEG]) == WagerKind.SINGLE
        assert resolve_kind(None, [LEG, LEG]) == WagerKind.PARLAY

    def test_single_with_two_legs_rejected(self) -> None:
        with pytest.raises(InvalidLegsError):
            resolve_kind(WagerKind.SINGLE, [LEG, LEG])

    def test_system_needs_two_legs(self) -> None:
        with pytest.raises(InvalidLegsError):
            resolve_kind(WagerKind.SYSTEM, [LEG])
        assert resolve_kind(WagerKind.SYSTEM, [LEG, LEG, LEG]) == WagerKind.SYSTEM


class TestParsing:
    def test_leg_line(self) -> None:
        leg = parse_leg_line("Real Madrid - Barcelona, Home win")
        assert leg == Leg(home="Real Madrid", away="Barcelona", market="Home win")

    def test_leg_line_bad_shape(self) -> None:
        assert parse_leg_line("Real Madrid vs Barcelona") is None
        assert parse_leg_line("Real - Barca") is None

    def test_tags_sorted_unique(self) -> None:
        assert normalize_tags(["value", " live", "value", ""]) == ["live", "value"]
        assert normalize_tags(None) == []


class TestGoalInput:
    def test_valid(self) -> None:
        validate_goal("Monthly profit", GoalMetric.PROFIT, 100000, NOW + timedelta(days=30), NOW)

    def test_loss_limit_allowed(self) -> None:
        validate_goal("Stop loss", GoalMetric.PROFIT, -20000, NOW + timedelta(days=7), NOW)

    def test_empty_title(self) -> None:
        with pytest.raises(InvalidGoalError):
            validate_goal("  ", GoalMetric.ROI, 10, NOW + timedelta(days=1), NOW)

    def test_deadline_in_past(self) -> None:
        with pytest.raises(InvalidGoalError, match="future"):
            validate_goal("ROI", GoalMetric.ROI, 10, NOW - timedelta(days=1), NOW)

    def test_win_rate_range(self) -> None:
        with pytest.raises(InvalidGoalError):
            validate_goal("WR", GoalMetric.WIN_RATE, 120, NOW + timedelta(days=1), NOW)

    def test_bet_count_positive(self) -> None:
        with pytest.raises(InvalidGoalError):
            validate_goal("Bets", GoalMetric.BET_COUNT, 0, NOW + timedelta(days=1), NOW)

    def test_non_finite_target(self) -> None:
        with pytest.raises(InvalidGoalError):
            validate_goal("X", GoalMetric.ROI, float("nan"), NOW + timedelta(days=1), NOW)

    def test_target_rules_without_deadline(self) -> None:
        validate_goal_target(GoalMetric.WIN_RATE, 100)
        validate_goal_target(GoalMetric.PROFIT, -5000)
        with pytest.raises(InvalidGoalError, match="0..100"):
            validate_goal_target(GoalMetric.WIN_RATE, 150)
        with pytest.raises(InvalidGoalError, match="positive"):
            validate_goal_target(GoalMetric.BET_COUNT, -1)
        with pytest.raises(InvalidGoalError, match="number"):
            validate_goal_target(GoalMetric.ROI, float("inf"))

    def test_scope_value_required(self) -> None:
        validate_goal_scope(GoalScopeType.ALL, None)
        with pytest.raises(InvalidGoalError):
            validate_goal_scope(GoalScopeType.SPORT, " ")


class TestDisplayLabel:
    def test_single(self) -> None:
        assert display_label([LEG], WagerKind.SINGLE, "Football") == "Real vs Barca - Home win"

    def test_single_individual_sport_uses_dash(self) -> None:
        leg = Leg(home="Sinner", away="Alcaraz", market="P1")
        assert display_label([leg], WagerKind.SINGLE, "Tennis") == "Sinner - Alcaraz - P1"

    def test_parlay(self) -> None:
        label = display_label([LEG, LEG, LEG], WagerKind.PARLAY, "Football")
        assert label == "Parlay (3 events, Real vs Barca...)"

    def test_system(self) -> None:
        assert display_label([LEG, LEG], WagerKind.SYSTEM, "Football") == "System bet (2 selections)"

    def test_empty_and_incomplete(self) -> None:
        assert display_label([], WagerKind.SINGLE, "Football") == "Empty event"
        assert (
            display_label([Leg(home="A", away="", market="X")], WagerKind.SINGLE, "Football")
            == "Incomplete event"
        )
