"""Tests for bj_common.cents — integer money utilities."""

from decimal import Decimal

from src.bj_common.cents import (
    cents_to_display,
    multiply_cents,
    parse_amount_to_cents,
    parse_odds,
    signed_cents_to_display,
)


class TestCentsToDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(6500) == "$65.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "$0.00"

    def test_one_cent(self) -> None:
        assert cents_to_display(1) == "$0.01"

    def test_large(self) -> None:
        assert cents_to_display(150000) == "$1,500.00"

    def test_negative(self) -> None:
        assert cents_to_display(-1250) == "-$12.50"

    def test_signed_gain_has_plus(self) -> None:
        assert signed_cents_to_display(15000) == "+$150.00"

    def test_signed_loss_and_zero(self) -> None:
        assert signed_cents_to_display(-100) == "-$1.00"
        assert signed_cents_to_display(0) == "$0.00"


class TestParseAmount:
    def test_whole_number(self) -> None:
        assert parse_amount_to_cents("100") == 10000

    def test_two_decimals(self) -> None:
        assert parse_amount_to_cents("150.50") == 15050

    def test_comma_decimal_and_spaces(self) -> None:
        assert parse_amount_to_cents("1 000,5") == 100050

    def test_negative(self) -> None:
        assert parse_amount_to_cents("-20.25") == -2025

    def test_three_decimals_rejected(self) -> None:
        assert parse_amount_to_cents("1.005") is None

    def test_garbage_rejected(self) -> None:
        assert parse_amount_to_cents("abc") is None
        assert parse_amount_to_cents("   ") is None

    def test_non_finite_rejected(self) -> None:
        assert parse_amount_to_cents("NaN") is None
        assert parse_amount_to_cents("Infinity") is None


class TestParseOdds:
    def test_dot(self) -> None:
        assert parse_odds("1.85") == Decimal("1.85")

    def test_comma(self) -> None:
        assert parse_odds("2,5") == Decimal("2.5")

    def test_garbage(self) -> None:
        assert parse_odds("x") is None

    def test_nan(self) -> None:
        assert parse_odds("nan") is None


class TestMultiplyCents:
    def test_exact(self) -> None:
        assert multiply_cents(10000, Decimal("1.5")) == 15000

    def test_rounds_half_up(self) -> None:
        # 333 * 0.5 = 166.5 -> 167
        assert multiply_cents(333, Decimal("0.5")) == 167
