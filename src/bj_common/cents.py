"""Integer arithmetic utilities for the cents-based journal.

Stakes, profits and balances are int (cents). Odds are Decimal.
Floats never touch money; they only appear in percentage metrics.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def signed_cents_to_display(cents: int) -> str:
    """Like cents_to_display but with an explicit '+' for gains."""
    if cents > 0:
        return "+" + cents_to_display(cents)
    return cents_to_display(cents)


def parse_amount_to_cents(raw: str) -> int | None:
    """Parse user-typed money ('100', '150.50', '1 000,5') into cents.

    Returns None when the text is not a finite number with at most 2 decimals.
    """
    cleaned = raw.strip().replace(" ", "").replace(",", ".")
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite() or value.as_tuple().exponent < -2:  # type: ignore[operator]
        return None
    return int((value * 100).to_integral_value(rounding=ROUND_HALF_UP))


def parse_odds(raw: str) -> Decimal | None:
    """Parse decimal odds ('1.85', '2,5'). Returns None if not a finite number."""
    cleaned = raw.strip().replace(",", ".")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def multiply_cents(cents: int, factor: Decimal) -> int:
    """cents * factor rounded half-up to a whole cent."""
    return int((Decimal(cents) * factor).to_integral_value(rounding=ROUND_HALF_UP))
