"""Human-readable wager labels derived from legs, kind and sport."""

from src.bj_account.domain.models import Leg
from src.bj_common.enums import WagerKind

# Individual sports read better as "A - B" than "A vs B"
_DASH_SPORTS = frozenset({"tennis", "boxing", "mma", "table tennis", "badminton"})


def _event_name(leg: Leg, sport: str) -> str:
    sep = " - " if sport.strip().lower() in _DASH_SPORTS else " vs "
    return f"{leg.home}{sep}{leg.away}"


def display_label(legs: list[Leg], kind: WagerKind, sport: str) -> str:
    """Single: 'Real vs Barca - Home win'; parlay: 'Parlay (3 events, Real vs Barca...)'."""
    if not legs:
        return "Empty event"

    if kind == WagerKind.SINGLE and len(legs) == 1:
        leg = legs[0]
        if not leg.home or not leg.away or not leg.market:
            return "Incomplete event"
        return f"{_event_name(leg, sport)} - {leg.market}"

    if kind == WagerKind.PARLAY:
        count = len(legs)
        noun = "event" if count == 1 else "events"
        return f"Parlay ({count} {noun}, {legs[0].home} vs {legs[0].away}...)"

    if kind == WagerKind.SYSTEM:
        return f"System bet ({len(legs)} selections)"

    return legs[0].market or "Unknown event"
