"""Read-side analytics summary, re-derived from wagers and ledger on every read."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.bj_account.domain.models import Aggregate, Wager
from src.bj_common.enums import WagerStatus

# (label, lower bound inclusive, upper bound exclusive)
_ODDS_BANDS: list[tuple[str, Decimal, Decimal | None]] = [
    ("< 1.5", Decimal("1"), Decimal("1.5")),
    ("1.5 - 2.0", Decimal("1.5"), Decimal("2.0")),
    ("2.0 - 2.5", Decimal("2.0"), Decimal("2.5")),
    ("2.5 - 3.5", Decimal("2.5"), Decimal("3.5")),
    ("> 3.5", Decimal("3.5"), None),
]


@dataclass
class SegmentStats:
    key: str
    staked_cents: int = 0
    profit_cents: int = 0
    wins: int = 0
    losses: int = 0

    @property
    def roi(self) -> float:
        return roi_percent(self.profit_cents, self.staked_cents)

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses
        return (self.wins / decided) * 100 if decided else 0.0


@dataclass
class BalancePoint:
    timestamp: datetime
    balance_cents: int


@dataclass
class AnalyticsSummary:
    balance_cents: int
    turnover_cents: int
    total_profit_cents: int
    roi: float
    win_rate: float
    settled_count: int
    won_count: int
    lost_count: int
    pending_count: int
    by_sport: list[SegmentStats] = field(default_factory=list)
    by_kind: list[SegmentStats] = field(default_factory=list)
    by_odds: list[SegmentStats] = field(default_factory=list)
    balance_history: list[BalancePoint] = field(default_factory=list)


def roi_percent(profit_cents: int, staked_cents: int) -> float:
    return (profit_cents / staked_cents) * 100 if staked_cents else 0.0


def win_rate_percent(wagers: list[Wager]) -> float:
    """Won share of non-void settled wagers, in percent."""
    non_void = [w for w in wagers if w.status != WagerStatus.VOID]
    if not non_void:
        return 0.0
    won = sum(1 for w in non_void if w.status == WagerStatus.WON)
    return (won / len(non_void)) * 100


def _odds_band(odds: Decimal) -> str | None:
    for label, low, high in _ODDS_BANDS:
        if odds >= low and (high is None or odds < high):
            return label
    return None


def _accumulate(segment: SegmentStats, wager: Wager) -> None:
    segment.staked_cents += wager.stake_cents
    segment.profit_cents += wager.profit_cents or 0
    if wager.status == WagerStatus.WON:
        segment.wins += 1
    elif wager.status == WagerStatus.LOST:
        segment.losses += 1


def summarize(aggregate: Aggregate) -> AnalyticsSummary:
    settled = aggregate.settled_wagers()
    turnover = sum(w.stake_cents for w in settled)
    total_profit = sum(w.profit_cents or 0 for w in settled)

    by_sport: dict[str, SegmentStats] = {}
    by_kind: dict[str, SegmentStats] = {}
    by_odds = {label: SegmentStats(key=label) for label, _, _ in _ODDS_BANDS}

    for wager in settled:
        _accumulate(by_sport.setdefault(wager.sport, SegmentStats(key=wager.sport)), wager)
        _accumulate(
            by_kind.setdefault(wager.kind.value, SegmentStats(key=wager.kind.value)), wager
        )
        band = _odds_band(wager.odds)
        if band is not None:
            _accumulate(by_odds[band], wager)

    history = [
        BalancePoint(timestamp=e.timestamp, balance_cents=e.balance_after_cents)
        for e in aggregate.ledger
    ]

    return AnalyticsSummary(
        balance_cents=aggregate.balance_cents,
        turnover_cents=turnover,
        total_profit_cents=total_profit,
        roi=roi_percent(total_profit, turnover),
        win_rate=win_rate_percent(settled),
        settled_count=len(settled),
        won_count=sum(1 for w in settled if w.status == WagerStatus.WON),
        lost_count=sum(1 for w in settled if w.status == WagerStatus.LOST),
        pending_count=len(aggregate.wagers) - len(settled),
        by_sport=sorted(by_sport.values(), key=lambda s: s.profit_cents, reverse=True),
        by_kind=list(by_kind.values()),
        by_odds=[by_odds[label] for label, _, _ in _ODDS_BANDS],
        balance_history=history,
    )
