"""Pydantic schemas and cursor utilities for the journal API.

Request models only check shape; range rules (stake > 0, odds > 1, ...) are
enforced by bj_clearing.domain.validation so the web and chat channels report
the same error codes.
"""

import base64
import json
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.bj_account.domain.models import Account, Goal, LedgerEntry, Leg, Wager
from src.bj_clearing.domain.analytics import AnalyticsSummary, SegmentStats
from src.bj_common.cents import cents_to_display, signed_cents_to_display
from src.bj_common.enums import GoalMetric, GoalScopeType, WagerKind, WagerStatus
from src.bj_goals.domain.evaluator import goal_progress

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a ledger entry id into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LegIn(BaseModel):
    home: str
    away: str
    market: str

    def to_domain(self) -> Leg:
        return Leg(home=self.home.strip(), away=self.away.strip(), market=self.market.strip())


class CreateWagerRequest(BaseModel):
    sport: str = Field(..., min_length=1, max_length=64)
    bookmaker: str = Field("", max_length=64)
    kind: WagerKind | None = Field(None, description="Derived from the leg count when omitted")
    legs: list[LegIn]
    stake_cents: int
    odds: Decimal
    status: WagerStatus = WagerStatus.PENDING
    profit_cents: int | None = Field(None, description="Required when status is cashed_out")
    tags: list[str] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=2000)


class UpdateWagerRequest(BaseModel):
    sport: str | None = Field(None, min_length=1, max_length=64)
    bookmaker: str | None = Field(None, max_length=64)
    kind: WagerKind | None = None
    legs: list[LegIn] | None = None
    stake_cents: int | None = None
    odds: Decimal | None = None
    tags: list[str] | None = None
    notes: str | None = Field(None, max_length=2000)


class SetWagerStatusRequest(BaseModel):
    status: WagerStatus
    profit_cents: int | None = Field(None, description="Cash-out profit, required for cashed_out")


class SetBalanceRequest(BaseModel):
    balance_cents: int


class CreateGoalRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=120)
    metric: GoalMetric
    target_value: float
    deadline: datetime
    scope_type: GoalScopeType = GoalScopeType.ALL
    scope_value: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LegOut(BaseModel):
    home: str
    away: str
    market: str


class WagerItem(BaseModel):
    id: str
    created_at: str
    sport: str
    bookmaker: str
    kind: str
    legs: list[LegOut]
    stake_cents: int
    stake_display: str
    odds: str
    status: str
    profit_cents: int | None
    profit_display: str | None
    tags: list[str]
    notes: str | None
    display_label: str

    @classmethod
    def from_domain(cls, wager: Wager) -> "WagerItem":
        return cls(
            id=wager.id,
            created_at=wager.created_at.isoformat(),
            sport=wager.sport,
            bookmaker=wager.bookmaker,
            kind=wager.kind.value,
            legs=[LegOut(home=leg.home, away=leg.away, market=leg.market) for leg in wager.legs],
            stake_cents=wager.stake_cents,
            stake_display=cents_to_display(wager.stake_cents),
            odds=str(wager.odds),
            status=wager.status.value,
            profit_cents=wager.profit_cents,
            profit_display=(
                signed_cents_to_display(wager.profit_cents)
                if wager.profit_cents is not None
                else None
            ),
            tags=list(wager.tags),
            notes=wager.notes,
            display_label=wager.display_label,
        )


class WagerMutationResponse(BaseModel):
    wager: WagerItem | None
    balance_cents: int
    balance_display: str
    ledger_entry_id: int | None


class BalanceResponse(BaseModel):
    account_id: str
    balance_cents: int
    balance_display: str
    initial_balance_cents: int
    initial_balance_display: str
    ledger_entry_id: int | None = None

    @classmethod
    def from_cents(
        cls,
        account_id: str,
        balance: int,
        initial: int,
        entry_id: int | None = None,
    ) -> "BalanceResponse":
        return cls(
            account_id=account_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            initial_balance_cents=initial,
            initial_balance_display=cents_to_display(initial),
            ledger_entry_id=entry_id,
        )


class LedgerEntryItem(BaseModel):
    id: int
    kind: str
    delta_cents: int
    delta_display: str
    balance_before_cents: int
    balance_after_cents: int
    balance_after_display: str
    description: str
    wager_id: str | None
    timestamp: str  # ISO8601 string

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            kind=entry.kind.value,
            delta_cents=entry.delta_cents,
            delta_display=signed_cents_to_display(entry.delta_cents),
            balance_before_cents=entry.balance_before_cents,
            balance_after_cents=entry.balance_after_cents,
            balance_after_display=cents_to_display(entry.balance_after_cents),
            description=entry.description,
            wager_id=entry.wager_id,
            timestamp=entry.timestamp.isoformat(),
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class GoalItem(BaseModel):
    id: str
    title: str
    metric: str
    target_value: float
    current_value: float
    status: str
    scope_type: str
    scope_value: str | None
    created_at: str
    deadline: str
    progress_percent: float
    progress_label: str

    @classmethod
    def from_domain(cls, goal: Goal) -> "GoalItem":
        percent, label = goal_progress(goal)
        return cls(
            id=goal.id,
            title=goal.title,
            metric=goal.metric.value,
            target_value=goal.target_value,
            current_value=goal.current_value,
            status=goal.status.value,
            scope_type=goal.scope.type.value,
            scope_value=goal.scope.value,
            created_at=goal.created_at.isoformat(),
            deadline=goal.deadline.isoformat(),
            progress_percent=round(percent, 2),
            progress_label=label,
        )


class SegmentItem(BaseModel):
    key: str
    staked_cents: int
    profit_cents: int
    wins: int
    losses: int
    roi: float
    win_rate: float

    @classmethod
    def from_domain(cls, segment: SegmentStats) -> "SegmentItem":
        return cls(
            key=segment.key,
            staked_cents=segment.staked_cents,
            profit_cents=segment.profit_cents,
            wins=segment.wins,
            losses=segment.losses,
            roi=round(segment.roi, 2),
            win_rate=round(segment.win_rate, 2),
        )


class BalancePointItem(BaseModel):
    timestamp: str
    balance_cents: int


class AnalyticsResponse(BaseModel):
    balance_cents: int
    turnover_cents: int
    total_profit_cents: int
    roi: float
    win_rate: float
    settled_count: int
    won_count: int
    lost_count: int
    pending_count: int
    by_sport: list[SegmentItem]
    by_kind: list[SegmentItem]
    by_odds: list[SegmentItem]
    balance_history: list[BalancePointItem]

    @classmethod
    def from_domain(cls, summary: AnalyticsSummary) -> "AnalyticsResponse":
        return cls(
            balance_cents=summary.balance_cents,
            turnover_cents=summary.turnover_cents,
            total_profit_cents=summary.total_profit_cents,
            roi=round(summary.roi, 2),
            win_rate=round(summary.win_rate, 2),
            settled_count=summary.settled_count,
            won_count=summary.won_count,
            lost_count=summary.lost_count,
            pending_count=summary.pending_count,
            by_sport=[SegmentItem.from_domain(s) for s in summary.by_sport],
            by_kind=[SegmentItem.from_domain(s) for s in summary.by_kind],
            by_odds=[SegmentItem.from_domain(s) for s in summary.by_odds],
            balance_history=[
                BalancePointItem(timestamp=p.timestamp.isoformat(), balance_cents=p.balance_cents)
                for p in summary.balance_history
            ],
        )


class AccountInfo(BaseModel):
    """Account projection without the credential hash."""

    account_id: str
    nickname: str
    registered_at: str
    referral_code: str
    reward_points: int
    status: str
    telegram_linked: bool
    telegram_handle: str | None
    origin_channel: str

    @classmethod
    def from_domain(cls, account: Account) -> "AccountInfo":
        return cls(
            account_id=account.id,
            nickname=account.display_name,
            registered_at=account.registered_at.isoformat(),
            referral_code=account.referral_code,
            reward_points=account.reward_points,
            status=account.status.value,
            telegram_linked=account.telegram_chat_id is not None,
            telegram_handle=account.telegram_handle,
            origin_channel=account.origin_channel.value,
        )


class AccountSnapshot(BaseModel):
    account: AccountInfo
    balance: BalanceResponse
    wagers: list[WagerItem]
    goals: list[GoalItem]
    ledger_size: int
    analytics: AnalyticsResponse


class InvariantReport(BaseModel):
    ok: bool
    violations: list[str]
