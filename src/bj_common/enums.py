"""Global enums — values are the persisted wire format of the aggregate JSON."""

from enum import Enum


class WagerStatus(str, Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"
    VOID = "void"
    CASHED_OUT = "cashed_out"


class WagerKind(str, Enum):
    SINGLE = "single"
    PARLAY = "parlay"
    SYSTEM = "system"


class LedgerEntryKind(str, Enum):
    # Manual bank moves
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    # Settlement (kind follows the wager's new status)
    SETTLE_WIN = "settle_win"
    SETTLE_LOSS = "settle_loss"
    SETTLE_VOID = "settle_void"
    SETTLE_CASHOUT = "settle_cashout"
    # Reversals back to pending, deletions, edits of pending-only fields
    CORRECTION = "correction"


class GoalMetric(str, Enum):
    PROFIT = "profit"
    ROI = "roi"
    WIN_RATE = "win_rate"
    BET_COUNT = "bet_count"


class GoalStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    ACHIEVED = "achieved"
    FAILED = "failed"


class GoalScopeType(str, Enum):
    ALL = "all"
    SPORT = "sport"
    KIND = "kind"
    TAG = "tag"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


class Channel(str, Enum):
    WEB = "web"
    TELEGRAM = "telegram"
