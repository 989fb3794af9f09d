"""Domain models for the per-account aggregate — pure dataclasses.

The Aggregate is the unit of storage: one JSON value per key. Everything a
channel can mutate (wagers, balance, ledger, goals, open dialog) lives in it.

Dialog state is a tagged union on ``flow``; each variant carries its own step
enum and typed scratch fields, so a step from one flow can never be paired
with another flow.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Union

from src.bj_common.enums import (
    AccountStatus,
    Channel,
    GoalMetric,
    GoalScopeType,
    GoalStatus,
    LedgerEntryKind,
    WagerKind,
    WagerStatus,
)

# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@dataclass
class Account:
    id: str                              # lower-cased email
    display_name: str                    # nickname
    credential_hash: str                 # bcrypt
    registered_at: datetime
    referral_code: str
    reward_points: int = 0
    status: AccountStatus = AccountStatus.ACTIVE
    telegram_chat_id: int | None = None
    telegram_handle: str | None = None
    origin_channel: Channel = Channel.WEB

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


# ---------------------------------------------------------------------------
# Wagers and ledger
# ---------------------------------------------------------------------------


@dataclass
class Leg:
    home: str
    away: str
    market: str


@dataclass
class Wager:
    id: str
    created_at: datetime
    sport: str
    bookmaker: str
    kind: WagerKind
    legs: list[Leg]
    stake_cents: int
    odds: Decimal
    status: WagerStatus = WagerStatus.PENDING
    profit_cents: int | None = None      # None while pending
    tags: list[str] = field(default_factory=list)  # sorted, unique
    notes: str | None = None
    display_label: str = ""


@dataclass
class LedgerEntry:
    id: int                              # 1-based sequence within the aggregate
    timestamp: datetime
    kind: LedgerEntryKind
    delta_cents: int                     # signed
    balance_before_cents: int
    balance_after_cents: int
    description: str
    wager_id: str | None = None


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@dataclass
class GoalScope:
    type: GoalScopeType = GoalScopeType.ALL
    value: str | None = None


@dataclass
class Goal:
    id: str
    title: str
    metric: GoalMetric
    target_value: float                  # cents for PROFIT, percent for ROI/WIN_RATE
    created_at: datetime
    deadline: datetime
    scope: GoalScope = field(default_factory=GoalScope)
    current_value: float = 0.0           # derived
    status: GoalStatus = GoalStatus.IN_PROGRESS  # derived


# ---------------------------------------------------------------------------
# Dialog state (tagged union on `flow`)
# ---------------------------------------------------------------------------


class RegisterStep(str, Enum):
    EMAIL = "email"
    NICKNAME = "nickname"
    PASSWORD = "password"


class LoginStep(str, Enum):
    EMAIL = "email"
    PASSWORD = "password"


class AddWagerStep(str, Enum):
    SPORT = "sport"
    LEGS = "legs"
    STAKE = "stake"
    ODDS = "odds"
    BOOKMAKER = "bookmaker"
    STATUS = "status"


class AddGoalStep(str, Enum):
    TITLE = "title"
    METRIC = "metric"
    TARGET = "target"
    DEADLINE = "deadline"


class CashoutStep(str, Enum):
    AMOUNT = "amount"


class ChatStep(str, Enum):
    ACTIVE = "active"


@dataclass
class RegisterDialog:
    flow: Literal["register"] = "register"
    step: RegisterStep = RegisterStep.EMAIL
    correlation_id: int | None = None
    email: str | None = None
    nickname: str | None = None


@dataclass
class LoginDialog:
    flow: Literal["login"] = "login"
    step: LoginStep = LoginStep.EMAIL
    correlation_id: int | None = None
    email: str | None = None


@dataclass
class AddWagerDialog:
    flow: Literal["add_wager"] = "add_wager"
    step: AddWagerStep = AddWagerStep.SPORT
    correlation_id: int | None = None
    sport: str | None = None
    legs: list[Leg] = field(default_factory=list)
    stake_cents: int | None = None
    odds: Decimal | None = None
    bookmaker: str | None = None


@dataclass
class AddGoalDialog:
    flow: Literal["add_goal"] = "add_goal"
    step: AddGoalStep = AddGoalStep.TITLE
    correlation_id: int | None = None
    title: str | None = None
    metric: GoalMetric | None = None
    target_value: float | None = None


@dataclass
class CashoutDialog:
    flow: Literal["cashout"] = "cashout"
    step: CashoutStep = CashoutStep.AMOUNT
    correlation_id: int | None = None
    wager_id: str = ""


@dataclass
class ChatTurn:
    role: Literal["user", "model"]
    text: str


@dataclass
class ChatDialog:
    flow: Literal["chat"] = "chat"
    step: ChatStep = ChatStep.ACTIVE
    correlation_id: int | None = None
    transcript: list[ChatTurn] = field(default_factory=list)


DialogState = Union[
    RegisterDialog,
    LoginDialog,
    AddWagerDialog,
    AddGoalDialog,
    CashoutDialog,
    ChatDialog,
]


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


@dataclass
class Aggregate:
    """Invariants: balance == initial + Σ ledger deltas; ledger only grows."""

    account: Account | None = None
    wagers: list[Wager] = field(default_factory=list)
    balance_cents: int = 0
    initial_balance_cents: int = 0
    goals: list[Goal] = field(default_factory=list)
    ledger: list[LedgerEntry] = field(default_factory=list)
    dialog: DialogState | None = None

    @classmethod
    def fresh(cls, bankroll_cents: int) -> "Aggregate":
        return cls(balance_cents=bankroll_cents, initial_balance_cents=bankroll_cents)

    @property
    def is_authenticated(self) -> bool:
        return self.account is not None

    def find_wager(self, wager_id: str) -> Wager | None:
        return next((w for w in self.wagers if w.id == wager_id), None)

    def find_goal(self, goal_id: str) -> Goal | None:
        return next((g for g in self.goals if g.id == goal_id), None)

    def settled_wagers(self) -> list[Wager]:
        return [w for w in self.wagers if w.status != WagerStatus.PENDING]
