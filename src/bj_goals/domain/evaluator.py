"""Goal progress recomputation — pure, derived from the settled-wager set.

``current_value`` is never written independently: every wager mutation and
every snapshot read re-derives it here.

Relevant wagers: settled, created inside [goal.created_at, goal.deadline],
matching the goal's scope. Status moves only while the goal is in progress:
  - achieved     current >= target (or current <= target for negative,
                 loss-limit targets)
  - failed       not achieved and the deadline has passed
Achieved and failed are final; later wager changes only move current_value.
"""

from dataclasses import replace
from datetime import datetime

from src.bj_account.domain.models import Aggregate, Goal, Wager
from src.bj_clearing.domain.analytics import roi_percent, win_rate_percent
from src.bj_common.cents import cents_to_display
from src.bj_common.datetime_utils import ensure_utc, utc_now
from src.bj_common.enums import GoalMetric, GoalScopeType, GoalStatus, WagerStatus


def compute_metric(metric: GoalMetric, wagers: list[Wager]) -> float:
    if not wagers:
        return 0.0
    if metric == GoalMetric.PROFIT:
        return float(sum(w.profit_cents or 0 for w in wagers))
    if metric == GoalMetric.ROI:
        staked = sum(w.stake_cents for w in wagers)
        return roi_percent(sum(w.profit_cents or 0 for w in wagers), staked)
    if metric == GoalMetric.WIN_RATE:
        return win_rate_percent(wagers)
    if metric == GoalMetric.BET_COUNT:
        return float(len(wagers))
    return 0.0


def _in_scope(goal: Goal, wager: Wager) -> bool:
    scope = goal.scope
    if scope.type == GoalScopeType.ALL:
        return True
    if scope.type == GoalScopeType.SPORT:
        return wager.sport == scope.value
    if scope.type == GoalScopeType.KIND:
        return wager.kind.value == scope.value
    if scope.type == GoalScopeType.TAG:
        return scope.value in wager.tags
    return False


def relevant_wagers(goal: Goal, settled_wagers: list[Wager]) -> list[Wager]:
    start = ensure_utc(goal.created_at)
    end = ensure_utc(goal.deadline)
    return [
        w for w in settled_wagers
        if start <= ensure_utc(w.created_at) <= end and _in_scope(goal, w)
    ]


def _target_reached(current: float, target: float) -> bool:
    if target >= 0:
        return current >= target
    return current <= target


def recompute_goal(goal: Goal, settled_wagers: list[Wager], now: datetime) -> Goal:
    current = compute_metric(goal.metric, relevant_wagers(goal, settled_wagers))
    status = goal.status
    if status == GoalStatus.IN_PROGRESS:
        if _target_reached(current, goal.target_value):
            status = GoalStatus.ACHIEVED
        elif ensure_utc(now) > ensure_utc(goal.deadline):
            status = GoalStatus.FAILED
    return replace(goal, current_value=current, status=status)


def refresh_goals(aggregate: Aggregate, now: datetime | None = None) -> Aggregate:
    """Recompute every goal of the aggregate."""
    if not aggregate.goals:
        return aggregate
    now = now or utc_now()
    settled = [w for w in aggregate.wagers if w.status != WagerStatus.PENDING]
    return replace(aggregate, goals=[recompute_goal(g, settled, now) for g in aggregate.goals])


def goal_progress(goal: Goal) -> tuple[float, str]:
    """(percentage clamped to 0..100, 'current / target' label)."""
    if goal.target_value > 0:
        percentage = (goal.current_value / goal.target_value) * 100
    elif goal.target_value == 0:
        percentage = 100.0 if goal.current_value >= 0 else 0.0
    elif goal.current_value >= 0:
        percentage = 0.0
    else:
        percentage = (goal.current_value / goal.target_value) * 100

    if goal.metric == GoalMetric.PROFIT:
        label = (
            f"{cents_to_display(int(goal.current_value))} / "
            f"{cents_to_display(int(goal.target_value))}"
        )
    elif goal.metric == GoalMetric.BET_COUNT:
        label = f"{int(goal.current_value)} / {int(goal.target_value)}"
    else:
        label = f"{goal.current_value:.2f}% / {goal.target_value:.2f}%"
    return max(0.0, min(100.0, percentage)), label
