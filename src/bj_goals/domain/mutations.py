"""Goal create/delete on the aggregate. Progress is filled in by the evaluator."""

from dataclasses import dataclass, replace
from datetime import datetime

from src.bj_account.domain.models import Aggregate, Goal, GoalScope
from src.bj_common.datetime_utils import utc_now
from src.bj_common.enums import GoalMetric
from src.bj_common.id_generator import generate_id
from src.bj_goals.domain.evaluator import refresh_goals


@dataclass
class GoalDraft:
    title: str
    metric: GoalMetric
    target_value: float
    deadline: datetime
    scope: GoalScope


def add_goal(
    aggregate: Aggregate,
    draft: GoalDraft,
    now: datetime | None = None,
) -> tuple[Aggregate, Goal]:
    now = now or utc_now()
    goal = Goal(
        id=generate_id(),
        title=draft.title.strip(),
        metric=draft.metric,
        target_value=draft.target_value,
        created_at=now,
        deadline=draft.deadline,
        scope=draft.scope,
    )
    aggregate = refresh_goals(replace(aggregate, goals=[*aggregate.goals, goal]), now)
    created = aggregate.find_goal(goal.id)
    assert created is not None
    return aggregate, created


def delete_goal(aggregate: Aggregate, goal_id: str) -> Aggregate:
    return replace(aggregate, goals=[g for g in aggregate.goals if g.id != goal_id])
