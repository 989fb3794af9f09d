"""Add a goal in chat: TITLE -> METRIC -> TARGET -> DEADLINE -> commit.

Profit targets are typed as money and stored in cents; a negative profit
target is a loss limit. ROI and win rate are percents, bet count a whole
number. The deadline is a number of days from now or a YYYY-MM-DD date.
"""

import re
from dataclasses import replace
from datetime import datetime, time, timedelta, timezone

from src.bj_account.domain.models import AddGoalDialog, AddGoalStep, Aggregate, GoalScope
from src.bj_bot.domain.flows.base import (
    DialogInput,
    FlowServices,
    StepResult,
    expect_text,
    token_value,
)
from src.bj_bot.domain.messages import CANCEL_ROW, Button, Prompt, rows
from src.bj_clearing.domain.validation import validate_goal, validate_goal_target
from src.bj_common.cents import parse_amount_to_cents
from src.bj_common.enums import GoalMetric
from src.bj_common.errors import DialogInputError
from src.bj_goals.domain.evaluator import goal_progress
from src.bj_goals.domain.mutations import GoalDraft, add_goal

_METRIC_LABELS = {
    GoalMetric.PROFIT: "💰 Profit",
    GoalMetric.ROI: "📈 ROI %",
    GoalMetric.WIN_RATE: "🎯 Win rate %",
    GoalMetric.BET_COUNT: "🔢 Bet count",
}

_TARGET_HINTS = {
    GoalMetric.PROFIT: "Enter the profit target (e.g. 500, or -200 for a loss limit):",
    GoalMetric.ROI: "Enter the ROI target in percent (e.g. 10):",
    GoalMetric.WIN_RATE: "Enter the win-rate target in percent (e.g. 55):",
    GoalMetric.BET_COUNT: "Enter how many bets you plan to settle (e.g. 20):",
}

_DEADLINE_PRESETS = (7, 30, 90)
_MAX_DEADLINE_DAYS = 3650
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_target(metric: GoalMetric, raw: str) -> float:
    if metric == GoalMetric.PROFIT:
        cents = parse_amount_to_cents(raw)
        if cents is None:
            raise DialogInputError("Enter an amount like 500 or 250.50.")
        return float(cents)
    if metric == GoalMetric.BET_COUNT:
        if not raw.isdecimal():
            raise DialogInputError("Enter a whole number of bets.")
        return float(int(raw))
    try:
        return float(raw.replace(",", "."))
    except ValueError:
        raise DialogInputError("Enter a number, e.g. 12.5") from None


def _parse_deadline(raw: str, now: datetime) -> datetime:
    if raw.isdecimal():
        days = int(raw)
        if days > _MAX_DEADLINE_DAYS:
            raise DialogInputError(f"Pick a deadline within {_MAX_DEADLINE_DAYS} days.")
        return now + timedelta(days=days)
    if _DATE_RE.match(raw):
        try:
            day = datetime.strptime(raw, "%Y-%m-%d").date()
        except ValueError:
            raise DialogInputError("That date does not exist.") from None
        return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)
    raise DialogInputError("Send a number of days (e.g. 30) or a date as YYYY-MM-DD.")


class AddGoalFlow:
    name = "add_goal"
    requires_auth = True

    def start(self, correlation_id: int | None) -> AddGoalDialog:
        return AddGoalDialog(correlation_id=correlation_id)

    def prompt(self, dialog: AddGoalDialog) -> Prompt:
        if dialog.step == AddGoalStep.TITLE:
            return Prompt("🎯 New goal\n\nGive the goal a short title:", [CANCEL_ROW])
        if dialog.step == AddGoalStep.METRIC:
            return Prompt(
                "What should be measured?",
                [
                    *rows([Button(label, f"metric:{m.value}") for m, label in _METRIC_LABELS.items()], 2),
                    CANCEL_ROW,
                ],
            )
        if dialog.step == AddGoalStep.TARGET:
            assert dialog.metric is not None
            return Prompt(_TARGET_HINTS[dialog.metric], [CANCEL_ROW])
        return Prompt(
            "By when? Send a number of days or a date (YYYY-MM-DD):",
            [[Button(f"{d} days", f"deadline:{d}") for d in _DEADLINE_PRESETS], CANCEL_ROW],
        )

    async def handle(
        self,
        dialog: AddGoalDialog,
        inp: DialogInput,
        aggregate: Aggregate,
        services: FlowServices,
        now: datetime,
    ) -> StepResult:
        if dialog.step == AddGoalStep.TITLE:
            title = expect_text(inp)
            if len(title) > 120:
                raise DialogInputError("Keep the title under 120 characters.")
            nxt = replace(dialog, title=title, step=AddGoalStep.METRIC)
            return StepResult(replace(aggregate, dialog=nxt), self.prompt(nxt))

        if dialog.step == AddGoalStep.METRIC:
            try:
                metric = GoalMetric(token_value(inp, "metric:"))
            except ValueError:
                raise DialogInputError("Pick a metric with the buttons below.") from None
            nxt = replace(dialog, metric=metric, step=AddGoalStep.TARGET)
            return StepResult(replace(aggregate, dialog=nxt), self.prompt(nxt))

        assert dialog.metric is not None
        if dialog.step == AddGoalStep.TARGET:
            target = _parse_target(dialog.metric, expect_text(inp))
            validate_goal_target(dialog.metric, target)
            nxt = replace(dialog, target_value=target, step=AddGoalStep.DEADLINE)
            return StepResult(replace(aggregate, dialog=nxt), self.prompt(nxt))

        assert dialog.title is not None and dialog.target_value is not None
        raw = token_value(inp, "deadline:") or expect_text(inp)
        deadline = _parse_deadline(raw, now)
        validate_goal(dialog.title, dialog.metric, dialog.target_value, deadline, now)

        draft = GoalDraft(
            title=dialog.title,
            metric=dialog.metric,
            target_value=dialog.target_value,
            deadline=deadline,
            scope=GoalScope(),
        )
        aggregate, goal = add_goal(replace(aggregate, dialog=None), draft, now)
        _, label = goal_progress(goal)
        return StepResult(
            aggregate,
            Prompt(f"✅ Goal added: {goal.title}\nProgress: {label}\nDeadline: {deadline:%Y-%m-%d}"),
        )
