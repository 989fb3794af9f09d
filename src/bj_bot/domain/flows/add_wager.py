"""Add a wager in chat.

SPORT -> LEGS (repeatable) -> STAKE -> ODDS -> BOOKMAKER -> STATUS -> commit.

Each valid "Home - Away, Market" line appends one leg and stays on LEGS; the
"legs done" button moves on. Two or more legs make a parlay. Cash-out is not
offered at creation time; it needs a settled amount and has its own flow.
"""

from dataclasses import replace
from datetime import datetime

from src.bj_account.domain.models import AddWagerDialog, AddWagerStep, Aggregate
from src.bj_bot.domain.flows.base import (
    DialogInput,
    FlowServices,
    StepResult,
    expect_text,
    token_value,
)
from src.bj_bot.domain.messages import CANCEL_ROW, LEGS_DONE, Button, Keyboard, Prompt, rows
from src.bj_clearing.domain.labels import display_label
from src.bj_clearing.domain.settlement import WagerDraft, add_wager
from src.bj_clearing.domain.validation import (
    parse_leg_line,
    resolve_kind,
    validate_legs,
    validate_odds,
    validate_stake,
)
from src.bj_common.cents import cents_to_display, parse_amount_to_cents, parse_odds
from src.bj_common.enums import WagerStatus
from src.bj_common.errors import DialogInputError
from src.bj_goals.domain.evaluator import refresh_goals

SPORTS = ["Football", "Basketball", "Hockey", "Tennis", "Volleyball", "MMA", "Esports"]
BOOKMAKERS = ["Bet365", "Pinnacle", "William Hill", "1xBet", "Betfair", "Unibet"]

_STATUS_LABELS = {
    WagerStatus.PENDING: "⏳ Pending",
    WagerStatus.WON: "✅ Won",
    WagerStatus.LOST: "❌ Lost",
    WagerStatus.VOID: "↩️ Void",
}


class AddWagerFlow:
    name = "add_wager"
    requires_auth = True

    def start(self, correlation_id: int | None) -> AddWagerDialog:
        return AddWagerDialog(correlation_id=correlation_id)

    def prompt(self, dialog: AddWagerDialog) -> Prompt:
        step = dialog.step
        if step == AddWagerStep.SPORT:
            return Prompt(
                "📝 New wager\n\nPick a sport (or type one):",
                [*rows([Button(s, f"sport:{s}") for s in SPORTS], 3), CANCEL_ROW],
            )
        if step == AddWagerStep.LEGS:
            lines = [
                f"  {i}. {leg.home} - {leg.away}, {leg.market}"
                for i, leg in enumerate(dialog.legs, 1)
            ]
            added = "\n".join(lines) if lines else "  (none yet)"
            keyboard: Keyboard = []
            if dialog.legs:
                keyboard.append([Button("✔️ Legs done", LEGS_DONE)])
            keyboard.append(CANCEL_ROW)
            return Prompt(
                f"Sport: {dialog.sport}\nEvents added:\n{added}\n\n"
                "Send an event as: Home - Away, Market\n"
                "Add several for a parlay, then press \"Legs done\".",
                keyboard,
            )
        if step == AddWagerStep.STAKE:
            return Prompt("Enter the stake amount (e.g. 100 or 25.50):", [CANCEL_ROW])
        if step == AddWagerStep.ODDS:
            return Prompt("Enter the decimal odds (e.g. 1.85):", [CANCEL_ROW])
        if step == AddWagerStep.BOOKMAKER:
            return Prompt(
                "Pick the bookmaker (or type one):",
                [*rows([Button(b, f"bookie:{b}") for b in BOOKMAKERS], 3), CANCEL_ROW],
            )
        assert dialog.stake_cents is not None
        summary = (
            f"{display_label(dialog.legs, resolve_kind(None, dialog.legs), dialog.sport or '')}\n"
            f"Stake {cents_to_display(dialog.stake_cents)} @ {dialog.odds} ({dialog.bookmaker})"
        )
        buttons = [Button(label, f"status:{status.value}") for status, label in _STATUS_LABELS.items()]
        return Prompt(
            f"{summary}\n\nWhat is the status of this wager?",
            [*rows(buttons, 2), CANCEL_ROW],
        )

    async def handle(
        self,
        dialog: AddWagerDialog,
        inp: DialogInput,
        aggregate: Aggregate,
        services: FlowServices,
        now: datetime,
    ) -> StepResult:
        step = dialog.step

        if step == AddWagerStep.SPORT:
            sport = token_value(inp, "sport:") or expect_text(inp, "Pick a sport.")
            return self._advance(aggregate, replace(dialog, sport=sport.strip(), step=AddWagerStep.LEGS))

        if step == AddWagerStep.LEGS:
            if inp.token == LEGS_DONE:
                if not dialog.legs:
                    raise DialogInputError("Add at least one event first.")
                return self._advance(aggregate, replace(dialog, step=AddWagerStep.STAKE))
            leg = parse_leg_line(expect_text(inp, "Send an event as: Home - Away, Market"))
            if leg is None:
                raise DialogInputError("Wrong format. Use: Home - Away, Market")
            validate_legs([leg])
            return self._advance(aggregate, replace(dialog, legs=[*dialog.legs, leg]))

        if step == AddWagerStep.STAKE:
            stake = parse_amount_to_cents(expect_text(inp))
            validate_stake(stake)
            return self._advance(aggregate, replace(dialog, stake_cents=stake, step=AddWagerStep.ODDS))

        if step == AddWagerStep.ODDS:
            odds = parse_odds(expect_text(inp))
            validate_odds(odds)
            return self._advance(aggregate, replace(dialog, odds=odds, step=AddWagerStep.BOOKMAKER))

        if step == AddWagerStep.BOOKMAKER:
            bookmaker = token_value(inp, "bookie:") or expect_text(inp, "Pick a bookmaker.")
            return self._advance(
                aggregate, replace(dialog, bookmaker=bookmaker.strip(), step=AddWagerStep.STATUS)
            )

        raw_status = token_value(inp, "status:")
        try:
            status = WagerStatus(raw_status)
        except ValueError:
            raise DialogInputError("Pick a status with the buttons below.") from None
        if status not in _STATUS_LABELS:
            raise DialogInputError("Pick a status with the buttons below.")
        return self._commit(dialog, status, aggregate, now)

    def _advance(self, aggregate: Aggregate, dialog: AddWagerDialog) -> StepResult:
        return StepResult(replace(aggregate, dialog=dialog), self.prompt(dialog))

    def _commit(
        self,
        dialog: AddWagerDialog,
        status: WagerStatus,
        aggregate: Aggregate,
        now: datetime,
    ) -> StepResult:
        assert dialog.stake_cents is not None and dialog.odds is not None
        draft = WagerDraft(
            sport=dialog.sport or "",
            bookmaker=dialog.bookmaker or "",
            kind=resolve_kind(None, dialog.legs),
            legs=list(dialog.legs),
            stake_cents=dialog.stake_cents,
            odds=dialog.odds,
            status=status,
        )
        aggregate, wager, entry = add_wager(replace(aggregate, dialog=None), draft, now)
        aggregate = refresh_goals(aggregate, now)
        text = f"✅ Wager saved: {wager.display_label}"
        if entry is not None:
            text += f"\nBalance: {cents_to_display(entry.balance_after_cents)}"
        return StepResult(aggregate, Prompt(text))
