"""Cash out a wager in chat: AMOUNT -> cashed_out with a manual profit.

The wager is looked up again when the amount arrives; if it was deleted
meanwhile (e.g. from the web), WagerNotFoundError aborts the flow.
"""

from dataclasses import replace
from datetime import datetime

from src.bj_account.domain.models import Aggregate, CashoutDialog
from src.bj_bot.domain.flows.base import DialogInput, FlowServices, StepResult, expect_text
from src.bj_bot.domain.messages import CANCEL_ROW, Prompt
from src.bj_clearing.domain.settlement import apply_status_change
from src.bj_common.cents import cents_to_display, parse_amount_to_cents, signed_cents_to_display
from src.bj_common.enums import WagerStatus
from src.bj_common.errors import DialogInputError, WagerNotFoundError
from src.bj_goals.domain.evaluator import refresh_goals


class CashoutFlow:
    name = "cashout"
    requires_auth = True

    def start(self, correlation_id: int | None, wager_id: str = "") -> CashoutDialog:
        return CashoutDialog(correlation_id=correlation_id, wager_id=wager_id)

    def prompt(self, dialog: CashoutDialog) -> Prompt:
        return Prompt(
            "💰 Cash out\n\nEnter the profit you took (negative if you cashed out at a loss):",
            [CANCEL_ROW],
        )

    async def handle(
        self,
        dialog: CashoutDialog,
        inp: DialogInput,
        aggregate: Aggregate,
        services: FlowServices,
        now: datetime,
    ) -> StepResult:
        profit = parse_amount_to_cents(expect_text(inp))
        if profit is None:
            raise DialogInputError("Enter an amount like 45 or -20.50.")
        if aggregate.find_wager(dialog.wager_id) is None:
            raise WagerNotFoundError(dialog.wager_id)

        aggregate, entry = apply_status_change(
            replace(aggregate, dialog=None), dialog.wager_id, WagerStatus.CASHED_OUT, profit, now
        )
        aggregate = refresh_goals(aggregate, now)
        text = f"✅ Cashed out with {signed_cents_to_display(profit)}"
        if entry is not None:
            text += f"\nBalance: {cents_to_display(entry.balance_after_cents)}"
        return StepResult(aggregate, Prompt(text))
