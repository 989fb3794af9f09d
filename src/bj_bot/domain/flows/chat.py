"""Free-form chat with the AI analyst. ACTIVE loops until /stop or Cancel."""

from dataclasses import replace
from datetime import datetime

from src.bj_account.domain.models import Aggregate, ChatDialog, ChatTurn
from src.bj_bot.domain.flows.base import DialogInput, FlowServices, StepResult, expect_text
from src.bj_bot.domain.messages import CANCEL, Button, Prompt

MAX_TRANSCRIPT_TURNS = 20
STOP_COMMAND = "/stop"

_STOP_ROW = [Button("⏹ End chat", CANCEL)]


class ChatFlow:
    name = "chat"
    requires_auth = True

    def start(self, correlation_id: int | None) -> ChatDialog:
        return ChatDialog(correlation_id=correlation_id)

    def prompt(self, dialog: ChatDialog) -> Prompt:
        if dialog.transcript and dialog.transcript[-1].role == "model":
            return Prompt(dialog.transcript[-1].text, [_STOP_ROW])
        return Prompt(
            "🤖 AI analyst\n\nAsk anything about your betting history. Send /stop to finish.",
            [_STOP_ROW],
        )

    async def handle(
        self,
        dialog: ChatDialog,
        inp: DialogInput,
        aggregate: Aggregate,
        services: FlowServices,
        now: datetime,
    ) -> StepResult:
        text = expect_text(inp, "Type your question, or /stop to finish.")
        if text.split()[0].lower() == STOP_COMMAND:
            return StepResult(replace(aggregate, dialog=None), Prompt("Chat finished."))

        transcript = [*dialog.transcript, ChatTurn(role="user", text=text)]
        answer = await services.ask_assistant(transcript, aggregate)
        transcript = [*transcript, ChatTurn(role="model", text=answer)][-MAX_TRANSCRIPT_TURNS:]
        nxt = replace(dialog, transcript=transcript)
        return StepResult(replace(aggregate, dialog=nxt), self.prompt(nxt))
