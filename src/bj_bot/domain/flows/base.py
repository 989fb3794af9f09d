"""Common shapes for dialog flows.

A flow is a small state machine over one DialogState variant:
  start()   -> initial dialog state
  prompt()  -> what to show for the current step
  handle()  -> advance on valid input, or raise

Step monotonicity: handle() returns a dialog at the same or a later step, or
finishes (dialog=None). Invalid input raises a ValidationError or
ConflictError and the engine re-prompts with the dialog untouched. The one
backward move is registration going back to a step whose value was taken by
another channel meanwhile.

Flows reach the outside world only through FlowServices, which the
application layer binds to a KV store and the collaborators.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from src.bj_account.domain.models import Account, Aggregate, ChatTurn, DialogState
from src.bj_bot.domain.messages import Prompt
from src.bj_common.errors import DialogInputError


class FlowServices(Protocol):
    async def ensure_email_available(self, email: str) -> None: ...

    async def ensure_nickname_available(self, nickname: str) -> None: ...

    async def email_registered(self, email: str) -> bool: ...

    async def create_account(self, email: str, nickname: str, password: str) -> Account: ...

    async def authenticate(self, email: str, password: str) -> Account: ...

    async def ask_assistant(self, transcript: list[ChatTurn], aggregate: Aggregate) -> str: ...


@dataclass
class DialogInput:
    text: str | None = None
    token: str | None = None


@dataclass
class StepResult:
    aggregate: Aggregate               # carries the next dialog, or dialog=None when finished
    prompt: Prompt
    authenticated: Account | None = None

    @property
    def finished(self) -> bool:
        return self.aggregate.dialog is None


class Flow(Protocol):
    name: str
    requires_auth: bool

    def start(self, correlation_id: int | None) -> DialogState: ...

    def prompt(self, dialog: DialogState) -> Prompt: ...

    async def handle(
        self,
        dialog: DialogState,
        inp: DialogInput,
        aggregate: Aggregate,
        services: FlowServices,
        now: datetime,
    ) -> StepResult: ...


def expect_text(inp: DialogInput, hint: str = "Please type your answer.") -> str:
    if inp.text is None or not inp.text.strip():
        raise DialogInputError(hint)
    return inp.text.strip()


def token_value(inp: DialogInput, prefix: str) -> str | None:
    """'sport:Football' with prefix 'sport:' -> 'Football'; None for other input."""
    if inp.token and inp.token.startswith(prefix):
        return inp.token[len(prefix):]
    return None
