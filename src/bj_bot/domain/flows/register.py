"""Registration in chat: EMAIL -> NICKNAME -> PASSWORD.

Email and nickname are checked at their own steps and again when the account
is created; if one was taken meanwhile, the dialog goes back to that step.
"""

from dataclasses import replace
from datetime import datetime

from src.bj_account.domain.models import Aggregate, RegisterDialog, RegisterStep
from src.bj_bot.domain.flows.base import DialogInput, FlowServices, StepResult, expect_text
from src.bj_bot.domain.messages import CANCEL_ROW, Prompt
from src.bj_clearing.domain.validation import EMAIL_RE, MIN_NICKNAME_LENGTH, MIN_PASSWORD_LENGTH
from src.bj_common.errors import DialogInputError, EmailExistsError, NicknameExistsError

_PROMPTS = {
    RegisterStep.EMAIL: "📝 Registration\n\nEnter your email:",
    RegisterStep.NICKNAME: "Great! Now choose a nickname:",
    RegisterStep.PASSWORD: (
        "Now choose a password (at least 6 characters). "
        "You may delete the message after sending it."
    ),
}


class RegisterFlow:
    name = "register"
    requires_auth = False

    def start(self, correlation_id: int | None) -> RegisterDialog:
        return RegisterDialog(correlation_id=correlation_id)

    def prompt(self, dialog: RegisterDialog) -> Prompt:
        return Prompt(_PROMPTS[dialog.step], [CANCEL_ROW])

    def _back_to(
        self, aggregate: Aggregate, dialog: RegisterDialog, step: RegisterStep, reason: str
    ) -> StepResult:
        if step == RegisterStep.EMAIL:
            nxt = replace(dialog, step=step, email=None, nickname=None)
        else:
            nxt = replace(dialog, step=step, nickname=None)
        prompt = self.prompt(nxt)
        return StepResult(
            replace(aggregate, dialog=nxt),
            Prompt(f"⚠️ {reason}\n\n{prompt.text}", prompt.keyboard),
        )

    async def handle(
        self,
        dialog: RegisterDialog,
        inp: DialogInput,
        aggregate: Aggregate,
        services: FlowServices,
        now: datetime,
    ) -> StepResult:
        text = expect_text(inp)

        if dialog.step == RegisterStep.EMAIL:
            email = text.lower()
            if not EMAIL_RE.match(email):
                raise DialogInputError("That does not look like an email address.")
            await services.ensure_email_available(email)
            nxt = replace(dialog, email=email, step=RegisterStep.NICKNAME)
            return StepResult(replace(aggregate, dialog=nxt), self.prompt(nxt))

        if dialog.step == RegisterStep.NICKNAME:
            if len(text) < MIN_NICKNAME_LENGTH:
                raise DialogInputError(
                    f"Nickname must be at least {MIN_NICKNAME_LENGTH} characters."
                )
            await services.ensure_nickname_available(text)
            nxt = replace(dialog, nickname=text, step=RegisterStep.PASSWORD)
            return StepResult(replace(aggregate, dialog=nxt), self.prompt(nxt))

        if len(text) < MIN_PASSWORD_LENGTH:
            raise DialogInputError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            )
        assert dialog.email is not None and dialog.nickname is not None
        try:
            account = await services.create_account(dialog.email, dialog.nickname, text)
        except EmailExistsError as e:
            return self._back_to(aggregate, dialog, RegisterStep.EMAIL, e.message)
        except NicknameExistsError as e:
            return self._back_to(aggregate, dialog, RegisterStep.NICKNAME, e.message)
        return StepResult(
            replace(aggregate, account=account, dialog=None),
            Prompt(f"🎉 Registration complete! Welcome, {account.display_name}!"),
            authenticated=account,
        )
