"""Login in chat: EMAIL -> PASSWORD, then the session is merged into the account."""

from dataclasses import replace
from datetime import datetime

from src.bj_account.domain.models import Aggregate, LoginDialog, LoginStep
from src.bj_bot.domain.flows.base import DialogInput, FlowServices, StepResult, expect_text
from src.bj_bot.domain.messages import CANCEL_ROW, Prompt
from src.bj_clearing.domain.validation import EMAIL_RE
from src.bj_common.errors import (
    AccountDisabledError,
    DialogInputError,
    InvalidCredentialsError,
)

_PROMPTS = {
    LoginStep.EMAIL: "🔑 Login\n\nEnter your email:",
    LoginStep.PASSWORD: "Enter your password:",
}


class LoginFlow:
    name = "login"
    requires_auth = False

    def start(self, correlation_id: int | None) -> LoginDialog:
        return LoginDialog(correlation_id=correlation_id)

    def prompt(self, dialog: LoginDialog) -> Prompt:
        return Prompt(_PROMPTS[dialog.step], [CANCEL_ROW])

    async def handle(
        self,
        dialog: LoginDialog,
        inp: DialogInput,
        aggregate: Aggregate,
        services: FlowServices,
        now: datetime,
    ) -> StepResult:
        text = expect_text(inp)

        if dialog.step == LoginStep.EMAIL:
            email = text.lower()
            if not EMAIL_RE.match(email):
                raise DialogInputError("That does not look like an email address.")
            if not await services.email_registered(email):
                raise DialogInputError(
                    "No account with this email. Try again or register instead."
                )
            nxt = replace(dialog, email=email, step=LoginStep.PASSWORD)
            return StepResult(replace(aggregate, dialog=nxt), self.prompt(nxt))

        assert dialog.email is not None
        try:
            account = await services.authenticate(dialog.email, text)
        except InvalidCredentialsError:
            raise DialogInputError("Wrong password, please try again.") from None
        except AccountDisabledError:
            return StepResult(
                replace(aggregate, dialog=None),
                Prompt("⛔ This account is blocked. Contact support."),
            )
        return StepResult(
            replace(aggregate, dialog=None),
            Prompt(f"✅ Welcome back, {account.display_name}!"),
            authenticated=account,
        )
