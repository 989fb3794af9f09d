"""DialogEngine — one chat event in, a list of replies out.

Per event: checkout the working aggregate (SyncService), route, transform,
commit, render. Routing order:

  1. /start, /menu, /reset and the home button interrupt any open dialog.
  2. The cancel button closes any open dialog.
  3. With a dialog open, plain text, buttons and /stop go to the flow.
  4. Other commands, then buttons, then plain text (six digits = link code).

Flow failures:
  ValidationError / ConflictError  re-prompt, dialog untouched, nothing saved
  NotFoundError                    dialog cleared and saved, "not found" shown
  CollaboratorError                reported, nothing saved
"""

import logging
import re
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol

from src.bj_account.domain.models import Aggregate, ChatTurn
from src.bj_account.domain.repository import (
    AggregateRepositoryProtocol,
    KeyValueStoreProtocol,
)
from src.bj_account.infrastructure.persistence import AggregateRepository, session_key
from src.bj_bot.application import views
from src.bj_bot.domain.flows.add_goal import AddGoalFlow
from src.bj_bot.domain.flows.add_wager import AddWagerFlow
from src.bj_bot.domain.flows.base import DialogInput, Flow
from src.bj_bot.domain.flows.cashout import CashoutFlow
from src.bj_bot.domain.flows.chat import STOP_COMMAND, ChatFlow
from src.bj_bot.domain.flows.login import LoginFlow
from src.bj_bot.domain.flows.register import RegisterFlow
from src.bj_bot.domain.messages import CANCEL, HOME, LOGIN, REGISTER, InboundEvent, Prompt, Reply
from src.bj_clearing.domain.settlement import apply_status_change, delete_wager
from src.bj_common.cents import cents_to_display
from src.bj_common.datetime_utils import utc_now
from src.bj_common.enums import Channel, WagerStatus
from src.bj_common.errors import (
    AccountNotFoundError,
    CollaboratorError,
    ConflictError,
    LinkCodeNotFoundError,
    NotFoundError,
    ValidationError,
)
from src.bj_gateway.user.service import UserService, normalize_account_id
from src.bj_goals.domain.evaluator import refresh_goals
from src.bj_goals.domain.mutations import delete_goal
from src.bj_sync.application.service import SyncService, TelegramLink

logger = logging.getLogger(__name__)

_CASHOUT = CashoutFlow()

FLOWS: dict[str, Flow] = {
    flow.name: flow
    for flow in (RegisterFlow(), LoginFlow(), AddWagerFlow(), AddGoalFlow(), _CASHOUT, ChatFlow())
}

_INTERRUPTS = frozenset({"/start", "/menu", "/reset"})
_LINK_CODE_RE = re.compile(r"^\d{6}$")
_RECENT_WAGERS_FOR_ASSISTANT = 10


class AssistantProtocol(Protocol):
    async def reply(self, transcript: list[ChatTurn], context: str) -> str: ...


def parse_command(text: str | None) -> str | None:
    """'/start@MyBot payload' -> '/start'; None for non-commands."""
    if not text or not text.strip().startswith("/"):
        return None
    return text.strip().split()[0].split("@")[0].lower()


def assistant_context(aggregate: Aggregate) -> str:
    lines = [views.stats(aggregate).text, "", "Recent wagers:"]
    for w in aggregate.wagers[:_RECENT_WAGERS_FOR_ASSISTANT]:
        profit = cents_to_display(w.profit_cents) if w.profit_cents is not None else "-"
        lines.append(
            f"- {w.created_at:%Y-%m-%d} {w.sport}: {w.display_label}, "
            f"stake {cents_to_display(w.stake_cents)} @ {w.odds}, {w.status.value}, profit {profit}"
        )
    return "\n".join(lines)


class _BoundServices:
    """FlowServices bound to one KV store for the duration of one event."""

    def __init__(
        self,
        kv: KeyValueStoreProtocol,
        repo: AggregateRepositoryProtocol,
        users: UserService,
        assistant: AssistantProtocol,
    ) -> None:
        self._kv = kv
        self._repo = repo
        self._users = users
        self._assistant = assistant

    async def ensure_email_available(self, email: str) -> None:
        await self._users.ensure_email_available(self._kv, email)

    async def ensure_nickname_available(self, nickname: str) -> None:
        await self._users.ensure_nickname_available(self._kv, nickname)

    async def email_registered(self, email: str) -> bool:
        return await self._repo.account_exists(self._kv, normalize_account_id(email))

    async def create_account(self, email: str, nickname: str, password: str):
        return await self._users.create_account(
            self._kv, email, nickname, password, Channel.TELEGRAM
        )

    async def authenticate(self, email: str, password: str):
        return await self._users.authenticate(self._kv, email, password)

    async def ask_assistant(self, transcript: list[ChatTurn], aggregate: Aggregate) -> str:
        return await self._assistant.reply(transcript, assistant_context(aggregate))


@dataclass
class _Turn:
    kv: KeyValueStoreProtocol
    key: str
    event: InboundEvent
    now: datetime

    @property
    def link(self) -> TelegramLink:
        return TelegramLink(chat_id=self.event.chat_id, handle=self.event.handle)

    def reply(self, prompt: Prompt, edit: bool = False) -> Reply:
        """edit=True rewrites the message whose button was pressed, if there is one."""
        return Reply(
            chat_id=self.event.chat_id,
            text=prompt.text,
            keyboard=prompt.keyboard,
            edit_message_id=self.event.message_id if edit else None,
        )


class DialogEngine:
    def __init__(
        self,
        assistant: AssistantProtocol,
        repo: AggregateRepositoryProtocol | None = None,
        sync: SyncService | None = None,
        users: UserService | None = None,
    ) -> None:
        self._assistant = assistant
        self._repo: AggregateRepositoryProtocol = repo or AggregateRepository()
        self._sync = sync or SyncService(self._repo)
        self._users = users or UserService(self._repo, self._sync)

    async def handle(
        self,
        kv: KeyValueStoreProtocol,
        event: InboundEvent,
        now: datetime | None = None,
    ) -> list[Reply]:
        turn = _Turn(kv=kv, key=session_key(event.chat_id), event=event, now=now or utc_now())
        try:
            return await self._dispatch(turn)
        except CollaboratorError as e:
            logger.warning("Chat %s: %s", event.chat_id, e.message)
            return [turn.reply(Prompt(f"⚠️ {e.message}. Please try again later."))]

    async def _dispatch(self, turn: _Turn) -> list[Reply]:
        aggregate = await self._sync.checkout(turn.kv, turn.key)
        event = turn.event
        command = parse_command(event.text)

        if command in _INTERRUPTS or event.token == HOME:
            return await self._interrupt(turn, aggregate, command)
        if event.token == CANCEL:
            return await self._cancel(turn, aggregate)
        if aggregate.dialog is not None and command in (None, STOP_COMMAND):
            return await self._continue(turn, aggregate)
        if command is not None:
            return self._command(turn, aggregate, command)
        if event.token is not None:
            return await self._button(turn, aggregate, event.token)
        return await self._text(turn, aggregate, (event.text or "").strip())

    # -- interrupts ----------------------------------------------------------

    async def _interrupt(
        self, turn: _Turn, aggregate: Aggregate, command: str | None
    ) -> list[Reply]:
        if command == "/reset":
            await turn.kv.delete(turn.key)
            logger.info("Chat %s reset", turn.event.chat_id)
            return [
                turn.reply(
                    views.login_options("Your chat state was reset. Log in again to continue.")
                )
            ]

        cleared = replace(aggregate, dialog=None)
        if aggregate.dialog is not None:
            await self._sync.commit(turn.kv, turn.key, cleared)
        greeting = "👋 Welcome to Bet Journal!" if command == "/start" else None
        return [turn.reply(views.home(cleared, greeting), edit=turn.event.token == HOME)]

    async def _cancel(self, turn: _Turn, aggregate: Aggregate) -> list[Reply]:
        if aggregate.dialog is None:
            return [turn.reply(views.home(aggregate), edit=True)]
        cleared = replace(aggregate, dialog=None)
        await self._sync.commit(turn.kv, turn.key, cleared)
        return [turn.reply(Prompt("❌ Cancelled."), edit=True), turn.reply(views.home(cleared))]

    # -- dialogs -------------------------------------------------------------

    async def _start_flow(
        self, turn: _Turn, aggregate: Aggregate, flow_name: str, wager_id: str | None = None
    ) -> list[Reply]:
        flow = FLOWS[flow_name]
        if flow.requires_auth and not aggregate.is_authenticated:
            return [turn.reply(views.login_options("Please log in first."), edit=True)]

        if wager_id is not None:
            dialog = _CASHOUT.start(turn.event.message_id, wager_id)
        else:
            dialog = flow.start(turn.event.message_id)
        aggregate = replace(aggregate, dialog=dialog)
        await self._sync.commit(turn.kv, turn.key, aggregate)
        return [turn.reply(flow.prompt(dialog), edit=True)]

    async def _continue(self, turn: _Turn, aggregate: Aggregate) -> list[Reply]:
        dialog = aggregate.dialog
        assert dialog is not None
        flow = FLOWS[dialog.flow]
        services = _BoundServices(turn.kv, self._repo, self._users, self._assistant)
        inp = DialogInput(text=turn.event.text, token=turn.event.token)

        try:
            result = await flow.handle(dialog, inp, aggregate, services, turn.now)
        except (ValidationError, ConflictError) as e:
            prompt = flow.prompt(dialog)
            return [turn.reply(Prompt(f"⚠️ {e.message}\n\n{prompt.text}", prompt.keyboard))]
        except NotFoundError as e:
            cleared = replace(aggregate, dialog=None)
            await self._sync.commit(turn.kv, turn.key, cleared)
            logger.warning(
                "Chat %s: %s flow aborted: %s", turn.event.chat_id, dialog.flow, e.message
            )
            return [turn.reply(Prompt(f"❌ {e.message}")), turn.reply(views.home(cleared))]

        if result.authenticated is not None:
            aggregate = await self._sync.on_authenticated(
                turn.kv, turn.key, result.aggregate, result.authenticated, turn.link
            )
        else:
            aggregate = result.aggregate
            await self._sync.commit(turn.kv, turn.key, aggregate)

        replies = [turn.reply(result.prompt, edit=True)]
        if result.finished:
            replies.append(turn.reply(views.home(aggregate)))
        return replies

    # -- commands, buttons, text ---------------------------------------------

    def _command(self, turn: _Turn, aggregate: Aggregate, command: str) -> list[Reply]:
        if command == "/help":
            return [turn.reply(Prompt(views.HELP_TEXT))]
        if command == "/stats":
            if not aggregate.is_authenticated:
                return [turn.reply(views.login_options("Please log in first."))]
            return [turn.reply(views.stats(aggregate))]
        return [turn.reply(views.home(aggregate, "Unknown command."))]

    async def _text(self, turn: _Turn, aggregate: Aggregate, text: str) -> list[Reply]:
        if not _LINK_CODE_RE.match(text):
            greeting = None if aggregate.is_authenticated else "Unknown command."
            return [turn.reply(views.home(aggregate, greeting))]

        try:
            merged = await self._sync.redeem_link_code(
                turn.kv, text, turn.key, aggregate, turn.link
            )
        except (LinkCodeNotFoundError, AccountNotFoundError):
            return [
                turn.reply(
                    Prompt("❌ Invalid or expired code. Generate a new one in the web app.")
                )
            ]
        assert merged.account is not None
        return [
            turn.reply(Prompt(f"✅ Account \"{merged.account.display_name}\" linked.")),
            turn.reply(views.home(merged)),
        ]

    async def _button(self, turn: _Turn, aggregate: Aggregate, token: str) -> list[Reply]:
        if token in (LOGIN, REGISTER):
            if aggregate.account is not None:
                greeting = f"You are already logged in as {aggregate.account.display_name}."
                return [turn.reply(views.home(aggregate, greeting), edit=True)]
            return await self._start_flow(turn, aggregate, "login" if token == LOGIN else "register")

        if not aggregate.is_authenticated:
            return [turn.reply(views.login_options("Please log in to do that."), edit=True)]

        parts = token.split(":")
        match parts:
            case ["menu", "add_wager"]:
                return await self._start_flow(turn, aggregate, "add_wager")
            case ["menu", "add_goal"]:
                return await self._start_flow(turn, aggregate, "add_goal")
            case ["menu", "chat"]:
                return await self._start_flow(turn, aggregate, "chat")
            case ["menu", "stats"]:
                return [turn.reply(views.stats(aggregate), edit=True)]
            case ["menu", "wagers"]:
                return [turn.reply(views.wager_list(aggregate, 0), edit=True)]
            case ["menu", "goals"]:
                return [turn.reply(views.goals(refresh_goals(aggregate, turn.now)), edit=True)]
            case ["wagers", "page", page] if page.isdigit():
                return [turn.reply(views.wager_list(aggregate, int(page)), edit=True)]
            case ["wager", action, wager_id, *rest]:
                return await self._wager_action(turn, aggregate, action, wager_id, rest)
            case ["goal", "delete", goal_id]:
                return await self._delete_goal(turn, aggregate, goal_id)
        logger.info("Chat %s: unhandled button %r", turn.event.chat_id, token)
        return [turn.reply(Prompt("This action is not supported."))]

    async def _wager_action(
        self,
        turn: _Turn,
        aggregate: Aggregate,
        action: str,
        wager_id: str,
        rest: list[str],
    ) -> list[Reply]:
        wager = aggregate.find_wager(wager_id)
        if wager is None:
            return [
                turn.reply(Prompt("Wager not found.")),
                turn.reply(views.wager_list(aggregate, 0)),
            ]

        if action == "view":
            return [turn.reply(views.wager_detail(wager), edit=True)]
        if action == "status":
            return [turn.reply(views.status_selector(wager), edit=True)]
        if action == "cashout":
            return await self._start_flow(turn, aggregate, "cashout", wager_id=wager_id)
        if action == "delete":
            return [turn.reply(views.delete_confirmation(wager), edit=True)]
        if action == "delete_yes":
            aggregate, entry = delete_wager(aggregate, wager_id, turn.now)
            aggregate = await self._commit_journal(turn, aggregate)
            note = "🗑 Wager deleted."
            if entry is not None:
                note += f" Balance: {cents_to_display(entry.balance_after_cents)}"
            return [turn.reply(Prompt(note), edit=True), turn.reply(views.wager_list(aggregate, 0))]
        if action == "set" and rest:
            try:
                status = WagerStatus(rest[0])
            except ValueError:
                return [turn.reply(Prompt("This action is not supported."))]
            if status == WagerStatus.CASHED_OUT:
                return await self._start_flow(turn, aggregate, "cashout", wager_id=wager_id)
            aggregate, _ = apply_status_change(aggregate, wager_id, status, None, turn.now)
            aggregate = await self._commit_journal(turn, aggregate)
            updated = aggregate.find_wager(wager_id)
            assert updated is not None
            return [turn.reply(views.wager_detail(updated), edit=True)]
        return [turn.reply(Prompt("This action is not supported."))]

    async def _delete_goal(self, turn: _Turn, aggregate: Aggregate, goal_id: str) -> list[Reply]:
        if aggregate.find_goal(goal_id) is None:
            return [turn.reply(Prompt("Goal not found.")), turn.reply(views.goals(aggregate))]
        aggregate = await self._commit_journal(turn, delete_goal(aggregate, goal_id))
        return [turn.reply(views.goals(aggregate), edit=True)]

    async def _commit_journal(self, turn: _Turn, aggregate: Aggregate) -> Aggregate:
        aggregate = refresh_goals(aggregate, turn.now)
        await self._sync.commit(turn.kv, turn.key, aggregate)
        return aggregate
