"""Channel-neutral chat primitives: inbound event, buttons, prompts, replies.

Nothing here knows about the Telegram wire format; bj_bot.application.schemas
converts updates into InboundEvent and bj_bot.infrastructure.telegram_api
renders Reply objects.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Button:
    text: str
    token: str  # callback data, at most 64 bytes


Keyboard = list[list[Button]]


@dataclass
class Prompt:
    text: str
    keyboard: Keyboard = field(default_factory=list)


@dataclass
class InboundEvent:
    chat_id: int
    text: str | None = None
    token: str | None = None
    message_id: int | None = None      # message carrying the pressed button
    callback_id: str | None = None
    handle: str | None = None          # @username of the sender


@dataclass
class Reply:
    chat_id: int
    text: str
    keyboard: Keyboard = field(default_factory=list)
    edit_message_id: int | None = None  # edit this message instead of sending a new one


# Button tokens shared by the engine and the flows
CANCEL = "dialog:cancel"
LEGS_DONE = "dialog:legs_done"
HOME = "nav:home"
LOGIN = "nav:login"
REGISTER = "nav:register"

CANCEL_ROW = [Button("❌ Cancel", CANCEL)]


def rows(buttons: list[Button], width: int) -> Keyboard:
    """Lay buttons out left to right, `width` per row."""
    return [buttons[i:i + width] for i in range(0, len(buttons), width)]
