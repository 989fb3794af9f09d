"""Pydantic models for the subset of Telegram Update the bot consumes."""

from pydantic import BaseModel, ConfigDict, Field

from src.bj_bot.domain.messages import InboundEvent


class TelegramUser(BaseModel):
    id: int
    username: str | None = None
    first_name: str | None = None


class TelegramChat(BaseModel):
    id: int
    type: str = "private"


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    chat: TelegramChat
    from_user: TelegramUser | None = Field(None, alias="from")
    text: str | None = None


class TelegramCallbackQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    from_user: TelegramUser = Field(..., alias="from")
    message: TelegramMessage | None = None
    data: str | None = None


class TelegramUpdate(BaseModel):
    update_id: int
    message: TelegramMessage | None = None
    callback_query: TelegramCallbackQuery | None = None

    def to_event(self) -> InboundEvent | None:
        """Normalize to an InboundEvent; None for update kinds the bot ignores."""
        if self.callback_query is not None:
            query = self.callback_query
            if query.message is None or not query.data:
                return None
            return InboundEvent(
                chat_id=query.message.chat.id,
                token=query.data,
                message_id=query.message.message_id,
                callback_id=query.id,
                handle=query.from_user.username,
            )
        if self.message is not None and self.message.text is not None:
            sender = self.message.from_user
            return InboundEvent(
                chat_id=self.message.chat.id,
                text=self.message.text,
                handle=sender.username if sender else None,
            )
        return None
