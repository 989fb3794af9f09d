"""Telegram webhook.

Telegram retries any non-2xx response, so the endpoint always answers
{"ok": true} once the secret header checks out; failures are logged and,
where possible, reported to the chat.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from config.settings import settings
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.kv_factory import get_kv_store
from src.bj_bot.api.dependencies import get_dialog_engine, get_telegram_client
from src.bj_bot.application.engine import DialogEngine
from src.bj_bot.application.schemas import TelegramUpdate
from src.bj_bot.domain.messages import Reply
from src.bj_bot.infrastructure.telegram_api import TelegramClient
from src.bj_common.errors import AppError, MessengerUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.post("/webhook", status_code=status.HTTP_200_OK, summary="Telegram update webhook")
async def webhook(
    payload: dict[str, Any],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    engine: Annotated[DialogEngine, Depends(get_dialog_engine)],
    telegram: Annotated[TelegramClient, Depends(get_telegram_client)],
    secret: Annotated[str | None, Header(alias="X-Telegram-Bot-Api-Secret-Token")] = None,
) -> dict[str, bool]:
    if settings.TELEGRAM_WEBHOOK_SECRET and secret != settings.TELEGRAM_WEBHOOK_SECRET:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Bad secret token")

    try:
        update = TelegramUpdate.model_validate(payload)
    except PydanticValidationError:
        logger.warning("Ignoring malformed Telegram update")
        return {"ok": True}

    event = update.to_event()
    if event is None:
        return {"ok": True}

    if event.callback_id is not None:
        try:
            await telegram.answer_callback_query(event.callback_id)
        except MessengerUnavailableError as e:
            logger.warning("answerCallbackQuery failed: %s", e.message)

    try:
        replies = await engine.handle(kv, event)
    except AppError as e:
        logger.warning("Chat %s: %s", event.chat_id, e.message)
        replies = [Reply(chat_id=event.chat_id, text=f"⚠️ {e.message}")]
    except Exception:
        logger.exception("Chat %s: unhandled error for update %s", event.chat_id, update.update_id)
        replies = [Reply(chat_id=event.chat_id, text="⚠️ Something went wrong. Please try again.")]

    for reply in replies:
        try:
            await telegram.deliver(reply)
        except MessengerUnavailableError as e:
            logger.warning("Delivery to chat %s failed: %s", reply.chat_id, e.message)
    return {"ok": True}
