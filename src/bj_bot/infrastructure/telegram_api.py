"""Telegram Bot API client (sendMessage / editMessageText / answerCallbackQuery).

Every transport or API failure becomes MessengerUnavailableError.
"""

import logging
from typing import Any

import httpx

from config.settings import settings
from src.bj_bot.domain.messages import Keyboard, Reply
from src.bj_common.errors import MessengerUnavailableError

logger = logging.getLogger(__name__)


def keyboard_markup(keyboard: Keyboard) -> dict[str, Any] | None:
    if not keyboard:
        return None
    return {
        "inline_keyboard": [
            [{"text": b.text, "callback_data": b.token} for b in row] for row in keyboard
        ]
    }


class TelegramClient:
    def __init__(
        self,
        token: str | None = None,
        api_base: str | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = settings.TELEGRAM_BOT_TOKEN if token is None else token
        base = (settings.TELEGRAM_API_BASE if api_base is None else api_base).rstrip("/")
        self._http = http or httpx.AsyncClient(
            base_url=f"{base}/bot{self._token}",
            timeout=httpx.Timeout(timeout=settings.HTTP_TIMEOUT_SECONDS, connect=5.0),
        )

    @property
    def enabled(self) -> bool:
        return bool(self._token)

    async def _call(self, method: str, payload: dict[str, Any]) -> Any:
        try:
            response = await self._http.post(f"/{method}", json=payload)
        except httpx.HTTPError as e:
            logger.error("Telegram %s transport error: %s", method, e)
            raise MessengerUnavailableError(f"{method}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code != 200 or not body.get("ok"):
            description = body.get("description") or f"HTTP {response.status_code}"
            logger.error("Telegram %s failed: %s", method, description)
            raise MessengerUnavailableError(f"{method}: {description}")
        return body.get("result")

    async def send_message(self, chat_id: int, text: str, keyboard: Keyboard | None = None) -> Any:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        markup = keyboard_markup(keyboard or [])
        if markup:
            payload["reply_markup"] = markup
        return await self._call("sendMessage", payload)

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        keyboard: Keyboard | None = None,
    ) -> Any:
        payload: dict[str, Any] = {"chat_id": chat_id, "message_id": message_id, "text": text}
        markup = keyboard_markup(keyboard or [])
        if markup:
            payload["reply_markup"] = markup
        return await self._call("editMessageText", payload)

    async def answer_callback_query(self, callback_query_id: str, text: str | None = None) -> Any:
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)

    async def deliver(self, reply: Reply) -> None:
        """Edit in place when asked to; fall back to a new message if the edit is refused."""
        if reply.edit_message_id is not None:
            try:
                await self.edit_message_text(
                    reply.chat_id, reply.edit_message_id, reply.text, reply.keyboard
                )
                return
            except MessengerUnavailableError:
                logger.info("Edit of message %s refused, sending a new one", reply.edit_message_id)
        await self.send_message(reply.chat_id, reply.text, reply.keyboard)

    async def aclose(self) -> None:
        await self._http.aclose()
