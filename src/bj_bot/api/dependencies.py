"""Process-wide bot collaborators, created lazily and closed on shutdown."""

from src.bj_bot.application.engine import DialogEngine
from src.bj_bot.infrastructure.assistant import GeminiAssistant
from src.bj_bot.infrastructure.telegram_api import TelegramClient

_telegram: TelegramClient | None = None
_assistant: GeminiAssistant | None = None
_engine: DialogEngine | None = None


def get_telegram_client() -> TelegramClient:
    global _telegram  # noqa: PLW0603
    if _telegram is None:
        _telegram = TelegramClient()
    return _telegram


def get_dialog_engine() -> DialogEngine:
    global _assistant, _engine  # noqa: PLW0603
    if _engine is None:
        _assistant = GeminiAssistant()
        _engine = DialogEngine(_assistant)
    return _engine


async def close_bot_clients() -> None:
    global _telegram, _assistant, _engine  # noqa: PLW0603
    if _telegram is not None:
        await _telegram.aclose()
        _telegram = None
    if _assistant is not None:
        await _assistant.aclose()
        _assistant = None
    _engine = None
