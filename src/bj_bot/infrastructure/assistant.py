"""AI analyst backed by the Gemini generateContent REST endpoint.

The transcript is sent as alternating user/model turns; the account's
statistics go in as the system instruction so answers stay grounded in the
user's own journal.
"""

import logging
from typing import Any

import httpx

from config.settings import settings
from src.bj_account.domain.models import ChatTurn
from src.bj_common.errors import AssistantUnavailableError

logger = logging.getLogger(__name__)

_SYSTEM_PREAMBLE = (
    "You are a concise sports-betting analyst inside a personal betting journal. "
    "Answer in the user's language. Base your answers on the statistics below; "
    "never promise winnings.\n\n"
)


class GeminiAssistant:
    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        api_base: str | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self._model = model or settings.GEMINI_MODEL
        self._http = http or httpx.AsyncClient(
            base_url=(api_base or settings.GEMINI_API_BASE).rstrip("/"),
            timeout=httpx.Timeout(timeout=settings.HTTP_TIMEOUT_SECONDS, connect=5.0),
        )

    async def reply(self, transcript: list[ChatTurn], context: str) -> str:
        if not self._api_key:
            raise AssistantUnavailableError("assistant is not configured")

        payload: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": _SYSTEM_PREAMBLE + context}]},
            "contents": [
                {"role": turn.role, "parts": [{"text": turn.text}]} for turn in transcript
            ],
        }
        try:
            response = await self._http.post(
                f"/models/{self._model}:generateContent",
                params={"key": self._api_key},
                json=payload,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Gemini returned HTTP %s", e.response.status_code)
            raise AssistantUnavailableError(f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Gemini call failed: %s", e)
            raise AssistantUnavailableError(str(e)) from e

        return _extract_text(data)

    async def aclose(self) -> None:
        await self._http.aclose()


def _extract_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        raise AssistantUnavailableError("empty response")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts).strip()
    if not text:
        raise AssistantUnavailableError("empty response")
    return text
