"""Unit tests for the Telegram update schema, Telegram client and Gemini assistant.

HTTP is faked with httpx.MockTransport; nothing leaves the process.
"""

import json

import httpx
import pytest

from src.bj_account.domain.models import ChatTurn
from src.bj_bot.application.schemas import TelegramUpdate
from src.bj_bot.domain.messages import Button, Reply
from src.bj_bot.infrastructure.assistant import GeminiAssistant
from src.bj_bot.infrastructure.telegram_api import TelegramClient, keyboard_markup
from src.bj_common.errors import AssistantUnavailableError, MessengerUnavailableError


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def body(self, i: int = 0) -> dict:
        return json.loads(self.requests[i].content)


def _telegram(recorder: Recorder) -> TelegramClient:
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(recorder), base_url="https://tg.test/botTOKEN"
    )
    return TelegramClient(token="TOKEN", http=http)


def _ok(result: object = True) -> httpx.Response:
    return httpx.Response(200, json={"ok": True, "result": result})


class TestTelegramUpdate:
    def test_text_message(self) -> None:
        update = TelegramUpdate.model_validate(
            {
                "update_id": 1,
                "message": {
                    "message_id": 10,
                    "chat": {"id": 555, "type": "private"},
                    "from": {"id": 9, "username": "alice_tg"},
                    "text": "/start",
                },
            }
        )
        event = update.to_event()
        assert event is not None
        assert event.chat_id == 555
        assert event.text == "/start"
        assert event.token is None
        assert event.handle == "alice_tg"

    def test_callback_query(self) -> None:
        update = TelegramUpdate.model_validate(
            {
                "update_id": 2,
                "callback_query": {
                    "id": "cbq",
                    "from": {"id": 9},
                    "data": "menu:stats",
                    "message": {"message_id": 33, "chat": {"id": 555}},
                },
            }
        )
        event = update.to_event()
        assert event is not None
        assert event.token == "menu:stats"
        assert event.message_id == 33
        assert event.callback_id == "cbq"
        assert event.handle is None

    def test_ignored_kinds(self) -> None:
        sticker = TelegramUpdate.model_validate(
            {"update_id": 3, "message": {"message_id": 1, "chat": {"id": 1}}}
        )
        assert sticker.to_event() is None
        assert TelegramUpdate.model_validate({"update_id": 4}).to_event() is None


class TestTelegramClient:
    def test_keyboard_markup(self) -> None:
        assert keyboard_markup([]) is None
        markup = keyboard_markup([[Button("A", "a"), Button("B", "b")]])
        assert markup == {
            "inline_keyboard": [
                [{"text": "A", "callback_data": "a"}, {"text": "B", "callback_data": "b"}]
            ]
        }

    async def test_send_message(self) -> None:
        recorder = Recorder(_ok({"message_id": 1}))
        client = _telegram(recorder)
        await client.send_message(555, "hi", [[Button("Go", "go")]])
        assert recorder.requests[0].url.path == "/botTOKEN/sendMessage"
        body = recorder.body()
        assert body["chat_id"] == 555
        assert body["reply_markup"]["inline_keyboard"][0][0]["callback_data"] == "go"

    async def test_api_error_is_messenger_unavailable(self) -> None:
        recorder = Recorder(
            httpx.Response(403, json={"ok": False, "description": "Forbidden: bot was blocked"})
        )
        with pytest.raises(MessengerUnavailableError, match="bot was blocked"):
            await _telegram(recorder).send_message(555, "hi")

    async def test_transport_error_is_messenger_unavailable(self) -> None:
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(boom), base_url="https://tg.test")
        with pytest.raises(MessengerUnavailableError):
            await TelegramClient(token="TOKEN", http=http).answer_callback_query("cbq")

    async def test_deliver_edits_in_place(self) -> None:
        recorder = Recorder(_ok())
        await _telegram(recorder).deliver(Reply(chat_id=555, text="x", edit_message_id=8))
        assert recorder.requests[0].url.path.endswith("/editMessageText")
        assert recorder.body()["message_id"] == 8

    async def test_deliver_falls_back_to_new_message(self) -> None:
        recorder = Recorder(
            httpx.Response(400, json={"ok": False, "description": "message can't be edited"}),
            _ok(),
        )
        await _telegram(recorder).deliver(Reply(chat_id=555, text="x", edit_message_id=8))
        assert [r.url.path.rsplit("/", 1)[-1] for r in recorder.requests] == [
            "editMessageText",
            "sendMessage",
        ]

    def test_enabled(self) -> None:
        assert not TelegramClient(token="", http=httpx.AsyncClient()).enabled


class TestGeminiAssistant:
    def _assistant(self, recorder: Recorder, api_key: str = "KEY") -> GeminiAssistant:
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(recorder), base_url="https://gemini.test/v1beta"
        )
        return GeminiAssistant(api_key=api_key, model="test-model", http=http)

    async def test_reply(self) -> None:
        recorder = Recorder(
            httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "Your ROI is 12%."}]}}]},
            )
        )
        transcript = [ChatTurn(role="user", text="ROI?")]
        answer = await self._assistant(recorder).reply(transcript, "Bank: $10.00")

        assert answer == "Your ROI is 12%."
        request = recorder.requests[0]
        assert request.url.path == "/v1beta/models/test-model:generateContent"
        assert request.url.params["key"] == "KEY"
        body = recorder.body()
        assert body["contents"] == [{"role": "user", "parts": [{"text": "ROI?"}]}]
        assert "Bank: $10.00" in body["systemInstruction"]["parts"][0]["text"]

    async def test_not_configured(self) -> None:
        with pytest.raises(AssistantUnavailableError, match="not configured"):
            await self._assistant(Recorder(), api_key="").reply([], "")

    async def test_http_error(self) -> None:
        recorder = Recorder(httpx.Response(429, json={"error": {"message": "quota"}}))
        with pytest.raises(AssistantUnavailableError, match="HTTP 429"):
            await self._assistant(recorder).reply([ChatTurn(role="user", text="hi")], "")

    async def test_empty_candidates(self) -> None:
        recorder = Recorder(httpx.Response(200, json={"candidates": []}))
        with pytest.raises(AssistantUnavailableError, match="empty response"):
            await self._assistant(recorder).reply([ChatTurn(role="user", text="hi")], "")
