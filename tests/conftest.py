"""Shared test fixtures.

Tests run against the in-memory key/value store; no Redis is needed.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ["KV_BACKEND"] = "memory"
os.environ["TELEGRAM_WEBHOOK_SECRET"] = ""
os.environ["GEMINI_API_KEY"] = ""

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.bj_account.infrastructure.kv_factory import reset_memory_store  # noqa: E402
from src.bj_account.infrastructure.kv_memory import MemoryKeyValueStore  # noqa: E402
from src.main import app  # noqa: E402


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    """Fresh, empty in-memory store."""
    return MemoryKeyValueStore()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints on an empty store."""
    reset_memory_store()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    reset_memory_store()
