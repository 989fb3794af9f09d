"""Integration-test fixtures.

Every test gets an empty in-memory store (see tests/conftest.py), so
accounts registered here never leak between tests.
"""

import pytest
from httpx import AsyncClient

AUTH_USER = {
    "email": "journal_test@example.com",
    "nickname": "journal_tester",
    "password": "TestPass1",
}


@pytest.fixture
async def auth_client(client: AsyncClient) -> AsyncClient:
    """Authenticated client: registers a user and injects the Bearer token."""
    await client.post("/api/v1/auth/register", json=AUTH_USER)
    login_resp = await client.post(
        "/api/v1/auth/login",
        json={"email": AUTH_USER["email"], "password": AUTH_USER["password"]},
    )
    token = login_resp.json()["data"]["access_token"]
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client
