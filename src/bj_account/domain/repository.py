"""Repository Protocols — dependency inversion for testability.

Unit tests inject a mock or the in-memory store that conforms to these
Protocols. Infrastructure layer provides the real implementations.
"""

from typing import Protocol

from src.bj_account.domain.models import Aggregate


class KeyValueStoreProtocol(Protocol):
    """The only storage primitive the system assumes: no transactions, no CAS."""

    async def get(self, key: str) -> bytes | None: ...

    async def put(self, key: str, value: bytes, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def list(self, prefix: str) -> list[str]: ...


class AggregateRepositoryProtocol(Protocol):
    async def load(self, kv: KeyValueStoreProtocol, key: str) -> Aggregate: ...

    async def save(self, kv: KeyValueStoreProtocol, key: str, aggregate: Aggregate) -> None: ...

    async def exists(self, kv: KeyValueStoreProtocol, key: str) -> bool: ...

    async def account_exists(self, kv: KeyValueStoreProtocol, account_id: str) -> bool: ...

    async def nickname_taken(self, kv: KeyValueStoreProtocol, nickname: str) -> bool: ...

    async def claim_nickname(
        self, kv: KeyValueStoreProtocol, nickname: str, account_id: str
    ) -> None: ...

    async def list_account_ids(self, kv: KeyValueStoreProtocol) -> list[str]: ...
