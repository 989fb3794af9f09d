"""In-process KeyValueStoreProtocol with TTL support.

Used by the test suite and by KV_BACKEND=memory for local demos. Same
semantics as the Redis store: last put wins, expired keys read as absent.
"""

import time
from collections.abc import Callable


class MemoryKeyValueStore:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[bytes, float | None]] = {}

    def _alive(self, key: str) -> bytes | None:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> bytes | None:
        return self._alive(key)

    async def put(self, key: str, value: bytes, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._data[key] = (bytes(value), expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list(self, prefix: str) -> list[str]:
        return sorted(k for k in list(self._data) if k.startswith(prefix) and self._alive(k))

    async def ping(self) -> None:
        return None
