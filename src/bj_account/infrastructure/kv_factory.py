"""FastAPI dependency that yields the configured KeyValueStoreProtocol."""

from config.settings import settings
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.kv_memory import MemoryKeyValueStore
from src.bj_account.infrastructure.kv_redis import RedisKeyValueStore
from src.bj_common.redis_client import get_redis

_memory_store: MemoryKeyValueStore | None = None


def get_memory_store() -> MemoryKeyValueStore:
    global _memory_store  # noqa: PLW0603
    if _memory_store is None:
        _memory_store = MemoryKeyValueStore()
    return _memory_store


def reset_memory_store() -> None:
    global _memory_store  # noqa: PLW0603
    _memory_store = None


async def get_kv_store() -> KeyValueStoreProtocol:
    if settings.KV_BACKEND == "memory":
        return get_memory_store()
    return RedisKeyValueStore(await get_redis())
