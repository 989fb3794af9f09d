"""Redis implementation of KeyValueStoreProtocol.

Every Redis failure (connection, timeout, protocol) surfaces as
StoreUnavailableError so callers never see a half-written aggregate as success.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.bj_common.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class RedisKeyValueStore:
    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

    async def get(self, key: str) -> bytes | None:
        try:
            value = await self._client.get(key)
        except RedisError as e:
            logger.error("Redis GET %s failed: %s", key, e)
            raise StoreUnavailableError(str(e)) from e
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def put(self, key: str, value: bytes, ttl_seconds: int | None = None) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            logger.error("Redis SET %s failed: %s", key, e)
            raise StoreUnavailableError(str(e)) from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as e:
            logger.error("Redis DEL %s failed: %s", key, e)
            raise StoreUnavailableError(str(e)) from e

    async def list(self, prefix: str) -> list[str]:
        try:
            keys = [
                k.decode("utf-8") if isinstance(k, bytes) else k
                async for k in self._client.scan_iter(match=f"{prefix}*", count=500)
            ]
        except RedisError as e:
            logger.error("Redis SCAN %s* failed: %s", prefix, e)
            raise StoreUnavailableError(str(e)) from e
        return sorted(keys)

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except RedisError as e:
            raise StoreUnavailableError(str(e)) from e
