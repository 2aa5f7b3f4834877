# namespaced_cache/backend/redis.py

import re
from typing import Any, Optional, Union

import redis.asyncio as redis

from .base import BaseCacheBackend
from namespaced_cache.serializer import serialize, deserialize

_INTEGER_RE = re.compile(rb"-?[0-9]+")


def _encode(value: Any) -> bytes:
    # Integers are stored as plain decimal whatever the format, so INCRBY/DECRBY
    # and reads agree on the representation
    if type(value) is int:
        return str(value).encode("ascii")
    return serialize(value)


def _decode(raw: Union[bytes, str]) -> Any:
    data = raw.encode("utf-8") if isinstance(raw, str) else raw
    if _INTEGER_RE.fullmatch(data):
        return int(data)
    return deserialize(data)


class RedisCacheBackend(BaseCacheBackend):
    """
    Redis cache backend implementation.
    Uses redis-py for asynchronous Redis operations.

    Integers are written as plain decimal rather than through the serializer,
    so counters work with every serialization format.
    """

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.client = client
        self.key_prefix = key_prefix

    def _build_key(self, key: str) -> str:
        if self.key_prefix is None:
            return key
        return f"{self.key_prefix}:{key}"

    async def read(self, key: str, **options: Any) -> Optional[Any]:
        self._log("read", key)
        raw = await self.client.get(self._build_key(key))

        if raw is None:
            return None

        return _decode(raw)

    async def write(self, key: str, value: Any, **options: Any) -> bool:
        self._log("write", key)
        data = _encode(value)

        await self.client.set(name=self._build_key(key), value=data, ex=options.get("ttl"))
        return True

    async def exists(self, key: str, **options: Any) -> bool:
        self._log("exist?", key)
        count = await self.client.exists(self._build_key(key))
        return bool(count)

    async def delete(self, key: str, **options: Any) -> bool:
        self._log("delete", key)
        removed = await self.client.delete(self._build_key(key))
        return bool(removed)

    async def increment(self, key: str, amount: int = 1, **options: Any) -> Optional[int]:
        self._log("increment", key)
        redis_key = self._build_key(key)
        value = await self.client.incrby(redis_key, amount)
        await self._expire(redis_key, options.get("ttl"))
        return int(value)

    async def decrement(self, key: str, amount: int = 1, **options: Any) -> Optional[int]:
        self._log("decrement", key)
        redis_key = self._build_key(key)
        value = await self.client.decrby(redis_key, amount)
        await self._expire(redis_key, options.get("ttl"))
        return int(value)

    async def _expire(self, redis_key: str, ttl: Optional[int]) -> None:
        if ttl is not None:
            await self.client.expire(redis_key, ttl)

    async def read_multi(self, *keys: str, **options: Any) -> dict[str, Any]:
        self._log("read_multi", ", ".join(keys))
        if not keys:
            return {}

        raw_values = await self.client.mget([self._build_key(key) for key in keys])
        return {
            key: _decode(raw)
            for key, raw in zip(keys, raw_values)
            if raw is not None
        }

    async def cleanup(self, **options: Any) -> None:
        """
        Nothing to purge: Redis expires keys on its own.
        """
        self._log("cleanup", "*")
