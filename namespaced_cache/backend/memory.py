# namespaced_cache/backend/memory.py

import time
from typing import Any, Callable, Optional

from .base import BaseCacheBackend


class MemoryCacheBackend(BaseCacheBackend):
    """
    In-process cache backend.
    Values are kept as-is (no serialization); expired entries are dropped
    lazily on access or in bulk by cleanup().
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        super().__init__()
        self._clock = clock or time.monotonic
        self._data: dict[str, tuple[Any, Optional[float]]] = {}

    def _expires_at(self, ttl: Optional[float]) -> Optional[float]:
        if ttl is None:
            return None
        return self._clock() + ttl

    def _is_expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def _lookup(self, key: str) -> Optional[tuple[Any, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None

        if self._is_expired(entry[1]):
            del self._data[key]
            return None

        return entry

    async def read(self, key: str, **options: Any) -> Optional[Any]:
        self._log("read", key)
        entry = self._lookup(key)
        return None if entry is None else entry[0]

    async def write(self, key: str, value: Any, **options: Any) -> bool:
        self._log("write", key)
        self._data[key] = (value, self._expires_at(options.get("ttl")))
        return True

    async def exists(self, key: str, **options: Any) -> bool:
        self._log("exist?", key)
        return self._lookup(key) is not None

    async def delete(self, key: str, **options: Any) -> bool:
        self._log("delete", key)
        return self._data.pop(key, None) is not None

    async def increment(self, key: str, amount: int = 1, **options: Any) -> Optional[int]:
        self._log("increment", key)
        return self._adjust(key, amount, options.get("ttl"))

    async def decrement(self, key: str, amount: int = 1, **options: Any) -> Optional[int]:
        self._log("decrement", key)
        return self._adjust(key, -amount, options.get("ttl"))

    def _adjust(self, key: str, amount: int, ttl: Optional[float]) -> int:
        entry = self._lookup(key)
        current, expires_at = entry if entry is not None else (0, None)

        if isinstance(current, bool) or not isinstance(current, int):
            raise ValueError(f"Value at {key!r} is not an integer counter.")

        if ttl is not None:
            expires_at = self._expires_at(ttl)

        self._data[key] = (current + amount, expires_at)
        return current + amount

    async def read_multi(self, *keys: str, **options: Any) -> dict[str, Any]:
        self._log("read_multi", ", ".join(keys))
        found: dict[str, Any] = {}
        for key in keys:
            entry = self._lookup(key)
            if entry is not None:
                found[key] = entry[0]
        return found

    async def cleanup(self, **options: Any) -> None:
        self._log("cleanup", "*")
        expired = [
            key
            for key, (_, expires_at) in self._data.items()
            if self._is_expired(expires_at)
        ]
        for key in expired:
            del self._data[key]

    def __len__(self) -> int:
        return len(self._data)
