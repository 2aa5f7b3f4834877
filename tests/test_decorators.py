"""Tests for the cacheable / cache_put / cache_evict decorators."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from namespaced_cache import (
    CacheConfig,
    CacheNotInitializedError,
    cache_evict,
    cache_put,
    cacheable,
)
from namespaced_cache.backend.memory import MemoryCacheBackend


@pytest.fixture
def configured(backend: MemoryCacheBackend) -> MemoryCacheBackend:
    CacheConfig.init(backend)
    return backend


class TestCacheable:
    @pytest.mark.asyncio
    async def test_caches_result(self, configured: MemoryCacheBackend) -> None:
        calls = []

        @cacheable(namespace="users", key="get_user")
        async def get_user(user_id: int) -> dict:
            calls.append(user_id)
            return {"user_id": user_id}

        assert await get_user(1) == {"user_id": 1}
        assert await get_user(1) == {"user_id": 1}
        assert await get_user(2) == {"user_id": 2}

        assert calls == [1, 2]
        assert await configured.read("users-0-get_user/user_id=1") == {"user_id": 1}

    @pytest.mark.asyncio
    async def test_ttl_forwarded(self, configured: MemoryCacheBackend, clock) -> None:
        @cacheable(namespace="users", key="get_user", ttl=5)
        async def get_user(user_id: int) -> int:
            return user_id

        await get_user(1)
        clock.advance(5)
        assert await configured.read("users-0-get_user/user_id=1") is None

    @pytest.mark.asyncio
    async def test_condition_bypasses_cache(self, configured: MemoryCacheBackend) -> None:
        calls = []

        @cacheable(namespace="users", condition=lambda user_id: user_id > 0)
        async def get_user(user_id: int) -> int:
            calls.append(user_id)
            return user_id

        await get_user(0)
        await get_user(0)
        assert calls == [0, 0]

    @pytest.mark.asyncio
    async def test_unless_skips_store(self, configured: MemoryCacheBackend) -> None:
        calls = []

        async def is_none(result: object) -> bool:
            return result is None

        @cacheable(namespace="users", unless=is_none)
        async def find_user(user_id: int) -> None:
            calls.append(user_id)
            return None

        await find_user(1)
        await find_user(1)
        assert calls == [1, 1]

    @pytest.mark.asyncio
    async def test_backend_failure_falls_through(self, configured: MemoryCacheBackend) -> None:
        configured.read = AsyncMock(side_effect=ConnectionError("down"))  # type: ignore[method-assign]

        @cacheable(namespace="users")
        async def get_user(user_id: int) -> int:
            return user_id

        assert await get_user(3) == 3

    @pytest.mark.asyncio
    async def test_requires_initialized_config(self) -> None:
        @cacheable(namespace="users")
        async def get_user(user_id: int) -> int:
            return user_id

        with pytest.raises(CacheNotInitializedError):
            await get_user(1)

    def test_rejects_sync_functions(self) -> None:
        with pytest.raises(TypeError):

            @cacheable(namespace="users")
            def get_user(user_id: int) -> int:  # type: ignore[arg-type]
                return user_id


class TestCachePut:
    @pytest.mark.asyncio
    async def test_always_runs_and_stores(self, configured: MemoryCacheBackend) -> None:
        calls = []

        @cache_put(namespace="users", key="get_user")
        async def refresh_user(user_id: int) -> dict:
            calls.append(user_id)
            return {"user_id": user_id, "fresh": len(calls)}

        await refresh_user(1)
        await refresh_user(1)

        assert calls == [1, 1]
        assert await configured.read("users-0-get_user/user_id=1") == {"user_id": 1, "fresh": 2}


class TestCacheEvict:
    @pytest.mark.asyncio
    async def test_evicts_single_entry(self, configured: MemoryCacheBackend) -> None:
        @cacheable(namespace="users", key="get_user")
        async def get_user(user_id: int) -> int:
            return user_id

        @cache_evict(namespace="users", key="get_user")
        async def evict_user(user_id: int) -> None:
            return None

        await get_user(1)
        await get_user(2)
        await evict_user(1)

        assert await configured.exists("users-0-get_user/user_id=1") is False
        assert await configured.exists("users-0-get_user/user_id=2") is True

    @pytest.mark.asyncio
    async def test_all_entries_bumps_version(self, configured: MemoryCacheBackend) -> None:
        calls = []

        @cacheable(namespace="users", key="get_user")
        async def get_user(user_id: int) -> int:
            calls.append(user_id)
            return user_id

        @cache_evict(namespace="users", all_entries=True)
        async def evict_all() -> None:
            return None

        await get_user(1)
        await evict_all()
        await get_user(1)

        assert calls == [1, 1]
        assert await configured.read("users-version") == 1
        # the old entry is orphaned, not deleted
        assert await configured.read("users-0-get_user/user_id=1") == 1
        assert await configured.read("users-1-get_user/user_id=1") == 1

    @pytest.mark.asyncio
    async def test_before_invocation(self, configured: MemoryCacheBackend) -> None:
        seen = []

        @cache_evict(namespace="users", all_entries=True, before_invocation=True)
        async def evict_all() -> None:
            seen.append(await CacheConfig.namespace("users").current_version_number())

        await evict_all()
        assert seen == [1]

    @pytest.mark.asyncio
    async def test_eviction_failure_is_logged(self, configured: MemoryCacheBackend) -> None:
        configured.delete = AsyncMock(side_effect=ConnectionError("down"))  # type: ignore[method-assign]

        @cache_evict(namespace="users")
        async def evict_user(user_id: int) -> str:
            return "done"

        assert await evict_user(1) == "done"


class TestCustomKeyBuilder:
    @pytest.mark.asyncio
    async def test_builder_output_is_the_logical_key(self, configured: MemoryCacheBackend) -> None:
        class ByUserId:
            def build(self, func, args, kwargs):  # type: ignore[no-untyped-def]
                return ["user", args[0]]

        builder = ByUserId()

        @cacheable(namespace="users", key_builder=builder)
        async def get_user(user_id: int) -> int:
            return user_id * 10

        @cache_evict(namespace="users", key_builder=builder)
        async def evict_user(user_id: int) -> None:
            return None

        assert await get_user(4) == 40
        assert await configured.read("users-0-user/4") == 40

        await evict_user(4)
        assert await configured.exists("users-0-user/4") is False
