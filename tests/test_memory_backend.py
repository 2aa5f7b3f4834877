"""Tests for the in-process backend."""

from __future__ import annotations

import logging

import pytest

from namespaced_cache.backend.memory import MemoryCacheBackend
from tests.conftest import FakeClock


@pytest.mark.asyncio
async def test_write_read_exists_delete(backend: MemoryCacheBackend) -> None:
    assert await backend.exists("key1") is False

    assert await backend.write("key1", {"a": 1}) is True
    assert await backend.read("key1") == {"a": 1}
    assert await backend.exists("key1") is True

    assert await backend.delete("key1") is True
    assert await backend.exists("key1") is False
    assert await backend.delete("key1") is False


@pytest.mark.asyncio
async def test_ttl_expiry(backend: MemoryCacheBackend, clock: FakeClock) -> None:
    await backend.write("key1", "value", ttl=10)

    clock.advance(9)
    assert await backend.read("key1") == "value"

    clock.advance(1)
    assert await backend.read("key1") is None
    assert await backend.exists("key1") is False


@pytest.mark.asyncio
async def test_fetch_populates_once(backend: MemoryCacheBackend) -> None:
    calls = []

    def loader() -> str:
        calls.append(1)
        return "loaded"

    assert await backend.fetch("key1", loader) == "loaded"
    assert await backend.fetch("key1", loader) == "loaded"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_fetch_applies_ttl(backend: MemoryCacheBackend, clock: FakeClock) -> None:
    await backend.fetch("key1", lambda: 0, ttl=5)
    clock.advance(5)
    assert await backend.read("key1") is None


@pytest.mark.asyncio
async def test_counters(backend: MemoryCacheBackend) -> None:
    assert await backend.increment("hits") == 1
    assert await backend.increment("hits", 10) == 11
    assert await backend.decrement("hits", 5) == 6
    assert await backend.decrement("misses") == -1


@pytest.mark.asyncio
async def test_counter_keeps_expiry(backend: MemoryCacheBackend, clock: FakeClock) -> None:
    await backend.write("hits", 1, ttl=10)
    await backend.increment("hits")

    clock.advance(10)
    assert await backend.read("hits") is None


@pytest.mark.asyncio
async def test_counter_rejects_non_integers(backend: MemoryCacheBackend) -> None:
    await backend.write("name", "John")
    with pytest.raises(ValueError):
        await backend.increment("name")


@pytest.mark.asyncio
async def test_read_multi_omits_missing(backend: MemoryCacheBackend) -> None:
    await backend.write("a", 1)
    await backend.write("c", 3)

    assert await backend.read_multi("a", "b", "c") == {"a": 1, "c": 3}
    assert await backend.read_multi() == {}


@pytest.mark.asyncio
async def test_cleanup_purges_expired(backend: MemoryCacheBackend, clock: FakeClock) -> None:
    await backend.write("short", 1, ttl=1)
    await backend.write("long", 2, ttl=100)
    await backend.write("forever", 3)

    clock.advance(2)
    await backend.cleanup()

    assert len(backend) == 2


@pytest.mark.asyncio
async def test_instrumented_operations_are_logged(
    backend: MemoryCacheBackend, caplog: pytest.LogCaptureFixture
) -> None:
    backend.instrument = True

    with caplog.at_level(logging.DEBUG, logger="namespaced_cache.backend.memory"):
        await backend.write("key1", 1)
        with backend.mute():
            await backend.read("key1")

    messages = [record.getMessage() for record in caplog.records]
    assert "Cache write: key1" in messages
    assert "Cache read: key1" not in messages


@pytest.mark.asyncio
async def test_not_logged_without_instrument(
    backend: MemoryCacheBackend, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG, logger="namespaced_cache.backend.memory"):
        await backend.write("key1", 1)

    assert caplog.records == []
