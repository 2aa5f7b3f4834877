"""Shared fixtures for namespaced_cache tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from namespaced_cache import CacheConfig
from namespaced_cache.backend.memory import MemoryCacheBackend


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock: FakeClock) -> MemoryCacheBackend:
    return MemoryCacheBackend(clock=clock)


@pytest.fixture(autouse=True)
def reset_cache_config() -> Iterator[None]:
    """Keep the process-wide CacheConfig from leaking between tests."""
    CacheConfig.reset()
    yield
    CacheConfig.reset()
