# namespaced_cache/store.py

"""
A cache namespace that can be cleared without bulk deletes.

Every key written through a NamespacedCache is prefixed with the namespace
and the namespace's current version number. Clearing the namespace bumps the
version; keys written under earlier versions become unreachable and are left
for the backend's own eviction to reclaim.
"""

from __future__ import annotations

import logging
import re
import time
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional

from namespaced_cache.backend.base import BaseCacheBackend, Loader
from namespaced_cache.key_builder import expand_key

logger = logging.getLogger(__name__)

RETAIN_VERSION_FOR_SECONDS = 10


class NamespacedCache:
    """
    Versioned, namespaced view over a shared cache backend.

    Physical keys have the form ``<namespace>-<version>-<expanded key>`` and
    the version lives under ``<namespace>-version``.

    The current version is cached in-process for ``freshness_window`` seconds.
    After another process clears the namespace, this instance may keep using
    the previous version for at most that long.

    ``unprefix_key`` strips ``<namespace>-<digits>-`` from the front of a
    physical key, once. A logical key that itself looks prefixed keeps its
    own text, but it reads ambiguously when inspecting the backend directly.

    Byte-string keys are expanded through latin-1, so ``b"\\xe9"`` and the
    text key ``"\\xe9"`` share one physical key. Backends that encode keys as
    UTF-8 (redis-py does) put the text form on the wire, not the raw bytes.
    """

    def __init__(
        self,
        backend: BaseCacheBackend,
        namespace: str = "pfx",
        *,
        freshness_window: float = RETAIN_VERSION_FOR_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._backend = backend
        self._namespace = namespace
        self.freshness_window = freshness_window
        self._clock = clock or time.monotonic
        self._cached_version: Optional[int] = None
        self._version_observed_at: Optional[float] = None
        self._prefix_re = re.compile(rf"^{re.escape(namespace)}-\d+-")

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def backend(self) -> BaseCacheBackend:
        return self._backend

    @property
    def version_key(self) -> str:
        return f"{self._namespace}-version"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(namespace={self._namespace!r}, backend={self._backend!r})"

    # -- version lifecycle -------------------------------------------------

    async def current_version_number(self) -> int:
        """
        Return the namespace's current version.

        Reuses the locally cached version while it is younger than the
        freshness window; otherwise reads it from the backend, creating it
        as 0 if absent.
        """
        if self._cached_version is not None and self._version_observed_at is not None:
            if self._clock() - self._version_observed_at < self.freshness_window:
                return self._cached_version

        self._version_observed_at = self._clock()
        version = await self._backend.fetch(self.version_key, lambda: 0)
        self._cached_version = version
        logger.debug("NamespacedCache(%s): using version %s", self._namespace, version)
        return version

    def invalidate_version_cache(self) -> None:
        """Forget the locally cached version so the next call re-reads it."""
        self._cached_version = None
        self._version_observed_at = None

    async def _bump_version(self) -> int:
        # Read-modify-write: a concurrent bump from another process may be lost,
        # leaving a single increment for two clears.
        current = await self._backend.read(self.version_key)
        try:
            version = int(current)
        except (TypeError, ValueError):
            version = 0

        await self._backend.write(self.version_key, version + 1)
        return version + 1

    async def clear(self, **options: Any) -> int:
        """
        Clear this namespace by bumping its version.

        Nothing is deleted from the backend. Returns the version observed
        after the bump.
        """
        bumped = await self._bump_version()
        self.invalidate_version_cache()
        logger.debug("NamespacedCache(%s): cleared, version bumped to %s", self._namespace, bumped)
        return await self.current_version_number()

    # -- key transformation ------------------------------------------------

    def _physical_key(self, version: int, key: Any) -> str:
        return "-".join([self._namespace, str(version), expand_key(key)])

    async def prefix_key(self, key: Any) -> str:
        """Map a logical key onto the physical key for the current version."""
        return self._physical_key(await self.current_version_number(), key)

    def unprefix_key(self, key: str) -> str:
        return self._prefix_re.sub("", key, count=1)

    # -- delegated operations ----------------------------------------------

    async def fetch(self, key: Any, loader: Optional[Loader] = None, **options: Any) -> Optional[Any]:
        """
        Return the cached value, populating it from ``loader`` on a miss.
        Without a loader a miss returns None.
        """
        return await self._backend.fetch(await self.prefix_key(key), loader, **options)

    async def read(self, key: Any, **options: Any) -> Optional[Any]:
        return await self._backend.read(await self.prefix_key(key), **options)

    async def write(self, key: Any, value: Any, **options: Any) -> bool:
        return await self._backend.write(await self.prefix_key(key), value, **options)

    async def exists(self, key: Any, **options: Any) -> bool:
        return await self._backend.exists(await self.prefix_key(key), **options)

    async def delete(self, key: Any, **options: Any) -> bool:
        return await self._backend.delete(await self.prefix_key(key), **options)

    async def increment(self, key: Any, amount: int = 1, **options: Any) -> Optional[int]:
        physical = await self.prefix_key(key)
        # Some counter implementations take no options at all
        if options:
            return await self._backend.increment(physical, amount, **options)
        return await self._backend.increment(physical, amount)

    async def decrement(self, key: Any, amount: int = 1, **options: Any) -> Optional[int]:
        physical = await self.prefix_key(key)
        if options:
            return await self._backend.decrement(physical, amount, **options)
        return await self._backend.decrement(physical, amount)

    async def read_multi(self, *keys: Any, **options: Any) -> dict[str, Any]:
        """
        Read several keys with a single backend call.

        The result is keyed by the expanded logical keys; keys that are not
        cached are left out.
        """
        version = await self.current_version_number()
        physical_keys = [self._physical_key(version, key) for key in keys]
        found = await self._backend.read_multi(*physical_keys, **options)
        return {self.unprefix_key(physical): value for physical, value in found.items()}

    # -- administrative passthroughs ---------------------------------------

    @property
    def silence(self) -> bool:
        return self._backend.silence

    def silence_bang(self) -> None:
        self._backend.silence_bang()

    def mute(self) -> AbstractContextManager[None]:
        return self._backend.mute()

    async def cleanup(self, **options: Any) -> None:
        await self._backend.cleanup(**options)

    @property
    def logger(self) -> logging.Logger:
        return self._backend.logger

    @logger.setter
    def logger(self, value: logging.Logger) -> None:
        self._backend.logger = value

    @property
    def instrument(self) -> bool:
        return self._backend.instrument

    @instrument.setter
    def instrument(self, enabled: bool) -> None:
        self._backend.instrument = enabled
