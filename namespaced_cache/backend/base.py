# namespaced_cache/backend/base.py

"""
Abstract base class for cache backends.
Defines the capability contract that NamespacedCache relies on, plus the
administrative operations it forwards verbatim.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Optional, Union

from namespaced_cache.exceptions import UnsupportedCapabilityError

Loader = Callable[[], Union[Any, Awaitable[Any]]]


class BaseCacheBackend(ABC):
    """
    Abstract base class for cache backends.
    All cache backends must implement this interface.

    Keyword options (such as ``ttl``) are accepted by every operation and
    ignored where they do not apply.
    """

    def __init__(self) -> None:
        self._silence = False
        self._instrument = False
        self._logger = logging.getLogger(type(self).__module__)

    @abstractmethod
    async def read(self, key: str, **options: Any) -> Optional[Any]:
        """
        Retrieve a value from the cache by its key.

        :param key: The key to look up in the cache.
        :return: The cached value, or None if not found.
        """
        raise NotImplementedError

    @abstractmethod
    async def write(self, key: str, value: Any, **options: Any) -> bool:
        """
        Store a value in the cache.

        :param key: The key under which to store the value.
        :param value: The value to store in the cache.
        :param options: ``ttl`` sets an optional time-to-live in seconds.
        :return: True once the value is stored.
        """
        raise NotImplementedError

    @abstractmethod
    async def exists(self, key: str, **options: Any) -> bool:
        """
        Check whether a key is present in the cache.

        :param key: The key to check.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str, **options: Any) -> bool:
        """
        Delete a value from the cache by its key.
        Deleting a missing key is not an error.

        :param key: The key to delete from the cache.
        :return: True if something was removed.
        """
        raise NotImplementedError

    @abstractmethod
    async def increment(self, key: str, amount: int = 1, **options: Any) -> Optional[int]:
        """
        Increment an integer counter. Absent counters start at 0.

        :param key: The counter key.
        :param amount: Signed amount to add.
        :return: The new counter value.
        """
        raise NotImplementedError

    @abstractmethod
    async def decrement(self, key: str, amount: int = 1, **options: Any) -> Optional[int]:
        """
        Decrement an integer counter. Absent counters start at 0.

        :param key: The counter key.
        :param amount: Signed amount to subtract.
        :return: The new counter value.
        """
        raise NotImplementedError

    @abstractmethod
    async def read_multi(self, *keys: str, **options: Any) -> dict[str, Any]:
        """
        Read several keys in one round trip.

        :param keys: The keys to look up.
        :return: Mapping of found keys to their values; missing keys are omitted.
        """
        raise NotImplementedError

    async def fetch(
        self,
        key: str,
        loader: Optional[Loader] = None,
        **options: Any,
    ) -> Optional[Any]:
        """
        Read a key, populating it from ``loader`` on a miss.

        :param key: The key to look up.
        :param loader: Zero-argument callable producing the value. It may
            return an awaitable.
        :return: The cached or freshly loaded value, or None on a miss
            without a loader.
        """
        value = await self.read(key, **options)
        if value is not None or loader is None:
            return value

        value = loader()
        if inspect.isawaitable(value):
            value = await value

        await self.write(key, value, **options)
        return value

    async def cleanup(self, **options: Any) -> None:
        """
        Purge expired entries. Optional capability.

        :raises UnsupportedCapabilityError: If the backend has no cleanup.
        """
        raise UnsupportedCapabilityError(
            f"{type(self).__name__} does not support cleanup()."
        )

    @property
    def silence(self) -> bool:
        """Whether operation logging is silenced."""
        return self._silence

    def silence_bang(self) -> None:
        """Silence operation logging from now on."""
        self._silence = True

    @contextmanager
    def mute(self) -> Iterator[None]:
        """Silence operation logging for the duration of the block."""
        previous = self._silence
        self._silence = True
        try:
            yield
        finally:
            self._silence = previous

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @logger.setter
    def logger(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def instrument(self) -> bool:
        """Whether each operation is logged at DEBUG level."""
        return self._instrument

    @instrument.setter
    def instrument(self, enabled: bool) -> None:
        self._instrument = enabled

    def _log(self, operation: str, key: str) -> None:
        if self._instrument and not self._silence:
            self._logger.debug("Cache %s: %s", operation, key)
