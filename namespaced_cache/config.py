# namespaced_cache/config.py

from typing import Optional

from namespaced_cache.backend.base import BaseCacheBackend
from namespaced_cache.exceptions import CacheError
from namespaced_cache.serializer import SerializationFormat, set_default_format
from namespaced_cache.store import RETAIN_VERSION_FOR_SECONDS, NamespacedCache


class CacheConfigError(CacheError):
    """
    Raised when there is a configuration error in the cache setup.
    """


class CacheConfig:
    """
    Global cache configuration holder.

    Keeps the shared backend plus the defaults applied to every
    NamespacedCache created through :meth:`namespace`.
    """

    _backend: Optional[BaseCacheBackend] = None
    _default_namespace: str = "pfx"
    _freshness_window: float = RETAIN_VERSION_FOR_SECONDS
    _namespaces: dict[str, NamespacedCache] = {}
    _initialized: bool = False

    @classmethod
    def init(
        cls,
        backend: BaseCacheBackend,
        *,
        default_namespace: str = "pfx",
        freshness_window: float = RETAIN_VERSION_FOR_SECONDS,
        default_serialization_format: Optional[SerializationFormat] = None,
    ) -> None:
        """
        Initialize the cache configuration.

        This MUST be called once at application startup.

        Args:
            backend: Cache backend implementation (e.g. RedisCacheBackend)
            default_namespace: Namespace used when none is given
            freshness_window: Seconds a namespace version is reused locally
            default_serialization_format: Optional default serialization format

        Raises:
            CacheConfigError: If backend is invalid or config already initialized
        """
        if cls._initialized:
            raise CacheConfigError("CacheConfig is already initialized.")

        if not isinstance(backend, BaseCacheBackend):
            raise CacheConfigError(
                "Provided backend does not implement BaseCacheBackend."
            )

        if freshness_window < 0:
            raise CacheConfigError("freshness_window must not be negative.")

        cls._backend = backend
        cls._default_namespace = default_namespace
        cls._freshness_window = freshness_window
        if default_serialization_format is not None:
            set_default_format(default_serialization_format)
        cls._initialized = True

    @classmethod
    def is_initialized(cls) -> bool:
        """Check whether the cache configuration is initialized."""
        return cls._initialized

    @classmethod
    def get_backend(cls) -> BaseCacheBackend:
        """
        Get the configured cache backend.

        Raises:
            CacheConfigError: If config is not initialized
        """
        if not cls._initialized or cls._backend is None:
            raise CacheConfigError(
                "CacheConfig is not initialized. Call CacheConfig.init() first."
            )
        return cls._backend

    @classmethod
    def get_freshness_window(cls) -> float:
        return cls._freshness_window

    @classmethod
    def namespace(cls, name: Optional[str] = None) -> NamespacedCache:
        """
        Get the NamespacedCache for ``name`` over the configured backend.

        One instance is kept per namespace so its cached version is shared
        by every caller in the process.

        Raises:
            CacheConfigError: If config is not initialized
        """
        backend = cls.get_backend()
        name = name or cls._default_namespace
        cache = cls._namespaces.get(name)
        if cache is None:
            cache = NamespacedCache(backend, name, freshness_window=cls._freshness_window)
            cls._namespaces[name] = cache
        return cache

    @classmethod
    def reset(cls) -> None:
        """
        Reset cache configuration.

        Intended for testing ONLY.
        """
        cls._backend = None
        cls._default_namespace = "pfx"
        cls._freshness_window = RETAIN_VERSION_FOR_SECONDS
        cls._namespaces = {}
        cls._initialized = False
        set_default_format(SerializationFormat.JSON)
