from namespaced_cache.backend.base import BaseCacheBackend
from namespaced_cache.backend.memory import MemoryCacheBackend
from namespaced_cache.config import CacheConfig, CacheConfigError
from namespaced_cache.decorators import cache_evict, cache_put, cacheable
from namespaced_cache.exceptions import (
	CacheError,
	CacheNotInitializedError,
	UnsupportedCapabilityError,
)
from namespaced_cache.key_builder import CacheKeyed, DefaultKeyBuilder, KeyBuilder, expand_key
from namespaced_cache.serializer import (
	SerializationFormat,
	deserialize,
	get_default_format,
	serialize,
	set_default_format,
)
from namespaced_cache.store import RETAIN_VERSION_FOR_SECONDS, NamespacedCache

__version__ = "0.1.0"

__all__ = [
	"BaseCacheBackend",
	"MemoryCacheBackend",
	"CacheConfig",
	"CacheConfigError",
	"CacheError",
	"CacheNotInitializedError",
	"UnsupportedCapabilityError",
	"cacheable",
	"cache_evict",
	"cache_put",
	"CacheKeyed",
	"DefaultKeyBuilder",
	"KeyBuilder",
	"expand_key",
	"NamespacedCache",
	"RETAIN_VERSION_FOR_SECONDS",
	"SerializationFormat",
	"serialize",
	"deserialize",
	"get_default_format",
	"set_default_format",
]
