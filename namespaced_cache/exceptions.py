

class CacheError(RuntimeError):
	"""Base exception for cache-related errors."""


class CacheNotInitializedError(CacheError):
	"""Raised when the cache is used before CacheConfig.init()."""


class UnsupportedCapabilityError(CacheError, NotImplementedError):
	"""Raised when a backend is asked for an optional capability it lacks."""


__all__ = ["CacheError", "CacheNotInitializedError", "UnsupportedCapabilityError"]
