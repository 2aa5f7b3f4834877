from .base import BaseCacheBackend
from .memory import MemoryCacheBackend

__all__ = ["BaseCacheBackend", "MemoryCacheBackend"]
