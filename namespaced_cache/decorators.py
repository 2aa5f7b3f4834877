from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, ParamSpec, TypeVar, cast

from namespaced_cache.config import CacheConfig
from namespaced_cache.exceptions import CacheNotInitializedError
from namespaced_cache.key_builder import DefaultKeyBuilder, KeyBuilder
from namespaced_cache.store import NamespacedCache

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

Condition = Callable[..., bool] | Callable[..., Awaitable[bool]]
Unless = Callable[[Any], bool] | Callable[[Any], Awaitable[bool]]


def _ensure_initialized() -> None:
	if not CacheConfig.is_initialized():
		raise CacheNotInitializedError(
			"CacheConfig is not initialized. Call CacheConfig.init(...) at startup."
		)


def _ensure_async(func: Callable[..., Any]) -> None:
	if not inspect.iscoroutinefunction(func):
		raise TypeError(
			f"Cache decorators require an async function; got {func.__qualname__}."
		)


async def _maybe_await_bool(value: bool | Awaitable[bool]) -> bool:
	if inspect.isawaitable(value):
		return cast(bool, await cast(Awaitable[bool], value))
	return cast(bool, value)


def _resolve_builder(
	key: Optional[str],
	key_builder: Optional[KeyBuilder],
	excluded_params: Optional[set[str]],
) -> KeyBuilder:
	if key_builder is not None:
		return key_builder
	return DefaultKeyBuilder(key=key, excluded_params=excluded_params)


def _ttl_options(ttl: Optional[int]) -> dict[str, Any]:
	return {} if ttl is None else {"ttl": ttl}


def cacheable(
	*,
	namespace: Optional[str] = None,
	key: Optional[str] = None,
	ttl: Optional[int] = None,
	key_builder: Optional[KeyBuilder] = None,
	condition: Optional[Condition] = None,
	unless: Optional[Unless] = None,
	excluded_params: Optional[set[str]] = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
	"""Cache the result of an async function in a namespace.

	Reads from the cache first; on a miss executes the function and stores
	the result. Backend failures are logged and treated as misses.
	"""
	builder = _resolve_builder(key, key_builder, excluded_params)

	def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
		_ensure_async(func)

		@functools.wraps(func)
		async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
			_ensure_initialized()

			if condition is not None:
				if not await _maybe_await_bool(condition(*args, **kwargs)):
					logger.debug(
						"cacheable(%s): condition false; bypass cache for %s",
						namespace,
						func.__qualname__,
					)
					return await func(*args, **kwargs)

			cache = CacheConfig.namespace(namespace)
			logical_key = builder.build(
				func, cast(tuple[Any, ...], args), cast(dict[str, Any], kwargs)
			)

			try:
				cached = await cache.read(logical_key)
			except Exception:
				logger.exception("cacheable(%s): cache read failed", cache.namespace)
				cached = None

			if cached is not None:
				return cast(R, cached)

			result = await func(*args, **kwargs)

			if unless is not None and await _maybe_await_bool(unless(result)):
				return result

			try:
				await cache.write(logical_key, result, **_ttl_options(ttl))
			except Exception:
				logger.exception("cacheable(%s): cache write failed", cache.namespace)

			return result

		return wrapper

	return decorator


def cache_put(
	*,
	namespace: Optional[str] = None,
	key: Optional[str] = None,
	ttl: Optional[int] = None,
	key_builder: Optional[KeyBuilder] = None,
	condition: Optional[Condition] = None,
	unless: Optional[Unless] = None,
	excluded_params: Optional[set[str]] = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
	"""Always execute the function, then store its result (unless skipped)."""
	builder = _resolve_builder(key, key_builder, excluded_params)

	def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
		_ensure_async(func)

		@functools.wraps(func)
		async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
			_ensure_initialized()

			result = await func(*args, **kwargs)

			if condition is not None and not await _maybe_await_bool(condition(*args, **kwargs)):
				return result

			if unless is not None and await _maybe_await_bool(unless(result)):
				return result

			cache = CacheConfig.namespace(namespace)
			logical_key = builder.build(
				func, cast(tuple[Any, ...], args), cast(dict[str, Any], kwargs)
			)

			try:
				await cache.write(logical_key, result, **_ttl_options(ttl))
			except Exception:
				logger.exception("cache_put(%s): cache write failed", cache.namespace)

			return result

		return wrapper

	return decorator


def cache_evict(
	*,
	namespace: Optional[str] = None,
	key: Optional[str] = None,
	all_entries: bool = False,
	before_invocation: bool = False,
	key_builder: Optional[KeyBuilder] = None,
	condition: Optional[Condition] = None,
	excluded_params: Optional[set[str]] = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
	"""Evict one entry, or with ``all_entries`` clear the whole namespace.

	Clearing bumps the namespace version; nothing is bulk-deleted.
	"""
	builder = _resolve_builder(key, key_builder, excluded_params)

	def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
		_ensure_async(func)

		async def _evict(cache: NamespacedCache, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
			if all_entries:
				await cache.clear()
				return

			await cache.delete(builder.build(func, args, kwargs))

		async def _evict_logged(*args: Any, **kwargs: Any) -> None:
			cache = CacheConfig.namespace(namespace)
			try:
				await _evict(cache, args, kwargs)
			except Exception:
				logger.exception("cache_evict(%s): eviction failed", cache.namespace)

		@functools.wraps(func)
		async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
			_ensure_initialized()

			if condition is not None:
				if not await _maybe_await_bool(condition(*args, **kwargs)):
					return await func(*args, **kwargs)

			if before_invocation:
				await _evict_logged(*args, **kwargs)

			result = await func(*args, **kwargs)

			if not before_invocation:
				await _evict_logged(*args, **kwargs)

			return result

		return wrapper

	return decorator
